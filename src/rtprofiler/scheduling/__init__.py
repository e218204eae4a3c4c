"""
Periodic profiler scheduling and shutdown handling.
"""

from .scheduler import ProfilerScheduler
from .signal_handler import SignalHandler

__all__ = ["ProfilerScheduler", "SignalHandler"]
