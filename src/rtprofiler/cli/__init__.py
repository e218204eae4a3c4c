"""
Command-line interface for rtprofiler.
"""

from .main import main_cli

__all__ = ["main_cli"]
