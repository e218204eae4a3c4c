"""
Data models for the rtprofiler package.
"""

from .config import AppConfig, GeneralConfig, SinkConfig

__all__ = ["AppConfig", "GeneralConfig", "SinkConfig"]
