"""Data models for Locator Extractor."""

from .element import AdvancedMetadata, ElementRecord, Framework
from .messages import LogEvent, ScanCommand, StartCommand
from .session import LaunchOptions, SaveResult, ScanMode, SessionState

__all__ = [
    "AdvancedMetadata",
    "ElementRecord",
    "Framework",
    "LogEvent",
    "ScanCommand",
    "StartCommand",
    "LaunchOptions",
    "SaveResult",
    "ScanMode",
    "SessionState",
]
