"""Common type definitions for Locator Extractor.

This module provides TypedDict definitions for the loosely-shaped data
that crosses process or page boundaries, to avoid Dict[str, Any].
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional, TypedDict, Union


class LogEventDict(TypedDict):
    """Event delivered to the log sink."""
    level: str
    message: str
    timestamp: str


class RawElementPayload(TypedDict, total=False):
    """Element payload as serialized by the in-page script (before validation)."""
    captureId: str
    tag: str
    id: Optional[str]
    name: Optional[str]
    text: str
    role: Optional[str]
    ariaLabel: Optional[str]
    attributes: Dict[str, str]
    dataset: Dict[str, str]
    css: str
    xpath: str
    shadowHostChain: Optional[str]
    visible: Optional[bool]
    hidden: Optional[bool]
    framework: str
    crossOrigin: bool


class SessionStatusDict(TypedDict):
    """Snapshot of the session controller for status endpoints."""
    state: str
    url: Optional[str]
    pages: int
    records: int
    cdp_sessions: int
    results_saved: bool


# Messages pushed to dashboard clients
DashboardMessage = Union[LogEventDict, Dict[str, Any]]

# Log sink invoked for every notable event; may be sync or async
LogSink = Callable[[LogEventDict], Union[None, Awaitable[None]]]

# Raw scan result returned by page.evaluate
RawScanResult = List[RawElementPayload]
