"""Log events and dashboard WebSocket message models."""

from datetime import datetime, timezone
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from .session import LaunchOptions

LogLevel = Literal["DEBUG", "INFO", "WARN", "ERROR", "SUCCESS"]


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class LogEvent(BaseModel):
    """Notable event forwarded to the log sink."""

    level: LogLevel = Field(..., description="Severity label")
    message: str = Field(..., description="Human-readable message")
    timestamp: str = Field(default_factory=_utc_now, description="ISO 8601 timestamp")


class StartCommand(LaunchOptions):
    """Dashboard request to launch a session."""

    type: Literal["start"] = "start"
    replace_existing: bool = Field(
        True, description="Force-close a session left open by a previous run"
    )


class ScanCommand(BaseModel):
    """Dashboard request for a triggered scan of the latest page."""

    type: Literal["scan"] = "scan"
    filter: Optional[Union[str, List[str]]] = None
    include_hidden: Optional[bool] = None
    save: bool = Field(True, description="Persist results right after the scan")


class ErrorMessage(BaseModel):
    """Error message to dashboard."""

    type: Literal["error"] = "error"
    code: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    detail: Optional[str] = Field(None, description="Additional error details")


class DoneMessage(BaseModel):
    """Signals completion of a dashboard command."""

    type: Literal["done"] = "done"
    message: str
