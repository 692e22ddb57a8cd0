"""Session state models."""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ..config import settings
from ..exceptions import InvalidUrlError
from ..utils.url_utils import is_valid_url

PromptKind = Literal["locator", "action", "assertion"]


class SessionState(str, Enum):
    """Lifecycle of the browser session owned by the controller."""
    IDLE = "idle"
    LAUNCHING = "launching"
    ATTACHED = "attached"
    STOPPING = "stopping"


class ScanMode(str, Enum):
    """Walk modes understood by the in-page `__locatorScanAll` entry point."""
    ALL = "all"                  # Every element, descriptive CSS path
    INTERACTIVE = "interactive"  # Visible and interactable, unique CSS path
    HIDDEN = "hidden"            # Not visible (rendered tags only), unique CSS path


class LaunchOptions(BaseModel):
    """Everything needed to start one capture session."""

    url: str = Field(..., description="Page to open first")
    filter: Optional[Union[str, List[str]]] = Field(
        None, description="FilterSet as comma-separated string or list of fragments"
    )
    headless: bool = Field(default_factory=lambda: settings.HEADLESS)
    include_hidden: bool = Field(False, description="Run the hidden-element pass on scans")
    auto_scan: bool = Field(False, description="Scan and save right after the page loads")
    use_cdp: bool = Field(default_factory=lambda: settings.USE_CDP)
    generate_prompts: bool = False
    automation_framework: str = Field(default_factory=lambda: settings.AUTOMATION_FRAMEWORK)
    prompt_kind: PromptKind = Field(default_factory=lambda: settings.PROMPT_KIND)
    custom_example: str = ""
    output_dir: str = Field(default_factory=lambda: settings.OUTPUT_DIR)
    navigation_timeout_ms: int = Field(
        default_factory=lambda: settings.NAVIGATION_TIMEOUT_MS, ge=0
    )
    settle_delay_ms: int = Field(default_factory=lambda: settings.SETTLE_DELAY_MS, ge=0)
    launch_args: Dict[str, Any] = Field(
        default_factory=dict,
        description="Extra keyword arguments for chromium.launch (proxy, channel, ...)",
    )

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_url(value):
            raise InvalidUrlError(value)
        return value


class SaveResult(BaseModel):
    """Paths and counts of one persisted output set."""

    json_path: str
    prompt_path: Optional[str] = None
    total: int = 0
    visible: int = 0
    hidden: int = 0
