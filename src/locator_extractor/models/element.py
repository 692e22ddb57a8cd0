"""Models for elements captured from the instrumented page."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Max characters of visible text kept per element
TEXT_MAX_LENGTH = 300

# Keys only the controller may set; values arriving from the page are discarded
CONTROLLER_FIELDS = ("pageUrl", "timestamp", "advanced")


class Framework(str, Enum):
    """Coarse UI framework label detected in the page."""
    REACT = "React"
    ANGULAR = "Angular"
    VUE = "Vue"
    HTML = "HTML"
    UNKNOWN = "Unknown"


class AdvancedMetadata(BaseModel):
    """DevTools-derived enrichment for a captured element (passthrough)."""

    model_config = ConfigDict(extra="allow")

    zIndex: Optional[str] = None
    opacity: Optional[str] = None
    display: Optional[str] = None
    visibility: Optional[str] = None
    color: Optional[str] = None
    font: Optional[str] = None
    pointerEvents: Optional[str] = None
    cursor: Optional[str] = None
    backgroundColor: Optional[str] = None
    ariaRole: Optional[str] = None
    ariaName: Optional[str] = None
    listeners: List[str] = Field(default_factory=list)
    boundingBox: Optional[Dict[str, float]] = None
    domDepth: int = 0
    dataAttributes: Dict[str, str] = Field(default_factory=dict)
    frameworkType: Optional[str] = None
    error: Optional[str] = Field(None, description="Set when enrichment failed")


class ElementRecord(BaseModel):
    """One captured page element with its synthesized locators."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tag: str = Field(..., min_length=1, description="Lowercase tag name")
    id: Optional[str] = Field(None, description="Element ID attribute")
    name: Optional[str] = Field(None, description="Element name attribute")
    class_: Optional[str] = Field(None, alias="class", description="Raw class attribute")
    text: str = Field("", description="Trimmed visible text")
    role: Optional[str] = None
    ariaLabel: Optional[str] = None
    type: Optional[str] = None
    placeholder: Optional[str] = None
    value: Optional[str] = None
    href: Optional[str] = None
    title: Optional[str] = None
    attributes: Dict[str, str] = Field(
        default_factory=dict, description="All DOM attributes at capture time"
    )
    dataset: Dict[str, str] = Field(
        default_factory=dict, description="data-/qa-/ng- prefixed attributes"
    )
    css: str = Field("", description="Synthesized CSS selector path")
    xpath: str = Field("", description="Absolute structural path")
    shadowHostChain: Optional[str] = None
    visible: Optional[bool] = None
    hidden: Optional[bool] = None
    framework: Framework = Framework.UNKNOWN
    crossOrigin: bool = False
    pageUrl: Optional[str] = Field(None, description="Stamped by the bridge")
    timestamp: Optional[str] = Field(None, description="Stamped by the bridge")
    advanced: Optional[AdvancedMetadata] = None

    @field_validator("tag", mode="before")
    @classmethod
    def _lower_tag(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("text", mode="before")
    @classmethod
    def _truncate_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value).strip()[:TEXT_MAX_LENGTH]

    @field_validator(
        "id", "name", "class_", "role", "ariaLabel", "type",
        "placeholder", "value", "href", "title", "shadowHostChain",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None or value == "":
            return None
        return value if isinstance(value, str) else str(value)

    @field_validator("attributes", "dataset", mode="before")
    @classmethod
    def _stringify_map(cls, value: Any) -> Dict[str, str]:
        if not isinstance(value, dict):
            return {}
        return {str(k): "" if v is None else str(v) for k, v in value.items()}

    @field_validator("css", "xpath", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("framework", mode="before")
    @classmethod
    def _coerce_framework(cls, value: Any) -> Framework:
        try:
            return Framework(value)
        except ValueError:
            return Framework.UNKNOWN

    @classmethod
    def from_page(cls, payload: Dict[str, Any]) -> "ElementRecord":
        """
        Validate a payload produced by the in-page serializer.

        Controller-owned fields supplied by the page are dropped so they
        can only be set by `stamp()` and enrichment.

        Raises:
            pydantic.ValidationError: If the payload has no usable tag
        """
        data = {k: v for k, v in payload.items() if k not in CONTROLLER_FIELDS}
        return cls.model_validate(data)

    @property
    def is_stamped(self) -> bool:
        return self.timestamp is not None

    def stamp(self, page_url: str) -> None:
        """Set pageUrl/timestamp; a record is stamped only once."""
        if self.is_stamped:
            return
        self.pageUrl = page_url
        self.timestamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def to_output(self) -> Dict[str, Any]:
        """JSON-ready dict using the page's key names."""
        data = self.model_dump(by_alias=True, mode="json")
        if data.get("advanced") is None:
            data.pop("advanced", None)
        return data
