"""Filter fragments evaluated against captured element records.

Same semantics as the in-page matcher in ``scripts/filters.js`` so a record
accepted by the page walker is also accepted here:

- ``.X``      class list contains ``X``
- ``#X``      id equals ``X``
- ``[A]``     attribute ``A`` present
- ``[A=V]``   attribute ``A`` equals ``V`` (surrounding quotes stripped)
- otherwise   tag name equals the fragment, case-insensitively

A FilterSet is an OR of fragments; an empty set matches everything.
Malformed fragments never match and never raise.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Union

from .models.element import ElementRecord


class FilterKind(str, Enum):
    CLASS = "class"
    ID = "id"
    ATTRIBUTE = "attribute"
    TAG = "tag"


@dataclass(frozen=True)
class FilterExpression:
    kind: FilterKind
    name: str
    value: Optional[str] = None
    raw: str = ""

    @classmethod
    def parse(cls, fragment: str) -> Optional["FilterExpression"]:
        """Parse one fragment; returns None when it is malformed."""
        if not isinstance(fragment, str):
            return None
        raw = fragment.strip()
        if not raw:
            return None

        if raw[0] == ".":
            return cls(FilterKind.CLASS, raw[1:], raw=raw) if len(raw) > 1 else None
        if raw[0] == "#":
            return cls(FilterKind.ID, raw[1:], raw=raw) if len(raw) > 1 else None
        if raw[0] == "[":
            if raw[-1] != "]" or len(raw) < 3:
                return None
            inside = raw[1:-1]
            attr, sep, value = inside.partition("=")
            attr = attr.strip()
            if not attr:
                return None
            if not sep:
                return cls(FilterKind.ATTRIBUTE, attr, raw=raw)
            return cls(FilterKind.ATTRIBUTE, attr, _strip_quotes(value.strip()), raw=raw)
        return cls(FilterKind.TAG, raw.lower(), raw=raw)

    def matches(self, record: ElementRecord) -> bool:
        if self.kind is FilterKind.CLASS:
            return self.name in (record.class_ or "").split()
        if self.kind is FilterKind.ID:
            return record.id == self.name
        if self.kind is FilterKind.ATTRIBUTE:
            if self.value is None:
                return self.name in record.attributes
            return record.attributes.get(self.name) == self.value
        return record.tag.lower() == self.name


def _strip_quotes(value: str) -> str:
    if value[:1] in ("'", '"'):
        value = value[1:]
    if value[-1:] in ("'", '"'):
        value = value[:-1]
    return value


class FilterSet:
    """Disjunction of filter fragments."""

    def __init__(self, fragments: Optional[Iterable[str]] = None):
        self.fragments: List[str] = [
            f.strip() for f in (fragments or []) if isinstance(f, str) and f.strip()
        ]
        # Malformed fragments are kept as None so they count as non-matches
        self._expressions = [FilterExpression.parse(f) for f in self.fragments]

    @classmethod
    def parse(cls, value: Union[None, str, Iterable[str]]) -> "FilterSet":
        """Build from a comma-separated string, a list of fragments, or None."""
        if value is None:
            return cls()
        if isinstance(value, str):
            return cls(value.split(","))
        return cls(value)

    @property
    def is_empty(self) -> bool:
        return not self.fragments

    def matches(self, record: ElementRecord) -> bool:
        if self.is_empty:
            return True
        return any(expr is not None and expr.matches(record) for expr in self._expressions)

    def to_csv(self) -> Optional[str]:
        """Render for the in-page walker; None means no filtering."""
        return ",".join(self.fragments) if self.fragments else None

    def __len__(self) -> int:
        return len(self.fragments)

    def __repr__(self) -> str:
        return f"FilterSet({self.fragments!r})"
