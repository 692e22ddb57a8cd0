"""Capture bridge: moves element payloads from a page into the controller."""

import json
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from playwright.async_api import CDPSession, ConsoleMessage, Page
from pydantic import ValidationError

from .cdp import get_advanced_metadata
from .filters import FilterSet
from .log_relay import LogRelay
from .models.element import ElementRecord
from .scripts import CONSOLE_PREFIX

logger = logging.getLogger(__name__)


class CaptureStore:
    """Append-only list of records captured from one page."""

    def __init__(self):
        self._records: List[ElementRecord] = []

    def append(self, record: ElementRecord) -> None:
        self._records.append(record)

    @property
    def records(self) -> List[ElementRecord]:
        return list(self._records)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class CaptureBridge:
    """
    One bridge per page.

    Payloads arrive through the exposed callback or, as a fallback, through
    console lines carrying ``CONSOLE_PREFIX``. Each ``captureId`` is accepted
    once regardless of channel.
    """

    def __init__(
        self,
        page: Page,
        filter_set: Optional[FilterSet],
        relay: LogRelay,
        cdp_session: Optional[CDPSession] = None,
        on_store: Optional[Callable[[ElementRecord], None]] = None,
    ):
        self.page = page
        self.filter_set = filter_set or FilterSet()
        self.relay = relay
        self.cdp_session = cdp_session
        self.on_store = on_store
        self.store = CaptureStore()
        self._seen_ids: set = set()

    async def on_callback(self, payload: Any) -> Optional[ElementRecord]:
        """Handler for the exposed ``__locatorSend`` function."""
        return await self._deliver(payload)

    async def on_console(self, message: ConsoleMessage) -> None:
        """Handler for page console events."""
        text = message.text
        if not text.startswith(CONSOLE_PREFIX):
            return
        try:
            payload = json.loads(text[len(CONSOLE_PREFIX):])
        except json.JSONDecodeError as e:
            self.relay.warning(f"Malformed capture payload on console: {e}")
            return
        await self._deliver(payload)

    async def ingest_scan(
        self, payloads: Iterable[Dict[str, Any]], filter_set: Optional[FilterSet] = None
    ) -> List[ElementRecord]:
        """Store walker results; returns the records actually kept."""
        kept = []
        for payload in payloads or []:
            record = await self._accept(payload, filter_set or self.filter_set)
            if record is not None:
                kept.append(record)
        return kept

    async def _deliver(self, payload: Any) -> Optional[ElementRecord]:
        if not isinstance(payload, dict):
            self.relay.warning("Ignoring non-object capture payload")
            return None
        capture_id = payload.get("captureId")
        if capture_id is not None:
            # Marked before any await so the other channel sees it
            if capture_id in self._seen_ids:
                logger.debug(f"Duplicate capture {capture_id} ignored")
                return None
            self._seen_ids.add(capture_id)
        return await self._accept(payload, self.filter_set)

    async def _accept(
        self, payload: Dict[str, Any], filter_set: FilterSet
    ) -> Optional[ElementRecord]:
        try:
            record = ElementRecord.from_page(payload)
        except ValidationError as e:
            self.relay.warning(f"Invalid element payload dropped: {e.error_count()} error(s)")
            return None

        if not filter_set.matches(record):
            return None

        record.stamp(self.page.url)

        if self.cdp_session is not None and record.css:
            await self._enrich(record)

        self.store.append(record)
        if self.on_store is not None:
            self.on_store(record)
        self.relay.info(f"Captured element: {record.tag} {record.css}")
        return record

    async def _enrich(self, record: ElementRecord) -> None:
        # The DevTools lookup runs against the top document only
        if record.crossOrigin or record.shadowHostChain:
            where = "a child frame" if record.crossOrigin else "a shadow root"
            self.relay.warning(
                f"Skipping DevTools enrichment for {record.css}: element is inside {where}"
            )
            return
        meta = await get_advanced_metadata(self.page, self.cdp_session, record.css)
        if meta is None:
            self.relay.warning(f"No DevTools metadata for {record.css}")
        elif meta.error:
            self.relay.warning(f"DevTools enrichment failed for {record.css}: {meta.error}")
        else:
            record.advanced = meta
