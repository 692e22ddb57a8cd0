"""Browser session lifecycle: launch, instrument, scan, save and stop."""

import asyncio
import logging
from typing import Dict, List, Optional, Union

from playwright.async_api import (
    Browser,
    BrowserContext,
    CDPSession,
    Frame,
    Page,
    Playwright,
    async_playwright,
)

from .bridge import CaptureBridge
from .cdp import open_cdp_session
from .config import Settings, settings as default_settings
from .exceptions import LaunchError, NoActiveSessionError, SessionActiveError
from .filters import FilterSet
from .log_relay import LogRelay
from .models.element import ElementRecord
from .models.session import LaunchOptions, SaveResult, ScanMode, SessionState
from .persistence import ResultWriter, deduplicate
from .prompts import build_prompt
from .scripts import BINDING_NAME, SCAN_EXPRESSION, capture_script
from .types import LogSink, RawScanResult, SessionStatusDict

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = ["--disable-dev-shm-usage"]
READY_STATE_CHECK = "document.readyState === 'complete'"


class SessionController:
    """
    Owns one browser session at a time.

    State machine: IDLE -> LAUNCHING -> ATTACHED -> STOPPING -> IDLE.
    Every page of the context (first tab, new tabs, popups) gets its own
    CaptureBridge; records stay in the per-page stores until saved.
    """

    def __init__(
        self,
        log_sink: Optional[LogSink] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.relay = LogRelay(log_sink, logger)
        self._state = SessionState.IDLE
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._options: Optional[LaunchOptions] = None
        self._filter_set = FilterSet()
        self._pages: List[Page] = []
        self._bridges: Dict[Page, CaptureBridge] = {}
        self._attached: Dict[Page, asyncio.Event] = {}
        self._cdp_sessions: List[CDPSession] = []
        self._results_saved = False
        self._last_save: Optional[SaveResult] = None
        # One writer at a time so same-second saves get distinct file names
        self._save_lock = asyncio.Lock()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ATTACHED

    @property
    def results_saved(self) -> bool:
        return self._results_saved

    @property
    def records(self) -> List[ElementRecord]:
        """All captured records, merged in page-open order (not deduplicated)."""
        return [r for page in self._pages for r in self._bridges[page].store.records]

    # ------------------------------------------------------------------
    # Launch
    # ------------------------------------------------------------------

    async def launch(self, options: LaunchOptions, replace_existing: bool = False) -> None:
        """
        Start a browser, open ``options.url`` and install the capture script.

        Raises:
            SessionActiveError: If a session is busy (or attached and not replaced)
            LaunchError: If the browser could not be started
        """
        if self._state in (SessionState.LAUNCHING, SessionState.STOPPING):
            raise SessionActiveError(self._state.value)
        if self._state is SessionState.ATTACHED:
            if not replace_existing:
                raise SessionActiveError(self._state.value)
            self.relay.warning("Closing the previous browser session before launching")
            await self._close_handles()
            self._reset()
        elif self._browser is not None or self._playwright is not None:
            self.relay.warning("Cleaning up leftover browser handles")
            await self._close_handles()
            self._reset()

        self._state = SessionState.LAUNCHING
        self._options = options
        self._filter_set = FilterSet.parse(options.filter)
        self.relay.info(f"Launching Chromium (headless={options.headless})")

        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=options.headless, args=CHROMIUM_ARGS, **options.launch_args
            )
            self._context = await self._browser.new_context(ignore_https_errors=True)
            self._context.on("page", self._on_new_page)

            page = await self._context.new_page()
            await self._attach_page(page)
            await self._navigate(page, options)
        except Exception as e:
            self.relay.error(f"Launch failed: {e}")
            await self._close_handles()
            self._reset()
            raise LaunchError("Failed to launch browser session", detail=str(e)) from e

        self._state = SessionState.ATTACHED
        self.relay.success(f"Session ready on {options.url}")

        if options.auto_scan:
            await self._auto_scan()
        else:
            self.relay.info("Use Ctrl/Cmd + Click to capture elements")

    async def _navigate(self, page: Page, options: LaunchOptions) -> None:
        """Open the target URL; failures are reported and the session continues."""
        timeout = options.navigation_timeout_ms
        self.relay.info(f"Navigating to {options.url}")
        try:
            await page.goto(options.url, wait_until="networkidle", timeout=timeout)
            await page.wait_for_function(READY_STATE_CHECK, timeout=timeout)
        except Exception as e:
            self.relay.warning(f"Navigation to {options.url} did not complete: {e}")
        if options.settle_delay_ms:
            await asyncio.sleep(options.settle_delay_ms / 1000)

    async def _auto_scan(self) -> None:
        try:
            await self.scan()
            await self.save_results()
        except Exception as e:
            self.relay.error(f"Automatic scan failed: {e}")

    # ------------------------------------------------------------------
    # Instrumentation
    # ------------------------------------------------------------------

    async def _attach_page(self, page: Page) -> None:
        """Install the capture stack on a page exactly once."""
        if page in self._bridges:
            # Another caller is attaching it; wait until it is instrumented
            await self._attached[page].wait()
            return
        assert self._options is not None

        # Registered before the first await so a concurrent page event skips it
        bridge = CaptureBridge(
            page, self._filter_set, self.relay, on_store=self._on_record_stored
        )
        self._bridges[page] = bridge
        done = asyncio.Event()
        self._attached[page] = done
        self._pages.append(page)
        try:
            await self._instrument(page, bridge)
        finally:
            done.set()

    async def _instrument(self, page: Page, bridge: CaptureBridge) -> None:
        assert self._options is not None
        if self._options.use_cdp and self._context is not None:
            try:
                client = await open_cdp_session(self._context, page)
                self._cdp_sessions.append(client)
                bridge.cdp_session = client
                self.relay.info(f"DevTools session attached to {page.url}")
            except Exception as e:
                self.relay.warning(f"DevTools session not available for {page.url}: {e}")

        try:
            await page.expose_function(BINDING_NAME, bridge.on_callback)
        except Exception as e:
            self.relay.warning(f"Capture callback unavailable, using console fallback: {e}")

        page.on("console", bridge.on_console)
        page.on("frameattached", self._on_frame_attached)
        page.on("popup", self._on_popup)

        script = capture_script()
        try:
            await page.add_init_script(script=script)
        except Exception as e:
            self.relay.warning(f"Could not register init script: {e}")

        for frame in page.frames:
            await self._inject(frame)

    async def _inject(self, frame: Frame) -> bool:
        try:
            await frame.evaluate(capture_script())
            return True
        except Exception as e:
            logger.debug(f"Skipping frame {frame.url}: {e}")
            return False

    async def _on_new_page(self, page: Page) -> None:
        if page in self._bridges:
            return
        self.relay.info(f"New page opened: {page.url}")
        try:
            await self._attach_page(page)
        except Exception as e:
            self.relay.warning(f"Failed to instrument new page {page.url}: {e}")

    async def _on_frame_attached(self, frame: Frame) -> None:
        await self._inject(frame)

    def _on_popup(self, popup: Page) -> None:
        # Attached through the context "page" event
        self.relay.info(f"Popup opened: {popup.url}")

    def _on_record_stored(self, record: ElementRecord) -> None:
        self._results_saved = False

    # ------------------------------------------------------------------
    # Scans
    # ------------------------------------------------------------------

    def _current_page(self) -> Page:
        for page in reversed(self._pages):
            if not page.is_closed():
                return page
        raise NoActiveSessionError("scanning (all pages are closed)")

    async def _evaluate_scan(
        self, page: Page, filter_set: FilterSet, mode: ScanMode
    ) -> RawScanResult:
        args = [filter_set.to_csv(), mode.value]
        try:
            result = await page.evaluate(SCAN_EXPRESSION, args)
            if result is None:
                # Page navigated before the init script ran; install and retry
                await page.evaluate(capture_script())
                result = await page.evaluate(SCAN_EXPRESSION, args)
        except Exception as e:
            self.relay.warning(f"{mode.value} scan failed on {page.url}: {e}")
            return []
        return result or []

    async def _run_scan(
        self, modes: List[ScanMode], filter: Union[None, str, List[str]]
    ) -> List[ElementRecord]:
        if self._state is not SessionState.ATTACHED:
            raise NoActiveSessionError("scanning")
        page = self._current_page()
        bridge = self._bridges[page]
        filter_set = FilterSet.parse(filter) if filter is not None else self._filter_set

        records: List[ElementRecord] = []
        for mode in modes:
            payloads = await self._evaluate_scan(page, filter_set, mode)
            records.extend(await bridge.ingest_scan(payloads, filter_set))

        if records:
            self.relay.success(f"Scan extracted {len(records)} elements from {page.url}")
        else:
            self.relay.warning(f"No matching elements found on {page.url}")
        return records

    async def scan(
        self,
        filter: Union[None, str, List[str]] = None,
        include_hidden: Optional[bool] = None,
    ) -> List[ElementRecord]:
        """
        Walk the most recently opened page for interactive elements.

        The hidden-element pass runs first when ``include_hidden`` (or the
        launch option of the same name) is set.

        Raises:
            NoActiveSessionError: If no session is attached
        """
        if include_hidden is None:
            include_hidden = self._options.include_hidden if self._options else False
        modes = [ScanMode.HIDDEN, ScanMode.INTERACTIVE] if include_hidden else [ScanMode.INTERACTIVE]
        return await self._run_scan(modes, filter)

    async def snapshot(self, filter: Union[None, str, List[str]] = None) -> List[ElementRecord]:
        """Capture every element of the current page with descriptive CSS paths."""
        return await self._run_scan([ScanMode.ALL], filter)

    # ------------------------------------------------------------------
    # Save / stop
    # ------------------------------------------------------------------

    async def save_results(self) -> Optional[SaveResult]:
        """
        Deduplicate every page's records and write the output files.

        Returns None when nothing was captured.

        Raises:
            NoActiveSessionError: If no session was ever launched
            PersistenceError: If an output file could not be written
        """
        if self._options is None:
            raise NoActiveSessionError("saving results")
        options = self._options

        records = deduplicate(self.records)
        if not records:
            self.relay.warning("No elements captured, nothing to save")
            return None

        prompts = None
        if options.generate_prompts:
            prompts = [
                build_prompt(
                    record,
                    options.automation_framework,
                    options.prompt_kind,
                    options.custom_example,
                )
                for record in records
            ]

        writer = ResultWriter(
            options.output_dir, self.settings.JSON_PREFIX, self.settings.PROMPT_PREFIX
        )
        async with self._save_lock:
            result = await writer.write(records, prompts, options.automation_framework)
        self._results_saved = True
        self._last_save = result

        self.relay.success(f"Saved {result.total} unique locators to {result.json_path}")
        self.relay.info(f"{result.visible} visible / {result.hidden} hidden")
        if result.prompt_path:
            self.relay.info(f"Prompt file: {result.prompt_path}")
        return result

    async def stop(self) -> Optional[SaveResult]:
        """
        Save (unless already saved), release the browser and return to IDLE.

        Returns the most recent SaveResult of the session, if any was written.
        """
        if self._state is not SessionState.ATTACHED:
            self.relay.info(f"No active session to stop (state: {self._state.value})")
            return None

        self._state = SessionState.STOPPING
        self.relay.info("Stopping session")
        result = self._last_save
        try:
            if self._results_saved:
                self.relay.info("Results already saved, skipping duplicate save")
            else:
                try:
                    result = await self.save_results() or result
                except Exception as e:
                    self.relay.error(f"Failed to save results: {e}")
            await self._close_handles()
        finally:
            self._reset()
        self.relay.success("Session ended")
        return result

    async def _close_handles(self) -> None:
        """Detach DevTools sessions and close the browser; failures are logged."""
        if self._cdp_sessions:
            self.relay.info(f"Detaching {len(self._cdp_sessions)} DevTools session(s)")
        for client in self._cdp_sessions:
            try:
                await client.detach()
            except Exception as e:
                self.relay.warning(f"DevTools detach failed: {e}")

        if self._browser is not None:
            try:
                await self._browser.close()
            except Exception as e:
                self.relay.warning(f"Browser close failed: {e}")

        if self._playwright is not None:
            try:
                await self._playwright.stop()
            except Exception as e:
                self.relay.warning(f"Playwright stop failed: {e}")

    def _reset(self) -> None:
        self._state = SessionState.IDLE
        self._playwright = None
        self._browser = None
        self._context = None
        self._options = None
        self._filter_set = FilterSet()
        self._pages = []
        self._bridges = {}
        self._attached = {}
        self._cdp_sessions = []
        self._results_saved = False
        self._last_save = None

    def status(self) -> SessionStatusDict:
        return SessionStatusDict(
            state=self._state.value,
            url=self._options.url if self._options else None,
            pages=len(self._pages),
            records=sum(len(b.store) for b in self._bridges.values()),
            cdp_sessions=len(self._cdp_sessions),
            results_saved=self._results_saved,
        )
