"""Deduplication and durable output writing."""

import json
import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

import aiofiles
import aiofiles.os

from .exceptions import PersistenceError
from .models.element import ElementRecord
from .models.session import SaveResult

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "|"
PROMPT_SEPARATOR = "\n\n========================\n\n"
TMP_SUFFIX = ".tmp"


def dedup_key(record: ElementRecord) -> str:
    """Composite identity of a record: pageUrl, tag, id, name, css, xpath."""
    parts = [
        record.pageUrl or "",
        record.tag or "",
        record.id or "",
        record.name or "",
        record.css or "",
        record.xpath or "",
    ]
    return KEY_SEPARATOR.join(parts).lower()


def deduplicate(records: Iterable[ElementRecord]) -> List[ElementRecord]:
    """Keep the first record per dedup key, in first-seen order."""
    seen = set()
    unique: List[ElementRecord] = []
    for record in records:
        key = dedup_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def get_timestamp(now: Optional[datetime] = None) -> str:
    """Sortable, filename-safe UTC timestamp, e.g. 2025-10-21_08-42-31."""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%d_%H-%M-%S")


def sanitize_token(value: str, default: str = "playwright") -> str:
    """Restrict a filename token to letters, digits, '_' and '-'."""
    cleaned = re.sub(r"[^A-Za-z0-9_-]", "", value or "")
    return cleaned or default


async def ensure_dir(directory: Union[str, Path]) -> Path:
    """Create the directory (and parents) if needed."""
    path = Path(directory)
    await aiofiles.os.makedirs(path, exist_ok=True)
    return path


async def atomic_write(path: Union[str, Path], data: str) -> Path:
    """
    Write text so readers never observe a partial file.

    Data goes to a per-call ``<path>.<token>.tmp`` first and is renamed over
    the destination, so concurrent writers never share a temp file.
    On failure the temp file is removed and the destination is untouched.

    Raises:
        PersistenceError: If writing or renaming fails
    """
    target = Path(path)
    tmp = target.with_name(f"{target.name}.{uuid.uuid4().hex[:8]}{TMP_SUFFIX}")
    try:
        async with aiofiles.open(tmp, "w", encoding="utf-8") as f:
            await f.write(data)
            await f.flush()
        await aiofiles.os.replace(tmp, target)
    except Exception as e:
        try:
            await aiofiles.os.remove(tmp)
        except FileNotFoundError:
            pass
        except OSError as cleanup_error:
            logger.warning(f"Could not remove temp file {tmp}: {cleanup_error}")
        raise PersistenceError(str(target), detail=str(e)) from e

    logger.debug(f"Wrote {target} ({len(data)} chars)")
    return target


class ResultWriter:
    """
    Writes the deduplicated locator inventory and optional prompt file.

    Output files:
    - <output_dir>/<json_prefix>_<ts>.json
    - <output_dir>/<prompt_prefix>_<framework>_<ts>.txt (prompts only)
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        json_prefix: str = "locators",
        prompt_prefix: str = "copilot_prompts",
    ):
        self.output_dir = Path(output_dir)
        self.json_prefix = json_prefix
        self.prompt_prefix = prompt_prefix

    async def _free_token(self, ts: str, framework: str) -> str:
        # A second save within the same second gets _2, _3, ... appended
        token, n = ts, 1
        while True:
            names = (
                f"{self.json_prefix}_{token}.json",
                f"{self.prompt_prefix}_{sanitize_token(framework)}_{token}.txt",
            )
            taken = [await aiofiles.os.path.exists(self.output_dir / name) for name in names]
            if not any(taken):
                return token
            n += 1
            token = f"{ts}_{n}"

    async def write(
        self,
        records: Sequence[ElementRecord],
        prompts: Optional[Sequence[str]] = None,
        framework: str = "playwright",
    ) -> SaveResult:
        """
        Persist already-deduplicated records (and prompts, if given).

        Returns:
            SaveResult: Paths written and visible/hidden counts
        """
        await ensure_dir(self.output_dir)
        ts = await self._free_token(get_timestamp(), framework)

        json_path = self.output_dir / f"{self.json_prefix}_{ts}.json"
        payload = json.dumps(
            [record.to_output() for record in records], indent=2, ensure_ascii=False
        )
        await atomic_write(json_path, payload)

        prompt_path: Optional[Path] = None
        if prompts:
            prompt_path = (
                self.output_dir
                / f"{self.prompt_prefix}_{sanitize_token(framework)}_{ts}.txt"
            )
            await atomic_write(prompt_path, PROMPT_SEPARATOR.join(prompts))

        hidden = sum(1 for record in records if record.hidden)
        return SaveResult(
            json_path=str(json_path),
            prompt_path=str(prompt_path) if prompt_path else None,
            total=len(records),
            visible=len(records) - hidden,
            hidden=hidden,
        )
