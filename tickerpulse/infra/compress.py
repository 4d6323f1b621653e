"""Deflate a finished day's sample file into a compressed artifact."""

from __future__ import annotations

import asyncio
import logging
import os
import zlib
from pathlib import Path
from typing import Optional

COMPRESSED_SUFFIX = "_compressed"


class DailyArchiver:
    """Compress ``<base_dir>/<day_key>`` into ``<base_dir>/<day_key>_compressed``.

    The artifact is written to a temporary file and moved into place, so
    archiving the same day twice simply replaces the artifact.
    """

    def __init__(self, base_dir: str | Path, level: int = 9, logger: Optional[logging.Logger] = None) -> None:
        self.base_dir = Path(base_dir)
        self.level = level
        self.logger = logger or logging.getLogger(__name__)

    def artifact_path(self, day_key: str) -> Path:
        return self.base_dir / f"{day_key}{COMPRESSED_SUFFIX}"

    def archive(self, day_key: str) -> Optional[Path]:
        source = self.base_dir / day_key
        if not source.exists():
            self.logger.warning("Nothing to archive for %s", day_key, extra={"event": "archive_missing", "day": day_key})
            return None

        payload = zlib.compress(source.read_bytes(), self.level)
        target = self.artifact_path(day_key)
        temp_path = target.with_name(target.name + ".tmp")
        temp_path.write_bytes(payload)
        os.replace(temp_path, target)
        self.logger.info(
            "Archived %s",
            day_key,
            extra={"event": "archived", "day": day_key, "bytes_in": source.stat().st_size, "bytes_out": len(payload)},
        )
        return target

    async def archive_async(self, day_key: str) -> Optional[Path]:
        return await asyncio.to_thread(self.archive, day_key)


def inflate(path: str | Path) -> bytes:
    """Return the original bytes of a compressed artifact."""

    return zlib.decompress(Path(path).read_bytes())


__all__ = ["DailyArchiver", "inflate", "COMPRESSED_SUFFIX"]
