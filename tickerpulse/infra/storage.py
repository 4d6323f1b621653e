"""Append-only per-day line storage for ticker samples."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Callable, Optional

LineFormat = Callable[[str], str]


def _plain_line(data: str) -> str:
    return f"{data}\n"


class DailyLineWriter:
    """Append formatted lines to ``<base_dir>/<day_key>``; never overwrites."""

    def __init__(self, base_dir: str | Path) -> None:
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._format: LineFormat = _plain_line

    def path_for(self, day_key: str) -> Path:
        return self.base_dir / day_key

    def set_format(self, formatter: Optional[LineFormat]) -> None:
        self._format = formatter or _plain_line

    def append_line(self, day_key: str, line: str) -> Path:
        path = self.path_for(day_key)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as f:
            f.write(line)
        return path

    def write_with_format(self, day_key: str, data: str) -> Path:
        flattened = " ".join(data.splitlines()).strip()
        return self.append_line(day_key, self._format(flattened))

    async def append_line_async(self, day_key: str, line: str) -> Path:
        return await asyncio.to_thread(self.append_line, day_key, line)

    async def write_with_format_async(self, day_key: str, data: str) -> Path:
        return await asyncio.to_thread(self.write_with_format, day_key, data)


__all__ = ["DailyLineWriter"]
