import asyncio
import logging
import os
from pathlib import Path
from typing import BinaryIO

logger = logging.getLogger(__name__)


class FileSink:
    """Binary append-only file written from a worker thread.

    Every ``write`` is awaited before the caller pulls the next chunk, which
    keeps memory bounded whatever the size of the resource.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._fh: BinaryIO | None = None

    async def open(self) -> "FileSink":
        # "wb" truncates any previous download of the same resource
        self._fh = await asyncio.to_thread(open, self.path, "wb")
        return self

    async def write(self, data: bytes) -> None:
        if self._fh is None:
            raise RuntimeError(f"Sink {self.path} is not open")
        await asyncio.to_thread(self._fh.write, data)

    async def close(self) -> None:
        """Flush to disk and close; a no-op once closed."""
        fh, self._fh = self._fh, None
        if fh is None:
            return
        await asyncio.to_thread(_flush_and_close, fh)

    async def __aenter__(self) -> "FileSink":
        return await self.open()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def _flush_and_close(fh: BinaryIO) -> None:
    try:
        fh.flush()
        os.fsync(fh.fileno())
    finally:
        fh.close()


def discard(path: Path) -> None:
    """Best-effort removal of a partial download."""
    try:
        path.unlink(missing_ok=True)
    except OSError:
        logger.warning("Could not remove partial file %s", path, exc_info=True)
