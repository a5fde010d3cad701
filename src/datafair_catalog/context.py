"""Context bundle handed over by the host, and the sinks it reports to."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from datafair_catalog.config import CatalogConfig
from datafair_catalog.models.import_config import ImportConfig

logger = logging.getLogger(__name__)


class LogSink(Protocol):
    """Host-side journal of an import."""

    def info(self, message: str, details: Any = None) -> None: ...

    def error(self, message: str) -> None: ...

    def step(self, name: str) -> None: ...

    async def task(self, name: str, label: str, total: int | None) -> None: ...


class ProgressSink(Protocol):
    async def progress(self, task_name: str, bytes_so_far: int) -> None: ...


class LoggingSink:
    """Log and progress sink backed by the standard logging module."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger
        self.totals: dict[str, int | None] = {}

    def info(self, message: str, details: Any = None) -> None:
        if details is None:
            self._log.info(message)
        else:
            self._log.info("%s %s", message, details)

    def error(self, message: str) -> None:
        self._log.error(message)

    def step(self, name: str) -> None:
        self._log.info("== %s", name)

    async def task(self, name: str, label: str, total: int | None) -> None:
        self.totals[name] = total
        self._log.info(
            "%s (%s)", label, f"{total} bytes" if total is not None else "unknown size"
        )

    async def progress(self, task_name: str, bytes_so_far: int) -> None:
        total = self.totals.get(task_name)
        if total:
            pct = min(100.0, bytes_so_far * 100 / total)
            self._log.debug(
                "%s: %d/%d bytes (%.1f%%)", task_name, bytes_so_far, total, pct
            )
        else:
            self._log.debug("%s: %d bytes", task_name, bytes_so_far)


@dataclass
class GetResourceContext:
    catalog_config: CatalogConfig
    resource_id: str
    tmp_dir: Path
    import_config: ImportConfig = field(default_factory=ImportConfig)
    api_key: str | None = None
    log: LogSink = field(default_factory=LoggingSink)
    progress: ProgressSink | None = None

    @property
    def destination(self) -> Path:
        return Path(self.tmp_dir) / f"{self.resource_id}.csv"
