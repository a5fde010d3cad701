"""Paginated ``/lines`` download merged into a single CSV file."""

import logging
import re
from enum import StrEnum
from pathlib import Path

import httpx

from datafair_catalog.download.progress import ProgressReporter
from datafair_catalog.download.sink import FileSink
from datafair_catalog.errors import StreamError

logger = logging.getLogger(__name__)

NEXT_REL = "rel=next"

# <url>; params  -- the url may itself contain commas
_LINK_ENTRY = re.compile(r"<([^>]*)>([^,<]*)")


def extract_next_page_url(link_header: str | None) -> str | None:
    """Return the ``rel=next`` target of a link header, if any."""
    if not link_header:
        return None
    for match in _LINK_ENTRY.finditer(link_header):
        url, params = match.group(1), match.group(2)
        if any(p.strip() == NEXT_REL for p in params.split(";")):
            return url.strip()
    return None


class HeaderState(StrEnum):
    AWAITING_NEWLINE = "awaiting-newline"
    PASSTHROUGH = "passthrough"


class HeaderStripper:
    """Drops everything up to and including the first newline of a page.

    The header line may be split over any number of chunks.
    """

    def __init__(self) -> None:
        self.state = HeaderState.AWAITING_NEWLINE

    def feed(self, chunk: bytes) -> bytes:
        if self.state is HeaderState.PASSTHROUGH:
            return chunk
        idx = chunk.find(b"\n")
        if idx == -1:
            return b""
        self.state = HeaderState.PASSTHROUGH
        return chunk[idx + 1 :]


async def _append_page(
    client: httpx.AsyncClient,
    url: str,
    sink: FileSink,
    reporter: ProgressReporter,
    headers: dict[str, str],
    strip_header: bool,
) -> str | None:
    """Stream one page into the sink and return the next page url."""
    async with client.stream("GET", url, headers=headers) as response:
        if response.status_code != 200:
            raise StreamError(
                "Error while fetching data: HTTP "
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        stripper = HeaderStripper() if strip_header else None
        async for chunk in response.aiter_bytes():
            if stripper is not None:
                chunk = stripper.feed(chunk)
            if chunk:
                await sink.write(chunk)
                reporter.add(len(chunk))
        return extract_next_page_url(response.headers.get("link"))


async def download_resource_lines(
    client: httpx.AsyncClient,
    url: str,
    destination: Path,
    reporter: ProgressReporter,
    headers: dict[str, str] | None = None,
) -> None:
    """Follow ``rel=next`` links from ``url`` into ``destination``.

    Only the first page keeps its CSV header. Pages are fetched strictly one
    after the other. On failure the partial file is left in place.
    """
    next_url: str | None = url
    pages = 0
    try:
        async with FileSink(destination) as sink:
            while next_url is not None:
                logger.debug("Fetching page %d: %s", pages + 1, next_url)
                next_url = await _append_page(
                    client,
                    next_url,
                    sink,
                    reporter,
                    headers or {},
                    strip_header=pages > 0,
                )
                pages += 1
    except (httpx.HTTPError, OSError) as e:
        logger.error("Error while fetching lines at %s: %s", next_url, e)
        raise StreamError(str(e) or type(e).__name__) from e
    finally:
        await reporter.settle()

    await reporter.flush()
    logger.info(
        "Downloaded %d page(s), %d bytes to %s",
        pages,
        reporter.total_bytes,
        destination,
    )
