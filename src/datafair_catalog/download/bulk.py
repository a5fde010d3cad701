import logging
from pathlib import Path

import httpx

from datafair_catalog.download.progress import ProgressReporter
from datafair_catalog.download.sink import FileSink, discard
from datafair_catalog.errors import StreamError

logger = logging.getLogger(__name__)


async def download_resource_file(
    client: httpx.AsyncClient,
    url: str,
    destination: Path,
    reporter: ProgressReporter,
    headers: dict[str, str] | None = None,
) -> None:
    """Copy the pre-built ``/full`` file byte for byte.

    Import filters do not apply here. The partial file is removed on any
    error, and the call returns only once the file is flushed and closed.
    """
    try:
        async with client.stream("GET", url, headers=headers or {}) as response:
            if response.status_code != 200:
                raise StreamError(
                    f"Error while fetching data: HTTP {response.reason_phrase}",
                    status_code=response.status_code,
                )
            async with FileSink(destination) as sink:
                async for chunk in response.aiter_bytes():
                    await sink.write(chunk)
                    reporter.add(len(chunk))
    except (httpx.HTTPError, OSError) as e:
        logger.error("Error while downloading %s: %s", url, e)
        discard(destination)
        raise StreamError(str(e) or type(e).__name__) from e
    except StreamError:
        discard(destination)
        raise
    finally:
        await reporter.settle()

    await reporter.flush()
    logger.info("Downloaded %d bytes to %s", reporter.total_bytes, destination)
