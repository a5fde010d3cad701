"""Resource acquisition: metadata first, then bulk file or paginated rows."""

import asyncio
import logging

import httpx

from datafair_catalog.config import DOWNLOAD_TASK
from datafair_catalog.context import GetResourceContext
from datafair_catalog.data.client import auth_headers, build_client
from datafair_catalog.data.metadata import fetch_metadata
from datafair_catalog.download.bulk import download_resource_file
from datafair_catalog.download.lines import download_resource_lines
from datafair_catalog.download.progress import ProgressReporter
from datafair_catalog.download.query import build_lines_url
from datafair_catalog.download.sink import discard
from datafair_catalog.errors import DownloadError
from datafair_catalog.models.import_config import ImportConfig
from datafair_catalog.models.resource import ResourceMetadata

logger = logging.getLogger(__name__)


def use_bulk_file(has_bulk_file: bool, import_config: ImportConfig) -> bool:
    """The ``/full`` file can be neither field- nor row-restricted."""
    return has_bulk_file and not import_config.is_restricted


async def download_resource(
    client: httpx.AsyncClient,
    context: GetResourceContext,
    resource: ResourceMetadata,
    has_bulk_file: bool,
) -> str:
    """Write the resource rows to ``{tmp_dir}/{resource_id}.csv``."""
    destination = context.destination
    config = context.catalog_config
    headers = auth_headers(context.api_key)
    reporter = ProgressReporter(context.progress, DOWNLOAD_TASK)

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if use_bulk_file(has_bulk_file, context.import_config):
            url = f"{config.dataset_url(context.resource_id)}/full"
            context.log.info("Import des données de la ressource", url)
            await context.log.task(
                DOWNLOAD_TASK, "Téléchargement du fichier", resource.size
            )
            await download_resource_file(client, url, destination, reporter, headers)
        else:
            url = build_lines_url(
                config.api_url,
                context.resource_id,
                context.import_config,
                config.page_size,
            )
            context.log.info("Import des données de la ressource", url)
            await context.log.task(
                DOWNLOAD_TASK, "Téléchargement des lignes", resource.size
            )
            await download_resource_lines(client, url, destination, reporter, headers)
    except asyncio.CancelledError:
        discard(destination)
        raise
    except Exception as e:
        logger.exception("Error while downloading %s", context.resource_id)
        context.log.error(f"Erreur pendant le téléchargement du fichier : {e}")
        discard(destination)
        raise DownloadError(str(e)) from e

    return str(destination)


async def get_resource(
    context: GetResourceContext, client: httpx.AsyncClient | None = None
) -> ResourceMetadata:
    """Fetch the metadata of a resource and download its rows as CSV.

    ``file_path`` of the returned metadata points at the downloaded file.
    A client may be shared across concurrent calls; otherwise one is
    created for this call only.
    """
    context.log.step("Import de la ressource")
    if client is None:
        async with build_client(context.api_key, context.catalog_config.timeout) as own:
            return await _get_resource(own, context)
    return await _get_resource(client, context)


async def _get_resource(
    client: httpx.AsyncClient, context: GetResourceContext
) -> ResourceMetadata:
    resource, has_bulk_file = await fetch_metadata(client, context)
    resource.file_path = await download_resource(
        client, context, resource, has_bulk_file
    )
    return resource
