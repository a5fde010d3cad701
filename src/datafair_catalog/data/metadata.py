"""Fetch a Data Fair dataset document and normalize it into ResourceMetadata."""

import logging
import re
import unicodedata
from typing import Any

import httpx

from datafair_catalog.config import CatalogConfig
from datafair_catalog.context import GetResourceContext
from datafair_catalog.data.client import auth_headers
from datafair_catalog.errors import MetadataFetchError
from datafair_catalog.models.dataset import Dataset
from datafair_catalog.models.resource import ResourceLicense, ResourceMetadata

logger = logging.getLogger(__name__)

EXTENSION_MARKER = "x-extension"
EMPTY_SLUG = "field"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify_key(key: str) -> str:
    """'_Ext Géo.Lat' -> 'ext_geo_lat'.

    Accents are folded to ASCII. A key with nothing alphanumeric left becomes
    ``EMPTY_SLUG``.
    """
    decomposed = unicodedata.normalize("NFKD", key.lower())
    ascii_key = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    slug = _NON_ALNUM.sub("_", ascii_key).lstrip("_")
    return slug or EMPTY_SLUG


def normalize_field(field: dict[str, Any]) -> dict[str, Any]:
    if EXTENSION_MARKER not in field:
        return field
    normalized = {k: v for k, v in field.items() if k != EXTENSION_MARKER}
    if isinstance(normalized.get("key"), str):
        normalized["key"] = slugify_key(normalized["key"])
    return normalized


def normalize_schema(schema: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    return [normalize_field(f) for f in schema or []]


def resolve_size(dataset: Dataset) -> int | None:
    """First defined of file size, storage size, original file size."""
    for holder in (dataset.file, dataset.storage, dataset.original_file):
        if holder is not None and holder.size is not None:
            return holder.size
    return None


def build_resource(
    dataset: Dataset, config: CatalogConfig, resource_id: str
) -> ResourceMetadata:
    resource = ResourceMetadata(
        id=resource_id,
        title=dataset.title,
        description=dataset.description,
        origin=config.origin_url(resource_id),
        frequency=dataset.frequency,
        image=dataset.image,
        keywords=dataset.keywords,
        size=resolve_size(dataset),
        schema_fields=normalize_schema(dataset.schema_fields),
    )
    if dataset.license is not None:
        resource.license = ResourceLicense(
            title=dataset.license.title or "",
            href=dataset.license.href or "",
        )
    return resource


async def fetch_metadata(
    client: httpx.AsyncClient, context: GetResourceContext
) -> tuple[ResourceMetadata, bool]:
    """Return the normalized metadata and whether a bulk file exists."""
    url = context.catalog_config.dataset_url(context.resource_id)
    try:
        resp = await client.get(url, headers=auth_headers(context.api_key))
    except httpx.HTTPError as e:
        logger.error("Error while fetching metadata from %s: %s", url, e)
        raise MetadataFetchError(str(e) or type(e).__name__) from e

    if resp.status_code != 200:
        logger.error("Metadata request %s answered HTTP %d", url, resp.status_code)
        raise MetadataFetchError(
            f"HTTP error : {resp.status_code}, {resp.text}",
            status_code=resp.status_code,
        )

    try:
        dataset = Dataset.model_validate(resp.json())
    except ValueError as e:
        logger.error("Malformed metadata document at %s: %s", url, e)
        raise MetadataFetchError(
            f"Réponse invalide ({e.__class__.__name__})", status_code=200
        ) from e

    context.log.info("Import des métadonnées de la ressource", {"url": url})
    return build_resource(dataset, context.catalog_config, context.resource_id), (
        dataset.file is not None
    )
