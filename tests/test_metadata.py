import asyncio
from pathlib import Path

import httpx
import pytest

from datafair_catalog.config import CatalogConfig
from datafair_catalog.context import GetResourceContext
from datafair_catalog.data.metadata import (
    build_resource,
    fetch_metadata,
    normalize_field,
    normalize_schema,
    resolve_size,
    slugify_key,
)
from datafair_catalog.errors import MetadataFetchError
from datafair_catalog.models.dataset import Dataset

BASE = "https://example.com"
CONFIG = CatalogConfig(url=BASE)


class RecordingLog:
    def __init__(self) -> None:
        self.infos: list[tuple[str, object]] = []

    def info(self, message, details=None):
        self.infos.append((message, details))

    def error(self, message):
        pass

    def step(self, name):
        pass

    async def task(self, name, label, total):
        pass


def _fetch(handler, tmp_path: Path, api_key: str | None = None, log=None):
    context = GetResourceContext(
        catalog_config=CONFIG,
        resource_id="res-1",
        tmp_dir=tmp_path,
        api_key=api_key,
        log=log or RecordingLog(),
    )

    async def run():
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport) as client:
            return await fetch_metadata(client, context)

    return asyncio.run(run())


class TestSlugifyKey:
    def test_lowercases_and_collapses(self) -> None:
        assert slugify_key("Geo Point..Lat") == "geo_point_lat"

    def test_no_leading_underscore(self) -> None:
        assert slugify_key("_ext_geocoder_lat") == "ext_geocoder_lat"
        assert slugify_key("__Ext--Lon") == "ext_lon"

    def test_already_slug(self) -> None:
        assert slugify_key("field1") == "field1"

    def test_nothing_alphanumeric_left(self) -> None:
        assert slugify_key("___") == "field"
        assert slugify_key("_") == "field"
        key = normalize_field({"key": "___", "x-extension": "a"})["key"]
        assert not key.startswith("_")

    def test_accents_folded(self) -> None:
        assert slugify_key("Département") == "departement"
        assert slugify_key("_Code Région") == "code_region"


class TestNormalizeSchema:
    def test_unmarked_field_unchanged(self) -> None:
        field = {"key": "My Field", "type": "string", "title": "Mine"}
        assert normalize_field(field) == field

    def test_marked_field_loses_marker(self) -> None:
        field = {"key": "field1", "type": "string", "x-extension": "geo-point"}
        assert normalize_field(field) == {"key": "field1", "type": "string"}

    def test_marked_field_key_slugged(self) -> None:
        field = {"key": "_Ext.Geo Lat", "type": "number", "x-extension": "geo"}
        assert normalize_field(field) == {"key": "ext_geo_lat", "type": "number"}

    def test_does_not_mutate_input(self) -> None:
        field = {"key": "_A", "x-extension": "x"}
        normalize_field(field)
        assert field == {"key": "_A", "x-extension": "x"}

    def test_order_preserved(self) -> None:
        schema = [
            {"key": "b", "type": "string"},
            {"key": "_A", "type": "string", "x-extension": "calc"},
            {"key": "c", "type": "integer"},
        ]
        assert [f["key"] for f in normalize_schema(schema)] == ["b", "a", "c"]

    def test_empty_and_missing(self) -> None:
        assert normalize_schema([]) == []
        assert normalize_schema(None) == []

    def test_fixed_point(self) -> None:
        schema = [
            {"key": "_Ext Lat", "type": "number", "x-extension": "geo"},
            {"key": "Plain", "type": "string"},
        ]
        once = normalize_schema(schema)
        assert normalize_schema(once) == once


class TestResolveSize:
    def test_file_first(self) -> None:
        ds = Dataset.model_validate({"file": {"size": 10}, "storage": {"size": 20}})
        assert resolve_size(ds) == 10

    def test_storage_fallback(self) -> None:
        ds = Dataset.model_validate({"storage": {"size": 20}})
        assert resolve_size(ds) == 20

    def test_original_file_fallback(self) -> None:
        ds = Dataset.model_validate({"file": {}, "originalFile": {"size": 30}})
        assert resolve_size(ds) == 30

    def test_none(self) -> None:
        assert resolve_size(Dataset()) is None


class TestBuildResource:
    def test_descriptive_fields(self) -> None:
        ds = Dataset.model_validate(
            {
                "id": "res-1",
                "title": "Test Resource",
                "description": "A simple CSV resource",
                "frequency": "monthly",
                "keywords": ["test"],
                "image": "https://example.com/img.png",
                "file": {"size": 1234},
                "schema": [],
            }
        )
        resource = build_resource(ds, CONFIG, "res-1")
        assert resource.id == "res-1"
        assert resource.title == "Test Resource"
        assert resource.frequency == "monthly"
        assert resource.keywords == ["test"]
        assert resource.size == 1234
        assert resource.format == "csv"
        assert resource.origin == "https://example.com/datasets/res-1"
        assert resource.file_path == ""
        assert resource.license is None

    def test_license_defaults(self) -> None:
        ds = Dataset.model_validate({"license": {"title": "MIT License"}})
        resource = build_resource(ds, CONFIG, "r")
        assert resource.license is not None
        assert resource.license.title == "MIT License"
        assert resource.license.href == ""

    def test_serialized_aliases(self) -> None:
        ds = Dataset.model_validate({"schema": [{"key": "a", "type": "string"}]})
        dumped = build_resource(ds, CONFIG, "r").model_dump(by_alias=True)
        assert dumped["schema"] == [{"key": "a", "type": "string"}]
        assert dumped["filePath"] == ""


class TestFetchMetadata:
    def test_success(self, tmp_path: Path) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "title": "Licensed Resource",
                    "license": {
                        "title": "MIT License",
                        "href": "https://opensource.org/licenses/MIT",
                    },
                    "file": {"size": 500},
                },
            )

        log = RecordingLog()
        resource, has_bulk_file = _fetch(handler, tmp_path, log=log)

        assert str(seen[0].url) == f"{BASE}/data-fair/api/v1/datasets/res-1"
        assert "x-apikey" not in seen[0].headers
        assert has_bulk_file is True
        assert resource.size == 500
        assert resource.license is not None
        assert resource.license.href == "https://opensource.org/licenses/MIT"
        assert log.infos == [
            (
                "Import des métadonnées de la ressource",
                {"url": f"{BASE}/data-fair/api/v1/datasets/res-1"},
            )
        ]

    def test_no_bulk_file_even_with_size(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"storage": {"size": 2000}})

        resource, has_bulk_file = _fetch(handler, tmp_path)
        assert has_bulk_file is False
        assert resource.size == 2000

    def test_api_key_header(self, tmp_path: Path) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"title": "T"})

        _fetch(handler, tmp_path, api_key="testApiKey")
        assert seen[0].headers["x-apiKey"] == "testApiKey"

    def test_not_found(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "Dataset not found"})

        with pytest.raises(MetadataFetchError) as exc_info:
            _fetch(handler, tmp_path)
        assert exc_info.value.status_code == 404
        assert "Erreur lors de la récuperation de la resource DataFair" in str(
            exc_info.value
        )
        assert "404" in str(exc_info.value)

    def test_transport_error(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Network error", request=request)

        with pytest.raises(MetadataFetchError, match="Network error"):
            _fetch(handler, tmp_path)

    def test_malformed_body(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="invalid json")

        with pytest.raises(MetadataFetchError):
            _fetch(handler, tmp_path)

    def test_body_not_an_object(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["a", "b"])

        with pytest.raises(MetadataFetchError):
            _fetch(handler, tmp_path)
