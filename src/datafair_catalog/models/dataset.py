"""Upstream Data Fair dataset document, as returned by ``GET /datasets/{id}``."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class DatasetFile(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None
    size: int | None = None
    mimetype: str | None = None


class DatasetStorage(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    size: int | None = None
    data_files: list[DatasetFile] = Field(default_factory=list, alias="dataFiles")


class DatasetLicense(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str | None = None
    href: str | None = None


class Dataset(BaseModel):
    """Only the keys the normalizer reads are typed; the rest is kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = None
    title: str | None = None
    description: str | None = None
    frequency: str | None = None
    image: str | None = None
    keywords: list[str] | None = None
    page: str | None = None
    license: DatasetLicense | None = None
    file: DatasetFile | None = None
    storage: DatasetStorage | None = None
    original_file: DatasetFile | None = Field(default=None, alias="originalFile")
    schema_fields: list[dict[str, Any]] | None = Field(default=None, alias="schema")
