from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ResourceLicense(BaseModel):
    title: str = ""
    href: str = ""


class ResourceMetadata(BaseModel):
    """Canonical description of a catalog resource.

    ``file_path`` stays empty until a download has fully succeeded.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str | None = None
    description: str | None = None
    format: str = "csv"
    origin: str | None = None
    frequency: str | None = None
    image: str | None = None
    keywords: list[str] | None = None
    size: int | None = None
    schema_fields: list[dict[str, Any]] = Field(default_factory=list, alias="schema")
    license: ResourceLicense | None = None
    file_path: str = Field(default="", alias="filePath")
