from datafair_catalog.models.dataset import Dataset
from datafair_catalog.models.import_config import (
    FieldRef,
    FilterType,
    ImportConfig,
    ImportFilter,
)
from datafair_catalog.models.resource import ResourceLicense, ResourceMetadata

__all__ = [
    "Dataset",
    "FieldRef",
    "FilterType",
    "ImportConfig",
    "ImportFilter",
    "ResourceLicense",
    "ResourceMetadata",
]
