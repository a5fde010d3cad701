from enum import StrEnum

from pydantic import BaseModel


class FilterType(StrEnum):
    IN = "in"
    NIN = "nin"
    STARTS = "starts"
    GTE = "gte"
    LTE = "lte"


class FieldRef(BaseModel):
    key: str


class ImportFilter(BaseModel):
    field: FieldRef
    # Kept as a plain string: unknown types are ignored, not rejected.
    type: str
    value: str | int | float | None = None
    values: list[str | int | float] | None = None


class ImportConfig(BaseModel):
    """Field selection and row filters requested by the caller."""

    fields: list[FieldRef] | None = None
    filters: list[ImportFilter] | None = None

    @property
    def is_restricted(self) -> bool:
        return bool(self.fields) or bool(self.filters)
