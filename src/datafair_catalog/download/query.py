"""Build the ``/lines`` query string from an import configuration.

Values are appended as-is: ``in``/``nin`` lists are sent as
``"v1","v2"`` without percent-encoding, which is what the API expects.
"""

from datafair_catalog.config import PAGE_SIZE
from datafair_catalog.models.import_config import (
    FilterType,
    ImportConfig,
    ImportFilter,
)

_LIST_FILTERS = (FilterType.IN, FilterType.NIN)
_VALUE_FILTERS = (FilterType.STARTS, FilterType.GTE, FilterType.LTE)


def filter_clause(flt: ImportFilter) -> str:
    """Return the ``&key_type=...`` clause, or '' for unknown/empty filters."""
    name = f"{flt.field.key}_{flt.type}"
    if flt.type in _LIST_FILTERS:
        if not flt.values:
            return ""
        return f'&{name}="' + '","'.join(str(v) for v in flt.values) + '"'
    if flt.type in _VALUE_FILTERS:
        if flt.value is None:
            return ""
        return f"&{name}={flt.value}"
    return ""


def build_lines_url(
    api_url: str,
    resource_id: str,
    import_config: ImportConfig,
    page_size: int = PAGE_SIZE,
) -> str:
    url = f"{api_url}/datasets/{resource_id}/lines?format=csv&size={page_size}"
    if import_config.fields:
        url += "&select=" + ",".join(f.key for f in import_config.fields)
    for flt in import_config.filters or []:
        url += filter_clause(flt)
    return url
