from datafair_catalog.download.driver import (
    download_resource,
    get_resource,
    use_bulk_file,
)

__all__ = ["download_resource", "get_resource", "use_bulk_file"]
