"""Error types raised while acquiring a catalog resource.

Messages of ``MetadataFetchError`` and ``DownloadError`` are shown to end
users as-is, so they are French and never carry a traceback.
"""

METADATA_ERROR_PREFIX = "Erreur lors de la récuperation de la resource DataFair."
DOWNLOAD_ERROR_PREFIX = "Erreur pendant le téléchargement du fichier"


class CatalogError(Exception):
    """Base class for errors raised by this package."""

    def __init__(self, message: str, *, cause: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class MetadataFetchError(CatalogError):
    """The dataset metadata could not be fetched or understood."""

    def __init__(
        self, cause: str, *, status_code: int | None = None
    ) -> None:
        super().__init__(f"{METADATA_ERROR_PREFIX} {cause}", cause=cause)
        self.status_code = status_code


class DownloadError(CatalogError):
    """The bulk file or the paginated rows could not be written locally."""

    def __init__(self, cause: str) -> None:
        super().__init__(f"{DOWNLOAD_ERROR_PREFIX}: {cause}", cause=cause)


class StreamError(CatalogError):
    """A source or sink stream failed mid-transfer."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message, cause=message)
        self.status_code = status_code
