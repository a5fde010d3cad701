from pydantic import BaseModel

API_PATH = "/data-fair/api/v1"
API_KEY_HEADER = "x-apiKey"

PAGE_SIZE = 5000  # rows per /lines request
DEFAULT_TIMEOUT = 60.0

DOWNLOAD_TASK = "download"


class CatalogConfig(BaseModel):
    url: str
    timeout: float = DEFAULT_TIMEOUT
    page_size: int = PAGE_SIZE

    @property
    def api_url(self) -> str:
        return f"{self.url.rstrip('/')}{API_PATH}"

    def dataset_url(self, resource_id: str) -> str:
        return f"{self.api_url}/datasets/{resource_id}"

    def origin_url(self, resource_id: str) -> str:
        """Public dataset page, as linked from the catalog."""
        return f"{self.url.rstrip('/')}/datasets/{resource_id}"
