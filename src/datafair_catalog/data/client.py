import httpx

from datafair_catalog.config import API_KEY_HEADER, DEFAULT_TIMEOUT


def auth_headers(api_key: str | None) -> dict[str, str]:
    return {API_KEY_HEADER: api_key} if api_key else {}


def build_client(
    api_key: str | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Async client shared by every request of one or more acquisitions."""
    return httpx.AsyncClient(
        timeout=timeout,
        headers=auth_headers(api_key),
        follow_redirects=True,
        transport=transport,
    )
