"""Async HTTP client for the API catalog service.

This module provides functionality to:
- List organizations, projects and APIs from the catalog
- Fetch API records and extract their versions
- Download the raw specification document for an API version
"""

from typing import Any, Optional
from urllib.parse import quote

import httpx

from apiatlas.log import get_logger
from apiatlas.models import (
    ApiVersion,
    CatalogResponseError,
    Organization,
    Project,
    extract_versions,
)


DEFAULT_BASE_URL = "https://api.swaggerhub.com"
PAGE_SIZE = 100  # Fixed page size; only the first page is ever requested

# Failures the cascade recovers from; anything else is a bug
FETCH_ERRORS = (httpx.HTTPError, httpx.InvalidURL, CatalogResponseError)

logger = get_logger(__name__)


class CatalogClient:
    """Client for the catalog REST API.

    Usable as an async context manager. Requests are never retried.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        http: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize catalog client.

        Args:
            token: Optional API key sent as a bearer token.
            base_url: Root URL of the catalog service.
            timeout: Request timeout in seconds.
            http: Pre-built HTTP client to use instead of creating one.
                  The caller keeps ownership of it.
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = http
        self._owns_client = http is None

    @property
    def headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        headers = {"accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
            )
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CatalogClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def get(self, path: str, **kwargs) -> httpx.Response:
        """Make a GET request and raise on non-2xx status.

        Raises:
            httpx.HTTPStatusError: If the service answers with an error status
            httpx.HTTPError: On transport failures
        """
        logger.debug("catalog.request", path=path, params=kwargs.get("params"))
        response = await self.client.get(path, headers=self.headers, **kwargs)
        response.raise_for_status()
        return response

    async def get_json(self, path: str, **kwargs) -> dict[str, Any]:
        """GET a path and decode its JSON object body."""
        response = await self.get(path, **kwargs)
        try:
            data = response.json()
        except ValueError as e:
            raise CatalogResponseError(f"Invalid JSON from {path}: {e}") from e
        if not isinstance(data, dict):
            raise CatalogResponseError(f"Expected a JSON object from {path}")
        return data

    async def list_organizations(self) -> list[Organization]:
        """List organizations visible to the token, sorted by name."""
        data = await self.get_json(
            "/user-management/v1/orgs",
            params={"sortBy": "NAME", "order": "ASC", "page": 0, "pageSize": PAGE_SIZE},
        )
        return _parse_list(Organization, data.get("items"))

    async def list_projects(self, owner: str) -> list[Project]:
        """List projects owned by an organization.

        Args:
            owner: Organization name

        Returns:
            Projects in ascending order, at most one page
        """
        data = await self.get_json(
            f"/projects/{_segment(owner)}",
            params={"nameOnly": "true", "page": 0, "limit": PAGE_SIZE, "order": "ASC"},
        )
        return _parse_list(Project, data.get("projects"))

    async def list_apis(self, owner: str, project: str) -> list[str]:
        """List the API names contained in a project."""
        data = await self.get_json(f"/projects/{_segment(owner)}/{_segment(project)}")
        apis = data.get("apis") or []
        if not isinstance(apis, list):
            raise CatalogResponseError("Project 'apis' is not a list")
        return [str(name) for name in apis]

    async def get_api(self, owner: str, api: str) -> dict[str, Any]:
        """Fetch the raw API record listing all its versions."""
        return await self.get_json(f"/apis/{_segment(owner)}/{_segment(api)}")

    async def list_versions(self, owner: str, api: str) -> list[Optional[ApiVersion]]:
        """Fetch an API record and extract one version entry per item.

        Items without an X-Version property yield None.
        """
        record = await self.get_api(owner, api)
        return extract_versions(record)

    async def get_document(self, owner: str, api: str, version: str) -> str:
        """Download the specification document of an API version.

        Returns:
            The raw YAML text
        """
        path = (
            f"/apis/{_segment(owner)}/{_segment(api)}/{_segment(version)}/swagger.yaml"
        )
        response = await self.get(path)
        return response.text


def _segment(value: str) -> str:
    """Percent-encode one URL path segment, including any slashes."""
    return quote(value, safe="")

def _parse_list(model, items) -> list:
    """Validate a list of JSON objects into models; None means empty."""
    if items is None:
        return []
    if not isinstance(items, list):
        raise CatalogResponseError(f"Expected a list of {model.__name__} objects")
    try:
        return [model.model_validate(item) for item in items]
    except ValueError as e:
        raise CatalogResponseError(f"Invalid {model.__name__} payload: {e}") from e
