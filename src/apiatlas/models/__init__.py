"""Data models for API Atlas."""

from .schemas import (
    VERSION_PROPERTY_TYPE,
    ApiVersion,
    CatalogResponseError,
    Organization,
    Project,
    extract_versions,
)

__all__ = [
    "VERSION_PROPERTY_TYPE",
    "ApiVersion",
    "CatalogResponseError",
    "Organization",
    "Project",
    "extract_versions",
]
