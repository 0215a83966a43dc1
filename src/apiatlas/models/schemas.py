"""Pydantic schemas for API catalog entities."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# Property type marking the version label inside an API record
VERSION_PROPERTY_TYPE = "X-Version"


class CatalogResponseError(ValueError):
    """Raised when a catalog payload does not have the expected shape."""


class Organization(BaseModel):
    """An organization in the catalog."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)

    id: str
    name: str
    description: Optional[str] = None
    email: Optional[str] = None
    member_count: Optional[int] = Field(default=None, alias="memberCount")


class Project(BaseModel):
    """A project owned by an organization.

    The catalog omits owner and description when queried with nameOnly=true.
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    owner: Optional[str] = None
    description: Optional[str] = None


class ApiVersion(BaseModel):
    """The X-Version property of an API record."""

    model_config = ConfigDict(extra="allow")

    type: str = VERSION_PROPERTY_TYPE
    value: str
    url: Optional[str] = None


def extract_versions(record: dict[str, Any]) -> list[Optional[ApiVersion]]:
    """Map each item of an API record to its X-Version property.

    Items without an X-Version property map to None, keeping their position.

    Raises:
        CatalogResponseError: If the record has no ``apis`` list or an item
            has no ``properties`` list.
    """
    apis = record.get("apis") if isinstance(record, dict) else None
    if not isinstance(apis, list):
        raise CatalogResponseError("API record has no 'apis' list")

    versions: list[Optional[ApiVersion]] = []
    for item in apis:
        properties = item.get("properties") if isinstance(item, dict) else None
        if not isinstance(properties, list):
            raise CatalogResponseError("API record item has no 'properties' list")

        match = next(
            (
                prop for prop in properties
                if isinstance(prop, dict) and prop.get("type") == VERSION_PROPERTY_TYPE
            ),
            None,
        )
        if match is None:
            versions.append(None)
            continue
        try:
            versions.append(ApiVersion.model_validate(match))
        except ValueError as e:
            raise CatalogResponseError(f"Invalid version property: {e}") from e

    return versions
