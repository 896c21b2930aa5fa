"""
Request types exchanged with the host synchronization engine.

GetPageRequest is what the host sends; PageRequest is the reduced form the
datasource client needs to issue a single HTTP call.
"""

from dataclasses import dataclass, field

from .config import DatasourceConfig


@dataclass(frozen=True)
class AttributeConfig:
    external_id: str


@dataclass(frozen=True)
class EntityConfig:
    """Entity requested by the host, with the attributes it wants populated."""

    external_id: str
    attributes: tuple[AttributeConfig, ...] = ()
    child_entities: tuple["EntityConfig", ...] = ()

    def has_attribute(self, external_id: str) -> bool:
        return any(attribute.external_id == external_id for attribute in self.attributes)


@dataclass(frozen=True)
class DatasourceAuth:
    # Full header value, e.g. "Token token=..." or "Bearer ..."
    http_authorization: str = field(default="", repr=False)


@dataclass(frozen=True)
class GetPageRequest:
    """
    A page-fetch request from the host.

    Attributes:
        address: Base URL of the datasource
        entity: Entity and attributes to fetch
        page_size: Maximum number of records requested
        cursor: Offset of the page to fetch; empty for the first page
        ordered: Whether the host expects records ordered by unique ID
        auth: Authorization material, if any
        config: Parsed datasource configuration
    """

    address: str
    entity: EntityConfig
    page_size: int
    cursor: str = ""
    ordered: bool = False
    auth: DatasourceAuth | None = None
    config: DatasourceConfig | None = None


@dataclass(frozen=True)
class PageRequest:
    """A single bounded call against the datasource."""

    base_url: str
    entity_external_id: str
    page_size: int
    cursor: str = ""
    token: str = field(default="", repr=False)

    @classmethod
    def from_get_page_request(cls, request: GetPageRequest) -> "PageRequest":
        return cls(
            base_url=request.address,
            entity_external_id=request.entity.external_id,
            page_size=request.page_size,
            cursor=request.cursor,
            token=request.auth.http_authorization if request.auth else "",
        )
