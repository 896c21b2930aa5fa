from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from .exceptions import InvalidDatasourceConfigError

# PagerDuty API hostname. Requests for any other address are rejected.
API_HOST = "https://api.pagerduty.com"

# Maximum page size allowed in a GetPage request.
MAX_PAGE_SIZE = 100

# PagerDuty's classic pagination REST API permits retrieving a maximum of 10,000 records.
MAX_RESULT_SIZE = 10000

# Upper bound for a single API call, regardless of the client timeout.
API_CALL_TIMEOUT_SECONDS = 5.0

DEFAULT_REQUEST_TIMEOUT_SECONDS = 120

# UTC offsets range from -12:00 to +14:00; accept the symmetric bound.
_MAX_TIMEZONE_OFFSET_SECONDS = 14 * 60 * 60

TEAMS = "teams"


@dataclass(frozen=True)
class EntityDescriptor:
    """
    Static metadata for an entity this adapter can fetch.

    external_id is the path segment queried on the API, unique_id_attribute the
    attribute identifying a record and response_field the JSON field holding the
    record list in the datasource response.
    """

    external_id: str
    unique_id_attribute: str
    response_field: str


def build_entity_registry(
    descriptors: Iterable[EntityDescriptor],
) -> Mapping[str, EntityDescriptor]:
    """
    Builds the read-only entity table keyed by external ID.

    Raises:
        ValueError: If two descriptors share an external ID
    """
    registry: dict[str, EntityDescriptor] = {}
    for descriptor in descriptors:
        if descriptor.external_id in registry:
            raise ValueError(f"Entity '{descriptor.external_id}' is already registered")
        registry[descriptor.external_id] = descriptor
    return MappingProxyType(registry)


ENTITIES = build_entity_registry(
    [EntityDescriptor(external_id=TEAMS, unique_id_attribute="id", response_field="teams")]
)


class DatasourceConfig(BaseModel):
    """
    Datasource configuration sent by the host alongside each request.
    Parsed from the JSON config blob; keys are camelCase on the wire.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore"
    )

    request_timeout_seconds: int | None = None
    local_timezone_offset: int | None = None
    api_version: str | None = None

    @classmethod
    def from_blob(cls, blob: bytes | str) -> "DatasourceConfig":
        """
        Parses the host's JSON config blob.

        Raises:
            InvalidDatasourceConfigError: If the blob is not a valid config document
        """
        try:
            return cls.model_validate_json(blob)
        except ValidationError as e:
            raise InvalidDatasourceConfigError(
                f"Failed to parse datasource config: {e.error_count()} validation error(s).",
                original_error=e,
            ) from e

    def check(self) -> None:
        """
        Verifies the config is internally consistent.

        Raises:
            ValueError: Describing the first inconsistency found
        """
        if self.request_timeout_seconds is not None and self.request_timeout_seconds <= 0:
            raise ValueError("requestTimeoutSeconds must be a positive number of seconds")

        if (
            self.local_timezone_offset is not None
            and abs(self.local_timezone_offset) > _MAX_TIMEZONE_OFFSET_SECONDS
        ):
            raise ValueError(
                f"localTimezoneOffset must be within {_MAX_TIMEZONE_OFFSET_SECONDS} seconds of UTC"
            )

        if self.api_version is not None and not self.api_version.strip():
            raise ValueError("apiVersion must not be blank")

    @property
    def timeout(self) -> float:
        """Client-level timeout in seconds."""
        if self.request_timeout_seconds is None:
            return float(DEFAULT_REQUEST_TIMEOUT_SECONDS)
        return float(self.request_timeout_seconds)
