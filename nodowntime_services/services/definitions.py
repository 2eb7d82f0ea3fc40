from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

REUSABLE_SETTINGS = ("number_of_shards", "number_of_replicas", "analysis")


class MigrationState(str, Enum):
    UNBOUND = "unbound"
    SINGLE_SLOT_BOUND = "single_slot_bound"
    MIGRATION_IN_FLIGHT = "migration_in_flight"
    MULTIPLE_BOUND = "multiple_bound"


class IndexSettings(BaseModel):
    """Index settings sent when creating a slot.

    Only the shard count, the replica count and the analysis block are
    carried over from an existing index. Any other engine setting can
    still be passed by the caller and is forwarded as is.
    """

    model_config = ConfigDict(extra="allow")

    number_of_shards: Optional[int | str] = None
    number_of_replicas: Optional[int | str] = None
    analysis: Optional[dict[str, Any]] = None

    def is_empty(self) -> bool:
        return len(self.to_body()) == 0

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @classmethod
    def reusable_from(cls, settings: dict[str, Any] | None) -> "IndexSettings":
        """Keep the settings of a stored index that are valid on a new one."""
        settings = settings or {}
        return cls(
            **{
                key: settings[key]
                for key in REUSABLE_SETTINGS
                if key in settings
            }
        )


class IndexDefinition(BaseModel):
    settings: Optional[IndexSettings] = None
    mappings: Optional[dict[str, Any]] = None

    def to_request(self) -> dict[str, Any]:
        request: dict[str, Any] = {}
        if self.settings is not None and not self.settings.is_empty():
            request["settings"] = self.settings.to_body()
        if self.mappings:
            request["mappings"] = self.mappings
        return request


class ReindexOutcome(BaseModel):
    source: Optional[str] = None
    destination: str
    wait_for_completion: bool = True
    status: Literal["succeeded", "failed", "pending"]
    task_id: Optional[str] = None
    total: int = 0
    failures: list[dict[str, Any]] = []

    @property
    def is_pending(self) -> bool:
        return self.status == "pending"


class MigrationLease(BaseModel):
    alias: str
    owner: str
    acquired_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    task_id: Optional[str] = None


class SearchParameters(BaseModel):
    from_: int = Field(default=0, ge=0, description="Offset must be >= 0")
    size: int = Field(default=10, ge=0, description="Size must be >= 0")
    sort: Optional[list[str | dict[str, Any]]] = None
    source_includes: Optional[list[str]] = None

    def to_request(self) -> dict[str, Any]:
        request: dict[str, Any] = {"from_": self.from_, "size": self.size}
        if self.sort:
            request["sort"] = self.sort
        if self.source_includes:
            request["source_includes"] = self.source_includes
        return request


def compose(
    override_settings: IndexSettings | dict[str, Any] | None,
    override_mappings: dict[str, Any] | None,
    inherited_settings: IndexSettings | None,
    inherited_mappings: dict[str, Any] | None,
) -> IndexDefinition:
    """Build the definition of a new slot from caller values and an old slot.

    Each field is resolved on its own: a present, non-empty override wins,
    otherwise the inherited value is used. Nested blocks such as
    ``analysis`` or the mapping are taken whole, never deep-merged.
    """
    if isinstance(override_settings, dict):
        override_settings = IndexSettings(**override_settings)
    override = (
        override_settings.to_body() if override_settings is not None else {}
    )
    inherited = (
        inherited_settings.to_body() if inherited_settings is not None else {}
    )

    settings: dict[str, Any] = {}
    for key in ("number_of_shards", "number_of_replicas"):
        if override.get(key) is not None:
            settings[key] = override[key]
        elif inherited.get(key) is not None:
            settings[key] = inherited[key]

    if override.get("analysis"):
        settings["analysis"] = override["analysis"]
    elif inherited.get("analysis"):
        settings["analysis"] = inherited["analysis"]

    for key, value in override.items():
        if key not in REUSABLE_SETTINGS:
            settings[key] = value

    if override_mappings:
        mappings = override_mappings
    elif inherited_mappings:
        mappings = inherited_mappings
    else:
        mappings = None

    return IndexDefinition(
        settings=IndexSettings(**settings) if settings else None,
        mappings=mappings,
    )
