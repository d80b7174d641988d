"""Engine configuration for ledgersync."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_SETTINGS_FIELDS: tuple[str, ...] = (
    "name",
    "profilePhoto",
    "weeklyGoal",
    "monthlyGoal",
    "notificationSettings",
)


@dataclass(slots=True, frozen=True)
class SyncConfig:
    """
    Sync engine configuration.

    Attributes:
        max_retries: Failed drains tolerated before an operation is dropped.
        queue_key: Local store key holding the serialized queue.
        manual_offline_key: Local store key holding the manual-offline flag.
        entry_collection: Resource type (remote collection) of ledger entries.
        settings_collection: Remote collection holding one settings doc per owner.
        owner_field: Remote document field naming the owning identity.
        settings_fields: Settings fields copied locally by a settings pull.
    """

    max_retries: int = 3
    queue_key: str = "sync_queue"
    manual_offline_key: str = "manual_offline_mode"
    entry_collection: str = "entries"
    settings_collection: str = "users"
    owner_field: str = "userId"
    settings_fields: tuple[str, ...] = DEFAULT_SETTINGS_FIELDS

    def __post_init__(self) -> None:
        if not isinstance(self.max_retries, int) or self.max_retries < 1:
            raise ValueError("SyncConfig.max_retries must be a positive integer")

        for name in (
            "queue_key",
            "manual_offline_key",
            "entry_collection",
            "settings_collection",
            "owner_field",
        ):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"SyncConfig.{name} must be a non-empty string")

        if self.queue_key == self.manual_offline_key:
            raise ValueError("queue_key and manual_offline_key must differ")

    @property
    def resource_types(self) -> tuple[str, ...]:
        """Collections pulled and merged by an initial sync."""
        return (self.entry_collection,)

    def collection_key(self, resource_type: str, owner_id: str) -> str:
        """Local store key of one owner's cached collection."""
        return f"{resource_type}_{owner_id}"

    def setting_key(self, field_name: str) -> str:
        return f"setting_{field_name}"
