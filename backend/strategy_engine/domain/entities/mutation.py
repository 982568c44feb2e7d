"""Domain entity for dispatched mutations and their remote reconciliation state."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .base import EntityKind


class MutationOperation(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class MutationStatus(str, Enum):
    """Lifecycle states of a dispatched mutation.

    REQUESTED → APPLIED (local) → CONFIRMED | FAILED (remote). REVERTED
    only occurs under the revert-on-failure reconciliation policy.
    """

    REQUESTED = "requested"
    APPLIED = "applied"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    REVERTED = "reverted"


class ReconciliationPolicy(str, Enum):
    """What happens to optimistic local state when the remote call fails."""

    OPTIMISTIC_NO_ROLLBACK = "optimistic_no_rollback"
    REVERT_ON_FAILURE = "revert_on_failure"


@dataclass
class PendingMutation:
    """One create/update/delete intent and the outcome of its gateway call.

    ``payload`` is exactly what was sent across the gateway boundary, so a
    failed mutation can be inspected and retried by hand.
    """

    operation: MutationOperation
    kind: EntityKind
    entity_id: str
    gateway: str
    payload: dict[str, Any] = field(default_factory=dict)
    actor_id: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    status: MutationStatus = MutationStatus.REQUESTED
    attempts: int = 0
    error_message: str | None = None
    requested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    applied_at: datetime | None = None
    completed_at: datetime | None = None

    def mark_applied(self) -> None:
        """The local entity store reflects the change."""
        self.status = MutationStatus.APPLIED
        self.applied_at = datetime.now(timezone.utc)

    def mark_sending(self) -> None:
        """A gateway attempt is starting (first try or manual retry)."""
        self.attempts += 1
        self.status = MutationStatus.APPLIED
        self.error_message = None
        self.completed_at = None

    def mark_confirmed(self) -> None:
        self.status = MutationStatus.CONFIRMED
        self.completed_at = datetime.now(timezone.utc)

    def mark_failed(self, error: str) -> None:
        self.status = MutationStatus.FAILED
        self.error_message = error
        self.completed_at = datetime.now(timezone.utc)

    def mark_reverted(self) -> None:
        """Local state was restored after a failed remote call."""
        self.status = MutationStatus.REVERTED

    @property
    def is_settled(self) -> bool:
        return self.status in (
            MutationStatus.CONFIRMED,
            MutationStatus.FAILED,
            MutationStatus.REVERTED,
        )

    def to_event(self) -> dict[str, Any]:
        """Compact JSON-safe form for the event stream."""
        return {
            "id": self.id,
            "operation": self.operation.value,
            "kind": self.kind.value,
            "entityId": self.entity_id,
            "gateway": self.gateway,
            "status": self.status.value,
            "attempts": self.attempts,
            "error": self.error_message,
        }
