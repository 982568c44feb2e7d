"""Audit stamper — creation/modification provenance from actor and wall clock."""

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AuditStamper:
    """Pure stamping component. A missing actor is stamped as ``None``.

    Usage:
        stamper = AuditStamper()
        fields = {**seed, **stamper.stamp_create(identity.actor_id)}
    """

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock

    def stamp_create(self, actor_id: str | None) -> dict[str, Any]:
        now = self._clock()
        return {
            "created_by": actor_id,
            "created_at": now,
            "updated_by": actor_id,
            "updated_at": now,
        }

    def stamp_update(
        self, actor_id: str | None, *, not_before: datetime | None = None
    ) -> dict[str, Any]:
        """Overwrite only the update pair.

        ``not_before`` is the record's ``created_at``; the stamp is clamped
        to it so ``updated_at`` never precedes creation.
        """
        now = self._clock()
        if not_before is not None and now < not_before:
            now = not_before
        return {"updated_by": actor_id, "updated_at": now}
