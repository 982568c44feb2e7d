"""Identity snapshot supplied by the identity provider."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Identity:
    """Current actor and bearer credential; either may be absent."""

    actor_id: str | None = None
    credential: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.credential)
