"""Session identity provider — holds the signed-in actor for this process."""

import logging

from strategy_engine.application.interfaces import IdentityProvider
from strategy_engine.domain.entities import Identity

logger = logging.getLogger(__name__)


class SessionIdentityProvider(IdentityProvider):
    """In-memory identity set by the UI through sign-in/sign-out.

    Token acquisition and refresh happen elsewhere; this only remembers the
    last actor id and credential handed to it.
    """

    def __init__(self, actor_id: str | None = None, credential: str | None = None):
        self._identity = Identity(actor_id=actor_id, credential=credential)

    def current(self) -> Identity:
        return self._identity

    def sign_in(self, actor_id: str | None, credential: str | None) -> Identity:
        self._identity = Identity(actor_id=actor_id, credential=credential)
        logger.info("Signed in as %s", actor_id or "<anonymous>")
        return self._identity

    def sign_out(self) -> None:
        logger.info("Signed out %s", self._identity.actor_id or "<anonymous>")
        self._identity = Identity()
