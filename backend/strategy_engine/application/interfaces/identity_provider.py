"""Abstract identity provider (port)."""

from abc import ABC, abstractmethod

from strategy_engine.domain.entities import Identity


class IdentityProvider(ABC):
    """Supplies the current actor id and bearer credential, read at mutation time."""

    @abstractmethod
    def current(self) -> Identity:
        ...
