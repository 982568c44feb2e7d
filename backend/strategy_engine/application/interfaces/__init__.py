from .identity_provider import IdentityProvider
from .primary_store_gateway import PrimaryStoreGateway
from .signal_gateway import SignalGateway

__all__ = [
    "IdentityProvider",
    "PrimaryStoreGateway",
    "SignalGateway",
]
