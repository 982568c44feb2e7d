"""Domain-specific exceptions — framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist in the entity store."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class ValidationError(Exception):
    """Raised when an intent is rejected before any mutation is applied.

    Covers missing or dangling parent references, unknown fields, invalid
    enum values and writes to immutable fields.
    """

    def __init__(self, message: str, field: str | None = None):
        self.message = message
        self.field = field
        super().__init__(message if field is None else f"{field}: {message}")


class SignalAlreadyConvertedError(ValidationError):
    """Raised when a signal that is already converted goes through conversion again."""

    def __init__(self, signal_id: str):
        self.signal_id = signal_id
        super().__init__(f"Signal '{signal_id}' has already been converted")


class ConcurrencyError(Exception):
    """Raised on a re-entrant conversion attempt for a signal already converting."""

    def __init__(self, signal_id: str):
        self.signal_id = signal_id
        super().__init__(f"Signal '{signal_id}' is already being converted")


class AuthenticationError(Exception):
    """Raised when a gateway call is attempted without a bearer credential."""

    def __init__(self, gateway: str, operation: str):
        self.gateway = gateway
        self.operation = operation
        super().__init__(f"[{gateway}] {operation}: authentication token required")


class GatewayError(Exception):
    """Raised when a remote gateway call fails.

    Gateway-agnostic — tagged with the gateway name, the operation and,
    where known, the entity kind and id it concerned.
    """

    def __init__(
        self,
        gateway: str,
        operation: str,
        message: str,
        *,
        status_code: int | None = None,
        entity_kind: str | None = None,
        entity_id: str | None = None,
    ):
        self.gateway = gateway
        self.operation = operation
        self.message = message
        self.status_code = status_code
        self.entity_kind = entity_kind
        self.entity_id = entity_id
        target = f" {entity_kind}/{entity_id}" if entity_kind else ""
        code = f" {status_code}" if status_code is not None else ""
        super().__init__(f"[{gateway}] {operation}{target}{code}: {message}")
