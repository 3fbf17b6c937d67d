"""Domain-specific exceptions: framework-independent."""


class EntityNotFoundError(Exception):
    """Raised when a requested entity does not exist."""

    def __init__(self, entity_type: str, entity_id: int | str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id '{entity_id}' not found")


class UnauthorizedError(Exception):
    """Raised when the authorization policy rejects an operation.

    Always raised before any write is attempted, so nothing is partially applied.
    """

    def __init__(self, action: str, category: str | None = None):
        self.action = action
        self.category = category
        target = f" on '{category}'" if category else ""
        super().__init__(f"Not authorized to {action}{target}")


class ValidationFailedError(Exception):
    """Raised when input is rejected locally, before it is sent to the store."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class StoreUnavailableError(Exception):
    """Raised when the document store fails a write, read or subscription."""

    def __init__(self, operation: str, collection: str, cause: Exception | None = None):
        self.operation = operation
        self.collection = collection
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Store unavailable during {operation} on '{collection}'{detail}")
