"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic.

    Raised before any mutation; nothing is persisted.
    """


class NotFoundError(ValidationError):
    """Requested domain record does not exist."""


class ImmutableRecordError(ValidationError):
    """Attempted edit of a field that is immutable once posted."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ConcurrencyConflict(RuntimeError):
    """A conflicting writer or a lock timeout aborted the unit of work.

    Nothing was committed; the caller may retry.
    """

    retryable = True


class StorageError(RuntimeError):
    """The durable store is unavailable. Fatal for the unit of work."""

    retryable = False


def entity_not_found(entity_id: int) -> str:
    """Return message for missing entity."""
    return f"Entity {entity_id} not found"


def entity_inactive(entity_id: int) -> str:
    """Return message for deactivated entity."""
    return f"Entity {entity_id} is inactive"


def account_not_found(account_id: int) -> str:
    """Return message for missing bank account."""
    return f"Bank account {account_id} not found"


def account_inactive(account_id: int) -> str:
    """Return message for deactivated bank account."""
    return f"Bank account {account_id} is inactive"


def holding_not_found(holding_id: int) -> str:
    """Return message for missing holding."""
    return f"Holding {holding_id} not found"


def holding_inactive(holding_id: int) -> str:
    """Return message for deactivated holding."""
    return f"Holding {holding_id} is inactive"


def asset_liability_not_found(item_id: int) -> str:
    """Return message for missing asset/liability item."""
    return f"Asset/liability item {item_id} not found"


def liability_not_found(liability_id: int) -> str:
    """Return message for missing loan."""
    return f"Liability {liability_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def not_owned_by(kind: str, record_id: int, entity_id: int) -> str:
    """Return message when a referenced record belongs to another entity."""
    return f"{kind} {record_id} does not belong to entity {entity_id}"


def duplicate_transaction_reference(reference: str) -> str:
    """Return message for duplicate transaction reference."""
    return f"Transaction with reference '{reference}' already exists"


def duplicate_holding(entity_id: int, symbol: str, security_type: str) -> str:
    """Return message for duplicate holding key."""
    return f"Holding {symbol} ({security_type}) already exists for entity {entity_id}"


def oversell(holding_id: object, requested, held) -> str:
    """Return message for a sell larger than the position."""
    return f"Cannot sell {requested} units of holding {holding_id}: only {held} held"


def immutable_fields(transaction_id: int, fields: list[str]) -> str:
    """Return message for attempted edits of posted financial fields."""
    return (
        f"Transaction {transaction_id} is posted; {', '.join(sorted(fields))} cannot be edited. "
        "Post a reversing transaction instead."
    )
