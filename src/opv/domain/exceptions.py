"""Domain-level exceptions.

Every failure the pricing and versioning core can report is a subclass of
DomainException so the CLI layer can catch them uniformly and map each kind
to its own message.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """Input violates a business rule (missing field, negative quantity...)."""


class EntityNotFoundError(DomainException):
    """A requested order or order version does not exist."""


NotFoundError = EntityNotFoundError


class ConsistencyError(DomainException):
    """Version history could not be kept contiguous and write-once."""


class VersionConflictError(ConsistencyError):
    """Another writer already stored this (order_id, version_number)."""

    def __init__(self, order_id: int, version_number: int) -> None:
        super().__init__(
            f"Version {version_number} of order #{order_id} already exists"
        )
        self.order_id = order_id
        self.version_number = version_number


class PolicyConfigurationError(DomainException):
    """A pricing policy is configured in a way that cannot be priced."""
