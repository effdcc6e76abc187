"""Domain exceptions raised by the billing services.

Routes translate these into HTTP errors; storage failures are never raised
past the storage adapter.
"""


class BillingError(Exception):
    """Base class for billing domain errors."""


class NotFound(BillingError):
    """Operation on an id that is not in its collection."""

    def __init__(self, resource: str, record_id: str):
        self.resource = resource
        self.record_id = record_id
        super().__init__(f"{resource} '{record_id}' not found")


class SerializationError(BillingError):
    """Stored text could not be decoded into the expected records."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"corrupt data under '{key}': {reason}")


class ValidationError(BillingError):
    """Required field missing or value outside its allowed set."""
