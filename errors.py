"""
Domain exceptions raised by the service layer.

Routers do not catch these; main.py maps each kind to an HTTP status.
"""


class InventoryError(Exception):
    """Base exception for all inventory domain errors"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(InventoryError):
    """Raised when a referenced asset, order, request, vendor or user is absent"""

    status_code = 404


class InvalidError(InventoryError):
    """Raised when a required field is missing or a business rule rejects the input"""

    status_code = 400


class InsufficientQuantityError(InvalidError):
    """Raised when a ledger decrement would take an asset below zero"""

    def __init__(self, asset_id: str, delta: int):
        super().__init__("Insufficient quantity available")
        self.asset_id = asset_id
        self.delta = delta


class ConflictError(InventoryError):
    """Raised when the target's current state forbids the change (duplicate, already approved, in use)"""

    status_code = 409


class UpstreamError(InventoryError):
    """Raised when an outbound collaborator (mail transport) fails"""

    status_code = 502
