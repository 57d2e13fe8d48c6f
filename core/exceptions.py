"""
Order service errors.

Each error carries the HTTP status and the short ``error`` label it is
rendered with at the API boundary; ``str(exc)`` is the human readable detail.
"""


class OrderServiceError(Exception):
    status_code = 500
    error = "Internal error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(OrderServiceError):
    """Malformed or missing input. Raised before anything is written."""

    status_code = 400
    error = "Invalid request"


class NotFoundError(OrderServiceError):
    """The referenced order does not exist."""

    status_code = 404
    error = "Order not found"

    def __init__(self, order_id: str):
        super().__init__(f"order {order_id} not found")
        self.order_id = order_id


class StorageError(OrderServiceError):
    """Transaction or connection failure. Not retried; nothing was persisted."""

    status_code = 500
    error = "Storage failure"
