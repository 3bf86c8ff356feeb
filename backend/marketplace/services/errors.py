from __future__ import annotations

from fastapi import HTTPException, status


class ServiceError(Exception):
    """Base class for failures a service reports back to its caller.

    Each subclass carries the HTTP status it maps to so routers can translate
    it with :meth:`as_http` without inspecting messages.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def as_http(self) -> HTTPException:
        return HTTPException(status_code=self.status_code, detail=self.message)


class InvalidInput(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class ProductNotFound(NotFound):
    def __init__(self, product_id: int):
        super().__init__(f"product with ID {product_id} not found")
        self.product_id = product_id


class Forbidden(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT


class InsufficientStock(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, product_id: int, requested: int, available: int):
        super().__init__(
            f"insufficient stock for product ID {product_id} "
            f"(requested: {requested}, available: {available})"
        )
        self.product_id = product_id
        self.requested = requested
        self.available = available


class InternalError(ServiceError):
    """Persistence or crypto failure; the message is always generic."""

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
