"""
Typed errors raised by the storefront core.

Every error carries a human readable ``message`` and a machine readable
``code`` so that a transport layer can map it to a response without
inspecting the text.
"""
from typing import Optional


class StorefrontError(Exception):
    """Base exception for all storefront errors"""

    def __init__(self, message: str, code: str = "STOREFRONT_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class ValidationError(StorefrontError):
    """Missing or malformed input: absent field, bad quantity, unknown enum value"""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message=message, code="VALIDATION_ERROR")


class NotFoundError(StorefrontError):
    """A referenced product, customer, cart, order or ticket does not exist"""

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(message=f"{entity} not found: {key}", code="NOT_FOUND")


class InvalidTransitionError(StorefrontError):
    """A status change that the lifecycle table does not allow"""

    def __init__(self, current: str, target: str, message: Optional[str] = None):
        self.current = current
        self.target = target
        super().__init__(
            message=message
            or f"Cannot move from '{current}' to '{target}'. Current status: {current}",
            code="INVALID_TRANSITION",
        )


class ConflictError(StorefrontError):
    """Uniqueness violation, e.g. a generated order number already taken"""

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(message=f"{entity} already exists: {key}", code="CONFLICT")
