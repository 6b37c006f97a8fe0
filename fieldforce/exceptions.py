# fieldforce/exceptions.py
"""
Exceptions raised by the field force domain layer.
"""


class FieldForceError(Exception):
    """Base exception for domain errors"""
    pass


class NotFoundError(FieldForceError):
    """Raised when a referenced record does not exist"""
    pass


class InvalidStateError(FieldForceError):
    """Raised when an approval transition is not allowed"""

    def __init__(self, message: str, field: str = None, current: str = None):
        self.field = field
        self.current = current
        super().__init__(message)
