# cardgame/errors.py
"""
Registry error kinds.

Errors are raised as exceptions; absent values (a lookup miss, a tied or
impossible comparison) are returned as None and are never errors.
"""

from enum import Enum


class ErrorKind(Enum):
    NOT_OWNER = "NotOwner"
    TOKEN_NOT_FOUND = "TokenNotFound"
    NOT_APPROVED = "NotApproved"
    TOKEN_ALREADY_EXISTS = "TokenAlreadyExists"


class RegistryError(Exception):
    """Base class for failed registry calls. No failed call mutates state."""
    kind: ErrorKind

    def __init__(self, message: str = None):
        if type(self) is RegistryError:
            raise TypeError("RegistryError is abstract, raise one of its kinds")
        super().__init__(message or self.kind.value)


class NotOwner(RegistryError):
    """Mint attempted by someone other than the admin."""
    kind = ErrorKind.NOT_OWNER


class TokenNotFound(RegistryError):
    """Transfer of a token that was never minted."""
    kind = ErrorKind.TOKEN_NOT_FOUND


class NotApproved(RegistryError):
    """Transfer attempted by someone other than the current owner."""
    kind = ErrorKind.NOT_APPROVED


class TokenAlreadyExists(RegistryError):
    """Reserved for duplicate-mint detection. Not raised by any operation."""
    kind = ErrorKind.TOKEN_ALREADY_EXISTS

