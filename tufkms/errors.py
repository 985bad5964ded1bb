"""Typed failures raised across the signer boundary.

Messages carry key references and algorithm names only. Digests, signatures
and key material never appear in an error message.
"""

from __future__ import annotations

from asyncio import CancelledError
from typing import Optional


class TufKmsError(Exception):
    """Base class for all tufkms failures."""


class KeyFormatError(TufKmsError):
    """The remote public key is not a DER-encoded RSA or EC public key."""


class UnsupportedKeyError(TufKmsError):
    """The key size or curve cannot be mapped to a signing algorithm."""


class UnsupportedAlgorithmError(TufKmsError):
    """No signing algorithm exists for the key family and digest."""


class UnsupportedSchemeError(TufKmsError):
    """The key-reference URI uses a scheme with no registered signer."""


class InvalidSignatureEncodingError(TufKmsError):
    """The service returned signature bytes that are empty or malformed."""


class DeadlineExceededError(TufKmsError):
    """The caller's deadline elapsed before the operation finished."""


class RemoteServiceError(TufKmsError):
    """A call to the key-management service failed.

    ``transient`` tells whether a retry could succeed. ``exhausted`` is set
    once the retry budget has been spent on transient failures.
    """

    def __init__(
        self,
        message: str,
        *,
        transient: bool,
        exhausted: bool = False,
        attempts: int = 1,
        operation: Optional[str] = None,
        code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.transient = transient
        self.exhausted = exhausted
        self.attempts = attempts
        self.operation = operation
        self.code = code

    def __repr__(self) -> str:
        return (
            f"RemoteServiceError({str(self)!r}, transient={self.transient}, "
            f"exhausted={self.exhausted}, attempts={self.attempts})"
        )


__all__ = [
    "CancelledError",
    "DeadlineExceededError",
    "InvalidSignatureEncodingError",
    "KeyFormatError",
    "RemoteServiceError",
    "TufKmsError",
    "UnsupportedAlgorithmError",
    "UnsupportedKeyError",
    "UnsupportedSchemeError",
]
