"""Base interface for key-management service clients."""

from __future__ import annotations

import abc
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from ..contracts import SigningAlgorithm


class PublicKeyResponse(BaseModel):
    """Result of a public-key fetch."""

    model_config = ConfigDict(frozen=True)

    public_key: bytes = Field(..., description="DER SubjectPublicKeyInfo")
    signing_algorithms: List[str] = Field(default_factory=list)


class KeyManagementService(metaclass=abc.ABCMeta):
    """Abstract client for a remote key-management service.

    Implementations raise :class:`~tufkms.errors.RemoteServiceError` with
    ``transient`` set for failures a retry could fix (throttling, timeouts,
    5xx) and cleared for everything else.
    """

    async def connect(self) -> None:
        """Open the client (no-op by default)."""
        pass

    async def close(self) -> None:
        """Release the client (no-op by default)."""
        pass

    @abc.abstractmethod
    async def get_public_key(self, resource_id: str) -> PublicKeyResponse:
        """Fetch the DER public key and the signing algorithms it supports."""
        raise NotImplementedError

    @abc.abstractmethod
    async def sign(
        self, resource_id: str, digest: bytes, algorithm: SigningAlgorithm
    ) -> bytes:
        """Sign a precomputed ``digest`` and return the raw signature bytes."""
        raise NotImplementedError
