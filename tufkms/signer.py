"""The ``Signer`` capability and its KMS-backed implementation."""

from __future__ import annotations

import asyncio
from typing import Optional, Protocol, Union, runtime_checkable

from .contracts import DigestAlgorithm, KeyDescriptor, KeyReference, Signature
from .engine import RsaPadding, SigningEngine
from .errors import DeadlineExceededError
from .resolver import KeyDescriptorResolver
from .services.base import KeyManagementService
from .utils.retry import RetryPolicy


@runtime_checkable
class Signer(Protocol):
    """Capability the host signing framework calls to sign metadata."""

    async def sign(self, message: bytes) -> Signature:
        """Sign ``message`` and return the signature."""

    async def public_key(self) -> KeyDescriptor:
        """Return the descriptor of the signing key."""


class KmsSigner:
    """Signer whose private key lives in a key-management service.

    The key descriptor is resolved on first use and then reused for the
    lifetime of the signer. Every failure raises a typed error; no empty or
    placeholder signature is ever returned.
    """

    def __init__(
        self,
        key_reference: Union[KeyReference, str],
        service: KeyManagementService,
        retry_policy: Optional[RetryPolicy] = None,
        digest_algorithm: Optional[DigestAlgorithm] = None,
        rsa_padding: RsaPadding = "pss",
        min_rsa_key_size: int = 2048,
    ) -> None:
        if isinstance(key_reference, str):
            key_reference = KeyReference.parse(key_reference)
        self.key_reference = key_reference
        self.digest_algorithm = digest_algorithm
        self.service = service
        policy = retry_policy or RetryPolicy()
        self._resolver = KeyDescriptorResolver(
            service, retry_policy=policy, min_rsa_key_size=min_rsa_key_size
        )
        self._engine = SigningEngine(service, retry_policy=policy, rsa_padding=rsa_padding)

    def __repr__(self) -> str:
        return f"KmsSigner({self.key_reference.uri!r})"

    @property
    def rsa_padding(self) -> RsaPadding:
        return self._engine.rsa_padding

    async def public_key(self, timeout: Optional[float] = None) -> KeyDescriptor:
        return await self._with_deadline(
            self._resolver.resolve(self.key_reference), timeout, "public key fetch"
        )

    async def sign(self, message: bytes, timeout: Optional[float] = None) -> Signature:
        """Sign ``message`` with the digest the host scheme dictates.

        Args:
            message: Canonical bytes of the metadata being signed.
            timeout: Optional deadline in seconds covering resolution, the
                sign call and any retry waits.

        Raises:
            DeadlineExceededError: If ``timeout`` elapses first.
        """

        async def _sign() -> Signature:
            descriptor = await self._resolver.resolve(self.key_reference)
            return await self._engine.sign(descriptor, message, self.digest_algorithm)

        return await self._with_deadline(_sign(), timeout, "sign")

    async def sign_digest(self, digest: bytes, timeout: Optional[float] = None) -> Signature:
        """Sign a digest the caller already computed."""

        async def _sign() -> Signature:
            descriptor = await self._resolver.resolve(self.key_reference)
            return await self._engine.sign_digest(descriptor, digest, self.digest_algorithm)

        return await self._with_deadline(_sign(), timeout, "sign")

    async def _with_deadline(self, coro, timeout: Optional[float], what: str):
        if timeout is None:
            return await coro
        try:
            return await asyncio.wait_for(coro, timeout)
        except asyncio.TimeoutError as e:
            raise DeadlineExceededError(
                f"{what} with '{self.key_reference}' exceeded {timeout}s deadline"
            ) from e
