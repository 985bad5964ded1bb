"""Resolve remote key references into cached key descriptors."""

from __future__ import annotations

import hashlib
import logging
from typing import Dict, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.hazmat.primitives.serialization import load_der_public_key

from .contracts import (
    SUPPORTED_CURVES,
    AlgorithmFamily,
    KeyDescriptor,
    KeyReference,
    SigningAlgorithm,
)
from .errors import KeyFormatError, UnsupportedKeyError
from .services.base import KeyManagementService
from .utils.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)


def derive_key_id(public_key_der: bytes) -> str:
    """Return the hex SHA-256 of a DER public key."""
    return hashlib.sha256(public_key_der).hexdigest()


def describe_public_key(
    key_reference: KeyReference,
    der: bytes,
    signing_algorithms: tuple = (),
    min_rsa_key_size: int = 2048,
) -> KeyDescriptor:
    """Decode and classify ``der`` into a descriptor for ``key_reference``."""
    try:
        public_key = load_der_public_key(der)
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyFormatError(
            f"Public key for '{key_reference}' is not valid DER: {type(e).__name__}"
        ) from e

    if isinstance(public_key, rsa.RSAPublicKey):
        if public_key.key_size < min_rsa_key_size:
            raise UnsupportedKeyError(
                f"RSA key '{key_reference}' is {public_key.key_size} bits; "
                f"at least {min_rsa_key_size} are required"
            )
        family, key_size, curve = AlgorithmFamily.RSA, public_key.key_size, None
    elif isinstance(public_key, ec.EllipticCurvePublicKey):
        if public_key.curve.name not in SUPPORTED_CURVES:
            raise UnsupportedKeyError(
                f"EC key '{key_reference}' uses unsupported curve {public_key.curve.name}"
            )
        family, key_size, curve = (
            AlgorithmFamily.ECDSA,
            public_key.key_size,
            public_key.curve.name,
        )
    else:
        raise KeyFormatError(
            f"Public key for '{key_reference}' is neither RSA nor EC: "
            f"{type(public_key).__name__}"
        )

    canonical = public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return KeyDescriptor(
        key_reference=key_reference,
        public_key_der=canonical,
        algorithm_family=family,
        key_size=key_size,
        curve=curve,
        key_id=derive_key_id(canonical),
        signing_algorithms=tuple(signing_algorithms),
    )


class KeyDescriptorResolver:
    """Fetches a remote public key once per reference and caches the descriptor.

    The cache is single-assignment: concurrent first callers may each fetch,
    but the first descriptor stored wins and every caller gets that object.
    Both fetches hash the same public key, so their key ids agree anyway.
    """

    def __init__(
        self,
        service: KeyManagementService,
        retry_policy: Optional[RetryPolicy] = None,
        min_rsa_key_size: int = 2048,
    ) -> None:
        self._service = service
        self._retry_policy = retry_policy or RetryPolicy()
        self._min_rsa_key_size = min_rsa_key_size
        self._cache: Dict[str, KeyDescriptor] = {}

    def cached(self, key_reference: KeyReference) -> Optional[KeyDescriptor]:
        return self._cache.get(key_reference.uri)

    async def resolve(
        self, key_reference: KeyReference, refresh: bool = False
    ) -> KeyDescriptor:
        """Return the descriptor for ``key_reference``, fetching it on first use.

        ``refresh`` fetches again and replaces the cached entry with a new
        descriptor object.
        """
        if not refresh:
            existing = self._cache.get(key_reference.uri)
            if existing is not None:
                return existing

        response = await call_with_retry(
            lambda: self._service.get_public_key(key_reference.resource_id),
            self._retry_policy,
            description=f"GetPublicKey for '{key_reference}'",
        )
        descriptor = describe_public_key(
            key_reference,
            response.public_key,
            SigningAlgorithm.parse_list(response.signing_algorithms),
            min_rsa_key_size=self._min_rsa_key_size,
        )

        if refresh:
            self._cache[key_reference.uri] = descriptor
        else:
            descriptor = self._cache.setdefault(key_reference.uri, descriptor)
        logger.info(
            f"Resolved key '{key_reference}' as {descriptor.algorithm_family.value} "
            f"{descriptor.key_size_or_curve} with key id {descriptor.key_id}"
        )
        return descriptor
