"""In-memory key service for testing."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from ..contracts import SigningAlgorithm
from ..errors import RemoteServiceError
from .base import KeyManagementService, PublicKeyResponse

_RSA_ALGORITHMS = [
    SigningAlgorithm.RSASSA_PSS_SHA_256,
    SigningAlgorithm.RSASSA_PSS_SHA_384,
    SigningAlgorithm.RSASSA_PSS_SHA_512,
    SigningAlgorithm.RSASSA_PKCS1_V1_5_SHA_256,
    SigningAlgorithm.RSASSA_PKCS1_V1_5_SHA_384,
    SigningAlgorithm.RSASSA_PKCS1_V1_5_SHA_512,
]

# The service pairs each NIST curve with exactly one digest.
_EC_ALGORITHMS = {
    "secp256r1": [SigningAlgorithm.ECDSA_SHA_256],
    "secp384r1": [SigningAlgorithm.ECDSA_SHA_384],
    "secp521r1": [SigningAlgorithm.ECDSA_SHA_512],
    "secp256k1": [SigningAlgorithm.ECDSA_SHA_256],
}


class InMemoryKeyService(KeyManagementService):
    """Holds private keys in process and signs the way the remote service does.

    RSA-PSS signatures use a salt as long as the digest. ECDSA signatures are
    DER-encoded.
    """

    def __init__(self) -> None:
        self._keys: Dict[str, Any] = {}
        self._lock = asyncio.Lock()

    def add_key(self, resource_id: str, private_key: Any) -> None:
        """Register an existing ``cryptography`` private key under ``resource_id``."""
        if not isinstance(private_key, (rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey)):
            raise TypeError(f"Unsupported private key type: {type(private_key).__name__}")
        self._keys[resource_id] = private_key

    def _key(self, resource_id: str) -> Any:
        try:
            return self._keys[resource_id]
        except KeyError:
            raise RemoteServiceError(
                f"Key '{resource_id}' does not exist",
                transient=False,
                code="NotFoundException",
            ) from None

    def supported_algorithms(self, resource_id: str) -> List[SigningAlgorithm]:
        key = self._key(resource_id)
        if isinstance(key, rsa.RSAPrivateKey):
            return list(_RSA_ALGORITHMS)
        return list(_EC_ALGORITHMS.get(key.curve.name, []))

    async def get_public_key(self, resource_id: str) -> PublicKeyResponse:
        async with self._lock:
            key = self._key(resource_id)
            der = key.public_key().public_bytes(
                encoding=serialization.Encoding.DER,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
            return PublicKeyResponse(
                public_key=der,
                signing_algorithms=[a.value for a in self.supported_algorithms(resource_id)],
            )

    async def sign(
        self, resource_id: str, digest: bytes, algorithm: SigningAlgorithm
    ) -> bytes:
        async with self._lock:
            key = self._key(resource_id)
            if algorithm not in self.supported_algorithms(resource_id):
                raise RemoteServiceError(
                    f"Key '{resource_id}' does not support {algorithm.value}",
                    transient=False,
                    code="InvalidKeyUsageException",
                )
            hash_algorithm = algorithm.digest_algorithm.hash_algorithm()
            if len(digest) != hash_algorithm.digest_size:
                raise RemoteServiceError(
                    f"Digest length does not match {algorithm.value}",
                    transient=False,
                    code="ValidationException",
                )

            prehashed = Prehashed(hash_algorithm)
            if isinstance(key, ec.EllipticCurvePrivateKey):
                return key.sign(digest, ec.ECDSA(prehashed))
            if algorithm.value.startswith("RSASSA_PSS"):
                pad = padding.PSS(
                    mgf=padding.MGF1(hash_algorithm),
                    salt_length=hash_algorithm.digest_size,
                )
            else:
                pad = padding.PKCS1v15()
            return key.sign(digest, pad, prehashed)


__all__ = ["InMemoryKeyService"]
