"""Signing engine that delegates the private-key operation to the service."""

from __future__ import annotations

import logging
from typing import Dict, Literal, Optional, Tuple

from cryptography.hazmat.primitives.asymmetric.utils import (
    decode_dss_signature,
    encode_dss_signature,
)

from .contracts import (
    AlgorithmFamily,
    DigestAlgorithm,
    KeyDescriptor,
    SignRequest,
    Signature,
    SigningAlgorithm,
)
from .errors import InvalidSignatureEncodingError, UnsupportedAlgorithmError
from .services.base import KeyManagementService
from .utils.retry import RetryPolicy, call_with_retry

logger = logging.getLogger(__name__)

RsaPadding = Literal["pss", "pkcs1v15"]

# (family, digest, variant) -> service identifier. The variant is the RSA
# padding for RSA keys and the named curve for ECDSA keys.
ALGORITHM_TABLE: Dict[Tuple[AlgorithmFamily, DigestAlgorithm, str], SigningAlgorithm] = {
    (AlgorithmFamily.RSA, DigestAlgorithm.SHA256, "pss"): SigningAlgorithm.RSASSA_PSS_SHA_256,
    (AlgorithmFamily.RSA, DigestAlgorithm.SHA384, "pss"): SigningAlgorithm.RSASSA_PSS_SHA_384,
    (AlgorithmFamily.RSA, DigestAlgorithm.SHA512, "pss"): SigningAlgorithm.RSASSA_PSS_SHA_512,
    (AlgorithmFamily.RSA, DigestAlgorithm.SHA256, "pkcs1v15"): SigningAlgorithm.RSASSA_PKCS1_V1_5_SHA_256,
    (AlgorithmFamily.RSA, DigestAlgorithm.SHA384, "pkcs1v15"): SigningAlgorithm.RSASSA_PKCS1_V1_5_SHA_384,
    (AlgorithmFamily.RSA, DigestAlgorithm.SHA512, "pkcs1v15"): SigningAlgorithm.RSASSA_PKCS1_V1_5_SHA_512,
    (AlgorithmFamily.ECDSA, DigestAlgorithm.SHA256, "secp256r1"): SigningAlgorithm.ECDSA_SHA_256,
    (AlgorithmFamily.ECDSA, DigestAlgorithm.SHA384, "secp384r1"): SigningAlgorithm.ECDSA_SHA_384,
    (AlgorithmFamily.ECDSA, DigestAlgorithm.SHA512, "secp521r1"): SigningAlgorithm.ECDSA_SHA_512,
}


def select_algorithm(
    descriptor: KeyDescriptor,
    digest_algorithm: DigestAlgorithm,
    rsa_padding: RsaPadding = "pss",
) -> SigningAlgorithm:
    """Map the key family, curve and digest to the service's signing algorithm.

    ECDSA keys only pair with the digest their curve size names, whatever
    the service advertises.

    Raises:
        UnsupportedAlgorithmError: If the table has no entry, or the service
            did not list the mapped algorithm for this key.
    """
    if descriptor.algorithm_family is AlgorithmFamily.RSA:
        variant = rsa_padding
    else:
        variant = descriptor.curve or ""
    algorithm = ALGORITHM_TABLE.get(
        (descriptor.algorithm_family, digest_algorithm, variant)
    )
    if algorithm is None:
        raise UnsupportedAlgorithmError(
            f"No signing algorithm for {descriptor.algorithm_family.value} "
            f"with {digest_algorithm.value} ({variant})"
        )
    if descriptor.signing_algorithms and algorithm not in descriptor.signing_algorithms:
        raise UnsupportedAlgorithmError(
            f"Key '{descriptor.key_reference}' does not support {algorithm.value}"
        )
    return algorithm


def validate_signature(
    descriptor: KeyDescriptor, algorithm: SigningAlgorithm, raw: bytes
) -> bytes:
    """Check the structure of ``raw`` and return it unchanged."""
    if not raw:
        raise InvalidSignatureEncodingError(
            f"Empty {algorithm.value} signature for '{descriptor.key_reference}'"
        )

    if descriptor.algorithm_family is AlgorithmFamily.RSA:
        expected = (descriptor.key_size + 7) // 8
        if len(raw) != expected:
            raise InvalidSignatureEncodingError(
                f"{algorithm.value} signature for '{descriptor.key_reference}' is "
                f"{len(raw)} bytes; expected {expected}"
            )
        return raw

    try:
        r, s = decode_dss_signature(raw)
    except ValueError as e:
        raise InvalidSignatureEncodingError(
            f"{algorithm.value} signature for '{descriptor.key_reference}' is not valid DER"
        ) from e
    if r <= 0 or s <= 0 or encode_dss_signature(r, s) != raw:
        raise InvalidSignatureEncodingError(
            f"{algorithm.value} signature for '{descriptor.key_reference}' is not canonical DER"
        )
    return raw


class SigningEngine:
    """Turns a digest into a validated signature via the remote service."""

    def __init__(
        self,
        service: KeyManagementService,
        retry_policy: Optional[RetryPolicy] = None,
        rsa_padding: RsaPadding = "pss",
    ) -> None:
        if rsa_padding not in ("pss", "pkcs1v15"):
            raise ValueError(f"Unsupported RSA padding: {rsa_padding}")
        self._service = service
        self._retry_policy = retry_policy or RetryPolicy()
        self.rsa_padding = rsa_padding

    async def sign(
        self,
        descriptor: KeyDescriptor,
        message: bytes,
        digest_algorithm: Optional[DigestAlgorithm] = None,
    ) -> Signature:
        """Hash ``message`` with the scheme's digest and sign the result."""
        digest_algorithm = digest_algorithm or descriptor.default_digest
        return await self.sign_digest(
            descriptor, digest_algorithm.digest(message), digest_algorithm
        )

    async def sign_digest(
        self,
        descriptor: KeyDescriptor,
        digest: bytes,
        digest_algorithm: Optional[DigestAlgorithm] = None,
    ) -> Signature:
        """Sign a precomputed ``digest``."""
        digest_algorithm = digest_algorithm or descriptor.default_digest
        if len(digest) != digest_algorithm.digest_size:
            raise ValueError(
                f"Digest is {len(digest)} bytes; {digest_algorithm.value} "
                f"needs {digest_algorithm.digest_size}"
            )

        algorithm = select_algorithm(descriptor, digest_algorithm, self.rsa_padding)
        request = SignRequest(
            key_reference=descriptor.key_reference,
            digest=digest,
            algorithm=algorithm,
        )
        raw = await call_with_retry(
            lambda: self._service.sign(
                request.key_reference.resource_id, request.digest, request.algorithm
            ),
            self._retry_policy,
            description=f"Sign with '{request.key_reference}' ({algorithm.value})",
        )
        signature = validate_signature(descriptor, algorithm, raw)
        logger.debug(f"Signed with '{descriptor.key_reference}' using {algorithm.value}")
        return Signature(
            key_id=descriptor.key_id,
            algorithm=algorithm,
            signature=signature,
        )
