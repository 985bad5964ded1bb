"""Local verification of signatures against a resolved key descriptor."""

from __future__ import annotations

from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric import ec, padding
from cryptography.hazmat.primitives.asymmetric.utils import Prehashed

from .contracts import AlgorithmFamily, DigestAlgorithm, KeyDescriptor, Signature
from .engine import RsaPadding, select_algorithm


def verify_digest(
    descriptor: KeyDescriptor,
    digest: bytes,
    signature: Signature,
) -> bool:
    """Return ``True`` if ``signature`` is valid for ``digest`` under the key."""
    hash_algorithm = signature.algorithm.digest_algorithm.hash_algorithm()
    public_key = descriptor.load_public_key()
    prehashed = Prehashed(hash_algorithm)
    try:
        if descriptor.algorithm_family is AlgorithmFamily.ECDSA:
            public_key.verify(signature.signature, digest, ec.ECDSA(prehashed))
        elif signature.algorithm.value.startswith("RSASSA_PSS"):
            public_key.verify(
                signature.signature,
                digest,
                padding.PSS(
                    mgf=padding.MGF1(hash_algorithm),
                    salt_length=hash_algorithm.digest_size,
                ),
                prehashed,
            )
        else:
            public_key.verify(signature.signature, digest, padding.PKCS1v15(), prehashed)
    except (InvalidSignature, ValueError):
        return False
    return True


def verify_signature(
    descriptor: KeyDescriptor,
    message: bytes,
    signature: Union[Signature, bytes],
    digest_algorithm: Optional[DigestAlgorithm] = None,
    rsa_padding: RsaPadding = "pss",
) -> bool:
    """Hash ``message`` and verify ``signature`` against the descriptor's key.

    Raw signature bytes carry no algorithm, so pass the ``digest_algorithm``
    and ``rsa_padding`` the signer was built with. They default to the key's
    own scheme.
    """
    if not isinstance(signature, Signature):
        algorithm = select_algorithm(
            descriptor, digest_algorithm or descriptor.default_digest, rsa_padding
        )
        signature = Signature(
            key_id=descriptor.key_id, algorithm=algorithm, signature=signature
        )
    if signature.key_id != descriptor.key_id:
        return False
    digest = signature.algorithm.digest_algorithm.digest(message)
    return verify_digest(descriptor, digest, signature)
