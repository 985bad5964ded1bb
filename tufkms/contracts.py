"""Core value types shared by the resolver, the engine and the signers."""

from __future__ import annotations

import hashlib
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.serialization import load_der_public_key
from pydantic import BaseModel, ConfigDict, Field


class AlgorithmFamily(str, Enum):
    """Asymmetric key families the service can hold."""

    RSA = "rsa"
    ECDSA = "ecdsa"


class DigestAlgorithm(str, Enum):
    """Digest algorithms a host signing scheme may dictate."""

    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"

    @property
    def digest_size(self) -> int:
        return hashlib.new(self.value).digest_size

    def hash_algorithm(self) -> hashes.HashAlgorithm:
        """Return the matching ``cryptography`` hash instance."""
        return {
            DigestAlgorithm.SHA256: hashes.SHA256,
            DigestAlgorithm.SHA384: hashes.SHA384,
            DigestAlgorithm.SHA512: hashes.SHA512,
        }[self]()

    def digest(self, message: bytes) -> bytes:
        return hashlib.new(self.value, message).digest()


class SigningAlgorithm(str, Enum):
    """Signing-algorithm identifiers recognized by the service."""

    RSASSA_PSS_SHA_256 = "RSASSA_PSS_SHA_256"
    RSASSA_PSS_SHA_384 = "RSASSA_PSS_SHA_384"
    RSASSA_PSS_SHA_512 = "RSASSA_PSS_SHA_512"
    RSASSA_PKCS1_V1_5_SHA_256 = "RSASSA_PKCS1_V1_5_SHA_256"
    RSASSA_PKCS1_V1_5_SHA_384 = "RSASSA_PKCS1_V1_5_SHA_384"
    RSASSA_PKCS1_V1_5_SHA_512 = "RSASSA_PKCS1_V1_5_SHA_512"
    ECDSA_SHA_256 = "ECDSA_SHA_256"
    ECDSA_SHA_384 = "ECDSA_SHA_384"
    ECDSA_SHA_512 = "ECDSA_SHA_512"

    @property
    def family(self) -> AlgorithmFamily:
        if self.value.startswith("ECDSA"):
            return AlgorithmFamily.ECDSA
        return AlgorithmFamily.RSA

    @property
    def digest_algorithm(self) -> DigestAlgorithm:
        return DigestAlgorithm("sha" + self.value.rsplit("_", 1)[-1])

    @classmethod
    def parse_list(cls, names: Iterable[str]) -> Tuple["SigningAlgorithm", ...]:
        """Keep the identifiers this library knows, in service order."""
        known = {member.value for member in cls}
        return tuple(cls(name) for name in names if name in known)


# Curves the engine can sign with, mapped to the TUF scheme suffix and the
# digest that scheme dictates.
SUPPORTED_CURVES: Dict[str, Tuple[str, DigestAlgorithm]] = {
    "secp256r1": ("nistp256", DigestAlgorithm.SHA256),
    "secp384r1": ("nistp384", DigestAlgorithm.SHA384),
    "secp521r1": ("nistp521", DigestAlgorithm.SHA512),
}


class KeyReference(BaseModel):
    """Opaque locator for a remote key, parsed from a key-reference URI."""

    model_config = ConfigDict(frozen=True)

    uri: str
    scheme: str
    resource_id: str
    profile: Optional[str] = None

    @classmethod
    def parse(cls, uri: str) -> "KeyReference":
        """Parse ``scheme://resource`` into a reference.

        The resource part is kept verbatim so ARNs survive. For ``aws-kms``
        URIs the first path segment names the credentials profile, as in
        ``aws-kms://my-profile/arn:aws:kms:...``; leave it empty for the
        default credential chain.
        """
        if "://" not in uri:
            raise ValueError(f"Key reference is not a URI: {uri}")
        scheme, rest = uri.split("://", 1)
        scheme = scheme.lower()
        if not scheme:
            raise ValueError(f"Key reference has no scheme: {uri}")

        profile: Optional[str] = None
        if scheme == "aws-kms":
            if "/" not in rest:
                raise ValueError(f"Expected aws-kms://[profile]/key-id, got: {uri}")
            profile, rest = rest.split("/", 1)
            profile = profile or None

        if not rest:
            raise ValueError(f"Key reference has no resource id: {uri}")
        return cls(uri=uri, scheme=scheme, resource_id=rest, profile=profile)

    def __str__(self) -> str:
        return self.uri


class KeyDescriptor(BaseModel):
    """Public identity of a remote key, resolved once and never mutated."""

    model_config = ConfigDict(frozen=True)

    key_reference: KeyReference
    public_key_der: bytes = Field(..., repr=False)
    algorithm_family: AlgorithmFamily
    key_size: Optional[int] = None
    curve: Optional[str] = None
    key_id: str = Field(..., description="Hex SHA-256 of public_key_der")
    signing_algorithms: Tuple[SigningAlgorithm, ...] = ()

    @property
    def key_size_or_curve(self) -> Any:
        if self.algorithm_family is AlgorithmFamily.RSA:
            return self.key_size
        return self.curve

    @property
    def default_digest(self) -> DigestAlgorithm:
        if self.algorithm_family is AlgorithmFamily.ECDSA:
            return SUPPORTED_CURVES[self.curve][1]
        return DigestAlgorithm.SHA256

    @property
    def tuf_keytype(self) -> str:
        return self.algorithm_family.value

    @property
    def tuf_scheme(self) -> str:
        if self.algorithm_family is AlgorithmFamily.ECDSA:
            return f"ecdsa-sha2-{SUPPORTED_CURVES[self.curve][0]}"
        return "rsassa-pss-sha256"

    @property
    def public_key_pem(self) -> str:
        return (
            self.load_public_key()
            .public_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PublicFormat.SubjectPublicKeyInfo,
            )
            .decode("ascii")
        )

    def load_public_key(self) -> Any:
        """Return the ``cryptography`` public key object."""
        return load_der_public_key(self.public_key_der)

    def to_tuf_key(self) -> Dict[str, Any]:
        """Render the key the way TUF metadata lists it."""
        return {
            "keytype": self.tuf_keytype,
            "scheme": self.tuf_scheme,
            "keyval": {"public": self.public_key_pem},
        }


class SignRequest(BaseModel):
    """One sign call; built fresh per request and never reused."""

    model_config = ConfigDict(frozen=True)

    key_reference: KeyReference
    digest: bytes = Field(..., repr=False)
    algorithm: SigningAlgorithm


class Signature(BaseModel):
    """Signature bytes exactly as the service returned them."""

    model_config = ConfigDict(frozen=True)

    key_id: str
    algorithm: SigningAlgorithm
    signature: bytes = Field(..., repr=False)

    def hex(self) -> str:
        return self.signature.hex()

    def to_tuf(self) -> Dict[str, str]:
        """Render as a TUF signature entry."""
        return {"keyid": self.key_id, "sig": self.hex()}
