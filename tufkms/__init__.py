"""tufkms: remote KMS keys as signing keys for TUF metadata."""

from .contracts import (
    AlgorithmFamily,
    DigestAlgorithm,
    KeyDescriptor,
    KeyReference,
    Signature,
    SigningAlgorithm,
    SignRequest,
)
from .engine import SigningEngine
from .errors import (
    CancelledError,
    DeadlineExceededError,
    InvalidSignatureEncodingError,
    KeyFormatError,
    RemoteServiceError,
    TufKmsError,
    UnsupportedAlgorithmError,
    UnsupportedKeyError,
    UnsupportedSchemeError,
)
from .registry import SignerRegistry
from .resolver import KeyDescriptorResolver
from .services import get_service
from .signer import KmsSigner, Signer
from .verify import verify_signature

__version__ = "0.3.0"
__all__ = [
    "AlgorithmFamily",
    "CancelledError",
    "DeadlineExceededError",
    "DigestAlgorithm",
    "InvalidSignatureEncodingError",
    "KeyDescriptor",
    "KeyDescriptorResolver",
    "KeyFormatError",
    "KeyReference",
    "KmsSigner",
    "RemoteServiceError",
    "Signature",
    "Signer",
    "SignerRegistry",
    "SigningAlgorithm",
    "SigningEngine",
    "SignRequest",
    "TufKmsError",
    "UnsupportedAlgorithmError",
    "UnsupportedKeyError",
    "UnsupportedSchemeError",
    "get_service",
    "verify_signature",
]
