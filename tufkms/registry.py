"""Registry mapping key-reference URI schemes to signer factories."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from .config import TufKmsConfig, load_config
from .contracts import KeyReference
from .errors import UnsupportedSchemeError
from .services import get_service
from .signer import KmsSigner, Signer

logger = logging.getLogger(__name__)

SignerFactory = Callable[[KeyReference, TufKmsConfig], Signer]


def kms_signer(reference: KeyReference, config: TufKmsConfig) -> Signer:
    """``kms://<resource-id>`` using the configured service backend."""
    return KmsSigner(
        reference,
        get_service(config=config),
        retry_policy=config.retry.to_policy(),
        min_rsa_key_size=config.min_rsa_key_size,
    )


def aws_kms_signer(reference: KeyReference, config: TufKmsConfig) -> Signer:
    """``aws-kms://[profile]/<key-id>`` against AWS KMS."""
    return KmsSigner(
        reference,
        get_service("aws", config=config, profile=reference.profile),
        retry_policy=config.retry.to_policy(),
        min_rsa_key_size=config.min_rsa_key_size,
    )


SIGNER_FOR_URI_SCHEME: Dict[str, SignerFactory] = {
    "kms": kms_signer,
    "aws-kms": aws_kms_signer,
}


class SignerRegistry:
    """Builds and keeps one signer per key-reference URI.

    Unrecognized schemes are rejected when a URI is registered, so a bad
    configuration fails before anything is signed.
    """

    def __init__(
        self,
        config: Optional[TufKmsConfig] = None,
        factories: Optional[Dict[str, SignerFactory]] = None,
    ) -> None:
        self._config = config
        self._factories: Dict[str, SignerFactory] = dict(
            SIGNER_FOR_URI_SCHEME if factories is None else factories
        )
        self._signers: Dict[str, Signer] = {}

    @property
    def config(self) -> TufKmsConfig:
        if self._config is None:
            self._config = load_config()
        return self._config

    def add_scheme(self, scheme: str, factory: SignerFactory) -> None:
        """Plug in a signer backend for ``scheme``."""
        self._factories[scheme.lower()] = factory

    def schemes(self) -> List[str]:
        return sorted(self._factories)

    def register(self, uri: str) -> Signer:
        """Build (or return the existing) signer for ``uri``.

        Raises:
            UnsupportedSchemeError: If no factory handles the URI scheme.
            ValueError: If ``uri`` is not a well-formed key reference.
        """
        existing = self._signers.get(uri)
        if existing is not None:
            return existing

        reference = KeyReference.parse(uri)
        factory = self._factories.get(reference.scheme)
        if factory is None:
            raise UnsupportedSchemeError(
                f"No signer for scheme '{reference.scheme}' "
                f"(supported: {', '.join(self.schemes())})"
            )

        signer = factory(reference, self.config)
        self._signers[uri] = signer
        logger.info(f"Registered signer for '{uri}'")
        return signer

    def get(self, uri: str) -> Signer:
        """Return a registered signer; raises ``KeyError`` if ``uri`` is unknown."""
        return self._signers[uri]

    def __contains__(self, uri: str) -> bool:
        return uri in self._signers


__all__ = [
    "SIGNER_FOR_URI_SCHEME",
    "SignerFactory",
    "SignerRegistry",
    "aws_kms_signer",
    "kms_signer",
]
