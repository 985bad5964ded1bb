"""Key-management service factory and initialization."""

from __future__ import annotations

from typing import Optional

from ..config import TufKmsConfig, load_config
from .base import KeyManagementService, PublicKeyResponse
from .inmemory import InMemoryKeyService


def get_service(
    backend: Optional[str] = None,
    config: Optional[TufKmsConfig] = None,
    profile: Optional[str] = None,
) -> KeyManagementService:
    """Factory function to get the configured key-management service.

    ``profile`` overrides the configured AWS profile, as ``aws-kms`` URIs do.
    """

    config = config or load_config()
    backend = (backend or config.service.backend).lower()

    if backend == "inmemory":
        return InMemoryKeyService()
    elif backend == "aws":
        from .aws import AwsKmsService

        aws_conf = config.service.aws
        return AwsKmsService(
            region=aws_conf.region,
            profile=profile or aws_conf.profile,
            endpoint_url=aws_conf.endpoint_url,
        )
    else:
        raise ValueError(f"Unsupported key service backend: {backend}")


__all__ = [
    "KeyManagementService",
    "InMemoryKeyService",
    "PublicKeyResponse",
    "get_service",
]
