"""AWS KMS client for remote signing."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionClosedError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ..contracts import SigningAlgorithm
from ..errors import RemoteServiceError
from .base import KeyManagementService, PublicKeyResponse

logger = logging.getLogger(__name__)

TRANSIENT_ERROR_CODES = frozenset(
    {
        "ThrottlingException",
        "Throttling",
        "RequestLimitExceeded",
        "KMSInternalException",
        "DependencyTimeoutException",
        "KeyUnavailableException",
        "ServiceUnavailable",
        "ServiceUnavailableException",
        "InternalFailure",
    }
)

TRANSIENT_TRANSPORT_ERRORS = (
    EndpointConnectionError,
    ConnectTimeoutError,
    ReadTimeoutError,
    ConnectionClosedError,
)

# Retries are owned by RetryPolicy; botocore must make exactly one attempt.
_CLIENT_CONFIG = Config(retries={"total_max_attempts": 1, "mode": "standard"})


def classify_error(operation: str, resource_id: str, error: Exception) -> RemoteServiceError:
    """Translate a botocore failure into a ``RemoteServiceError``."""
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code", "Unknown")
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode") or 0
        transient = code in TRANSIENT_ERROR_CODES or status >= 500
        return RemoteServiceError(
            f"{operation} for '{resource_id}' failed with {code} (HTTP {status})",
            transient=transient,
            operation=operation,
            code=code,
        )
    if isinstance(error, TRANSIENT_TRANSPORT_ERRORS):
        return RemoteServiceError(
            f"{operation} for '{resource_id}' failed in transport: {type(error).__name__}",
            transient=True,
            operation=operation,
            code=type(error).__name__,
        )
    return RemoteServiceError(
        f"{operation} for '{resource_id}' failed: {type(error).__name__}",
        transient=False,
        operation=operation,
        code=type(error).__name__,
    )


class AwsKmsService(KeyManagementService):
    """AWS KMS backed by a boto3 client.

    The blocking client runs in a worker thread. Cancelling the awaiting task
    returns control immediately; the worker finishes its HTTP request and the
    result is dropped.
    """

    def __init__(
        self,
        region: Optional[str] = None,
        profile: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        client: Optional[Any] = None,
    ) -> None:
        self.region = region
        self.profile = profile
        self.endpoint_url = endpoint_url
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            session = boto3.Session(profile_name=self.profile)
            self._client = session.client(
                "kms",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
                config=_CLIENT_CONFIG,
            )
        return self._client

    async def connect(self) -> None:
        """Build the boto3 client, resolving credentials and region."""
        await asyncio.to_thread(lambda: self.client)

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    async def _call(
        self, operation: str, resource_id: str, fn: Callable[[], dict]
    ) -> dict:
        try:
            return await asyncio.to_thread(fn)
        except (ClientError, BotoCoreError) as e:
            raise classify_error(operation, resource_id, e) from e

    async def get_public_key(self, resource_id: str) -> PublicKeyResponse:
        response = await self._call(
            "GetPublicKey",
            resource_id,
            lambda: self.client.get_public_key(KeyId=resource_id),
        )
        if response.get("KeyUsage", "SIGN_VERIFY") != "SIGN_VERIFY":
            raise RemoteServiceError(
                f"Key '{resource_id}' is not a signing key",
                transient=False,
                operation="GetPublicKey",
                code="InvalidKeyUsageException",
            )
        return PublicKeyResponse(
            public_key=response["PublicKey"],
            signing_algorithms=response.get("SigningAlgorithms", []),
        )

    async def sign(
        self, resource_id: str, digest: bytes, algorithm: SigningAlgorithm
    ) -> bytes:
        response = await self._call(
            "Sign",
            resource_id,
            lambda: self.client.sign(
                KeyId=resource_id,
                Message=digest,
                MessageType="DIGEST",
                SigningAlgorithm=algorithm.value,
            ),
        )
        return response.get("Signature", b"")
