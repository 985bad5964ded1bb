"""Test helpers: scripted service failures and key encoding."""

from typing import List, Optional

from cryptography.hazmat.primitives import serialization

from tufkms.contracts import SigningAlgorithm
from tufkms.errors import RemoteServiceError
from tufkms.services.base import KeyManagementService, PublicKeyResponse


def transient(code: str = "ThrottlingException") -> RemoteServiceError:
    return RemoteServiceError(f"{code} from test", transient=True, code=code)


def permanent(code: str = "AccessDeniedException") -> RemoteServiceError:
    return RemoteServiceError(f"{code} from test", transient=False, code=code)


def der_of(private_key) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


class ScriptedService(KeyManagementService):
    """Wraps a real service, failing calls from a script and counting them."""

    def __init__(
        self,
        inner: KeyManagementService,
        sign_failures: Optional[List[Exception]] = None,
        public_key_failures: Optional[List[Exception]] = None,
    ) -> None:
        self.inner = inner
        self.sign_failures = list(sign_failures or [])
        self.public_key_failures = list(public_key_failures or [])
        self.sign_calls = 0
        self.public_key_calls = 0
        self.sign_result: Optional[bytes] = None
        self.public_key_result: Optional[PublicKeyResponse] = None

    async def get_public_key(self, resource_id: str) -> PublicKeyResponse:
        self.public_key_calls += 1
        if self.public_key_failures:
            raise self.public_key_failures.pop(0)
        if self.public_key_result is not None:
            return self.public_key_result
        return await self.inner.get_public_key(resource_id)

    async def sign(
        self, resource_id: str, digest: bytes, algorithm: SigningAlgorithm
    ) -> bytes:
        self.sign_calls += 1
        if self.sign_failures:
            raise self.sign_failures.pop(0)
        if self.sign_result is not None:
            return self.sign_result
        return await self.inner.sign(resource_id, digest, algorithm)
