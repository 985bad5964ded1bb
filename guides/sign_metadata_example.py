"""Simple example showing TUF metadata signed by a service-held key."""

import asyncio
import json

from cryptography.hazmat.primitives.asymmetric import ec

from tufkms import KmsSigner, verify_signature
from tufkms.services import InMemoryKeyService


async def main():
    """Sign a root metadata document and verify the result."""
    # Stand-in for the remote service; swap for get_service("aws") in production
    service = InMemoryKeyService()
    service.add_key("alias/root", ec.generate_private_key(ec.SECP256R1()))
    await service.connect()

    signer = KmsSigner("kms://alias/root", service)

    # Public half goes into the root role's key list
    descriptor = await signer.public_key()
    signed = {
        "_type": "root",
        "spec_version": "1.0.0",
        "version": 1,
        "keys": {descriptor.key_id: descriptor.to_tuf_key()},
        "roles": {"root": {"keyids": [descriptor.key_id], "threshold": 1}},
    }
    canonical = json.dumps(signed, sort_keys=True, separators=(",", ":")).encode()

    signature = await signer.sign(canonical)
    metadata = {"signed": signed, "signatures": [signature.to_tuf()]}

    print(f"✅ Signed with {signature.algorithm.value}")
    print(f"🔑 Key ID: {descriptor.key_id}")
    print(f"🔍 Verified: {verify_signature(descriptor, canonical, signature)}")
    print(json.dumps(metadata["signatures"], indent=2))

    await service.close()


if __name__ == "__main__":
    asyncio.run(main())
