#!/usr/bin/env python3
"""
Walk through a register / sign / verify round against an in-process registry.

This script:
1. Registers a credential as the issuer account
2. Signs keccak256(id || issuer) with the issuer key (EIP-191 framing)
3. Verifies the signature as a second account
4. Shows that a signature from the wrong key is rejected
5. Prints the resulting event log

Usage:
    python scripts/interact.py [--events events.jsonl] [-v]
"""

import argparse
import logging
import sys

from credential_registry import (
    CallContext,
    CredentialRegistry,
    FanoutEventSink,
    InMemoryEventLog,
    InvalidSignature,
    JsonLinesEventLog,
    address_of,
    encode_bytes32_string,
    keccak256,
    sign_credential,
)


# Well-known local development accounts (never use for real funds)
ISSUER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
VERIFIER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--events", help="Also append events to this JSON Lines file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
    )

    log = InMemoryEventLog()
    sink = FanoutEventSink([log, JsonLinesEventLog(args.events)]) if args.events else log
    registry = CredentialRegistry(event_sink=sink)

    issuer = CallContext.of(address_of(ISSUER_KEY))
    verifier = CallContext.of(address_of(VERIFIER_KEY))

    credential_id = encode_bytes32_string("example-credential-id")
    registry.register_credential(
        issuer,
        credential_id=credential_id,
        recipient_did=f"did:pkh:eip155:1:{issuer.sender}",
        credential_hash=keccak256(b"example-credential"),
        credential_type="example-type",
    )
    print("Credential registered")

    signature = sign_credential(ISSUER_KEY, credential_id, issuer.sender)
    registry.verify_credential(verifier, credential_id, signature)
    print("Credential verified")

    forged = sign_credential(VERIFIER_KEY, credential_id, issuer.sender)
    try:
        registry.verify_credential(verifier, credential_id, forged)
    except InvalidSignature as e:
        print(f"Forged signature rejected: {e.code}")

    print()
    print("Events:")
    for event in log.events():
        print(f"  {event.to_dict()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
