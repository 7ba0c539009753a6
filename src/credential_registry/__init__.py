# -*- encoding: utf-8 -*-
"""
credential-registry - Signature-verified credential ledger

Records third-party-issued credentials keyed by a unique 32-byte id, and
lets any party check that a specific signer authorized a specific
credential-id/issuer binding.

Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                 CredentialRegistry                      │
    │  id -> Credential, plus issuer / recipient / type       │
    │  indexes updated as one transaction                     │
    └──────────────┬───────────────────────────┬──────────────┘
                   │                           │
                   ▼                           ▼
    ┌──────────────────────────┐  ┌──────────────────────────┐
    │  crypto                  │  │  EventSink               │
    │  keccak256, EIP-191,     │  │  CredentialRegistered    │
    │  secp256k1 recovery      │  │  CredentialVerified      │
    └──────────────────────────┘  └──────────────────────────┘

Usage:
    from credential_registry import CallContext, CredentialRegistry, sign_credential

    registry = CredentialRegistry()
    issuer = CallContext.of(issuer_address)
    registry.register_credential(issuer, cid, "did:example:alice", doc_hash, "Degree")

    signature = sign_credential(issuer_key, cid, issuer_address)
    registry.verify_credential(CallContext.of(anyone), cid, signature)
"""

__version__ = "0.1.0"

from credential_registry.config import RegistryConfig

from credential_registry.crypto import (
    address_of,
    credential_message_hash,
    decode_bytes32_string,
    encode_bytes32_string,
    keccak256,
    normalize_address,
    sign_credential,
    signable_hash,
)

from credential_registry.errors import (
    RegistryError,
    DuplicateCredential,
    CredentialNotFound,
    SignatureError,
    MalformedSignature,
    InvalidSignature,
)

from credential_registry.events import (
    EventSink,
    InMemoryEventLog,
    JsonLinesEventLog,
    LoggingEventSink,
    FanoutEventSink,
)

from credential_registry.models import (
    CallContext,
    Credential,
    RegistryEvent,
    CredentialRegistered,
    CredentialVerified,
)

from credential_registry.registry import (
    CredentialRegistry,
    get_credential_registry,
    reset_credential_registry,
)

__all__ = [
    "__version__",
    # Config
    "RegistryConfig",
    # Crypto helpers
    "address_of",
    "credential_message_hash",
    "decode_bytes32_string",
    "encode_bytes32_string",
    "keccak256",
    "normalize_address",
    "sign_credential",
    "signable_hash",
    # Errors
    "RegistryError",
    "DuplicateCredential",
    "CredentialNotFound",
    "SignatureError",
    "MalformedSignature",
    "InvalidSignature",
    # Events
    "EventSink",
    "InMemoryEventLog",
    "JsonLinesEventLog",
    "LoggingEventSink",
    "FanoutEventSink",
    # Models
    "CallContext",
    "Credential",
    "RegistryEvent",
    "CredentialRegistered",
    "CredentialVerified",
    # Registry
    "CredentialRegistry",
    "get_credential_registry",
    "reset_credential_registry",
]
