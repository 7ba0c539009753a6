# -*- encoding: utf-8 -*-
"""
Credential records, call context and registry events.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict

from .crypto import BytesLike, normalize_address, to_bytes32


def _hex(value: bytes) -> str:
    return "0x" + value.hex()


@dataclass(frozen=True)
class CallContext:
    """
    Identity of the party making a registry call.

    Supplied by the calling layer; used as the issuer at registration
    and as the reported verifier on successful verification.
    """
    sender: str

    def __post_init__(self):
        object.__setattr__(self, "sender", normalize_address(self.sender))

    @classmethod
    def of(cls, address: BytesLike) -> "CallContext":
        return cls(sender=address)


@dataclass(frozen=True)
class Credential:
    """
    An immutable registered credential.

    The registry never inspects credential_hash; it is the digest of an
    off-chain document supplied by the issuer.
    """
    id: bytes
    issuer: str
    recipient_did: str
    credential_hash: bytes
    credential_type: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": _hex(self.id),
            "issuer": self.issuer,
            "recipient_did": self.recipient_did,
            "credential_hash": _hex(self.credential_hash),
            "credential_type": self.credential_type,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Credential":
        return cls(
            id=to_bytes32(data["id"], "id"),
            issuer=normalize_address(data["issuer"]),
            recipient_did=data["recipient_did"],
            credential_hash=to_bytes32(data["credential_hash"], "credential_hash"),
            credential_type=data["credential_type"],
        )


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class RegistryEvent:
    """Base for events written to an EventSink."""
    name: ClassVar[str] = "RegistryEvent"

    def to_dict(self) -> Dict[str, Any]:
        raise NotImplementedError


@dataclass(frozen=True)
class CredentialRegistered(RegistryEvent):
    """Emitted once per successful registration."""
    name: ClassVar[str] = "CredentialRegistered"

    credential_id: bytes
    issuer: str
    recipient_did: str
    credential_type: str
    emitted_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        compare=False,
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "credential_id": _hex(self.credential_id),
            "issuer": self.issuer,
            "recipient_did": self.recipient_did,
            "credential_type": self.credential_type,
            "emitted_at": self.emitted_at,
        }


@dataclass(frozen=True)
class CredentialVerified(RegistryEvent):
    """
    Emitted on every successful verification.

    verifier is the caller that performed the verification, not the
    recovered signer (which is always the issuer on success).
    """
    name: ClassVar[str] = "CredentialVerified"

    credential_id: bytes
    verifier: str
    emitted_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        compare=False,
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.name,
            "credential_id": _hex(self.credential_id),
            "verifier": self.verifier,
            "emitted_at": self.emitted_at,
        }


def event_from_dict(data: Dict[str, Any]) -> RegistryEvent:
    """Rebuild an event from its to_dict() form."""
    name = data.get("event")
    if name == CredentialRegistered.name:
        return CredentialRegistered(
            credential_id=to_bytes32(data["credential_id"], "credential_id"),
            issuer=normalize_address(data["issuer"]),
            recipient_did=data["recipient_did"],
            credential_type=data["credential_type"],
            emitted_at=data["emitted_at"],
        )
    if name == CredentialVerified.name:
        return CredentialVerified(
            credential_id=to_bytes32(data["credential_id"], "credential_id"),
            verifier=normalize_address(data["verifier"]),
            emitted_at=data["emitted_at"],
        )
    raise ValueError(f"Unknown event type: {name!r}")
