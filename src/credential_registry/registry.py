# -*- encoding: utf-8 -*-
"""
Credential Registry - Append-only ledger of issued credentials.

Records third-party-issued credentials (diplomas, certificates) under a
caller-chosen 32-byte id, and lets any party check that the issuer on file
signed the binding between that id and itself.

Usage:
    from credential_registry import (
        CallContext,
        CredentialRegistry,
        InMemoryEventLog,
        encode_bytes32_string,
        keccak256,
    )

    log = InMemoryEventLog()
    registry = CredentialRegistry(event_sink=log)

    issuer = CallContext.of("0x70997970C51812dc3A010C7d01b50e0d17dc79C8")
    registry.register_credential(
        issuer,
        credential_id=encode_bytes32_string("abcdef0123456789"),
        recipient_did="did:example:alice",
        credential_hash=keccak256(b"diploma.pdf contents"),
        credential_type="Degree",
    )

    # Anyone may verify, with a signature made by the issuer's key
    registry.verify_credential(CallContext.of(verifier), credential_id, signature)

    # Lookups
    registry.get_credentials_by_issuer(issuer.sender)
    registry.get_credentials_by_recipient("did:example:alice")
    registry.get_credentials_by_type("Degree")
"""

import logging
import threading
from typing import Dict, Hashable, List, Optional

from eth_keys.exceptions import BadSignature

from .base_registry import IndexedRegistry
from .config import RegistryConfig
from .crypto import (
    BytesLike,
    SignatureFormatError,
    credential_message_hash,
    normalize_address,
    parse_signature,
    recover_signer,
    signable_hash,
    to_bytes32,
)
from .errors import (
    CredentialNotFound,
    DuplicateCredential,
    InvalidSignature,
    MalformedSignature,
)
from .events import EventSink, InMemoryEventLog
from .models import CallContext, Credential, CredentialRegistered, CredentialVerified

logger = logging.getLogger(__name__)


def _short(credential_id: bytes) -> str:
    return "0x" + credential_id.hex()[:16] + "..."


class CredentialRegistry(IndexedRegistry[bytes, Credential]):
    """
    Registry of credentials indexed by issuer, recipient DID and type.

    Registration and the matching event form a single transaction: if the
    event sink rejects the event, the registration is undone. Verification
    never changes stored state.
    """

    INDEXES = ("issuer", "recipient", "type")

    def __init__(
        self,
        event_sink: Optional[EventSink] = None,
        config: Optional[RegistryConfig] = None,
    ):
        super().__init__()
        self._event_sink = event_sink if event_sink is not None else InMemoryEventLog()
        self._config = config or RegistryConfig()

    @property
    def event_sink(self) -> EventSink:
        return self._event_sink

    @property
    def config(self) -> RegistryConfig:
        return self._config

    def _index_keys(self, obj: Credential) -> Dict[str, Hashable]:
        return {
            "issuer": obj.issuer,
            "recipient": obj.recipient_did,
            "type": obj.credential_type,
        }

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_credential(
        self,
        ctx: CallContext,
        credential_id: BytesLike,
        recipient_did: str,
        credential_hash: BytesLike,
        credential_type: str,
    ) -> Credential:
        """
        Register a credential issued by the caller.

        Args:
            ctx: Calling identity; recorded as the credential's issuer
            credential_id: 32-byte id, unique across the registry
            recipient_did: DID of the credential subject (stored as-is)
            credential_hash: 32-byte digest of the off-chain document
            credential_type: Free-text classification (e.g. 'Degree')

        Returns:
            The stored Credential

        Raises:
            DuplicateCredential: If credential_id is already registered
            ValueError: If credential_id or credential_hash is not 32 bytes
        """
        credential = Credential(
            id=to_bytes32(credential_id, "credential_id"),
            issuer=ctx.sender,
            recipient_did=recipient_did,
            credential_hash=to_bytes32(credential_hash, "credential_hash"),
            credential_type=credential_type,
        )

        with self._lock:
            if credential.id in self._entities:
                logger.warning(f"Rejected duplicate credential {_short(credential.id)}")
                raise DuplicateCredential(
                    f"Credential already registered: 0x{credential.id.hex()}",
                    credential_id=credential.id,
                )
            self._insert(credential.id, credential, on_commit=self._emit_registered)

        logger.info(
            f"Registered {credential.credential_type} credential {_short(credential.id)} "
            f"issuer={credential.issuer} recipient={credential.recipient_did}"
        )
        return credential

    def _emit_registered(self, credential: Credential) -> None:
        self._event_sink.record(
            CredentialRegistered(
                credential_id=credential.id,
                issuer=credential.issuer,
                recipient_did=credential.recipient_did,
                credential_type=credential.credential_type,
            )
        )

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    def verify_credential(
        self,
        ctx: CallContext,
        credential_id: BytesLike,
        signature: BytesLike,
    ) -> CredentialVerified:
        """
        Verify that the credential's issuer signed its id/issuer binding.

        The expected message is keccak256(credential_id || issuer), wrapped
        in EIP-191 framing unless config.personal_message is off.

        Args:
            ctx: Calling identity; reported as the verifier in the event
            credential_id: Id of a registered credential
            signature: 65-byte r || s || v signature (bytes or 0x-hex)

        Returns:
            The CredentialVerified event that was emitted

        Raises:
            CredentialNotFound: If no credential has this id
            MalformedSignature: If the signature cannot be split into r, s, v
            InvalidSignature: If the signature does not recover to the issuer
        """
        cid = to_bytes32(credential_id, "credential_id")
        credential = self._get(cid)
        if credential is None:
            raise CredentialNotFound(
                f"Credential does not exist: 0x{cid.hex()}",
                credential_id=cid,
            )

        try:
            parts = parse_signature(signature, reject_high_s=self._config.reject_high_s)
        except SignatureFormatError as e:
            logger.warning(f"Malformed signature for {_short(cid)}: {e}")
            raise MalformedSignature(f"Malformed signature: {e}", credential_id=cid) from e

        digest = credential_message_hash(cid, credential.issuer)
        message_hash = signable_hash(digest, personal_message=self._config.personal_message)

        try:
            signer = recover_signer(message_hash, parts)
        except BadSignature as e:
            logger.warning(f"Signature recovery failed for {_short(cid)}: {e}")
            raise InvalidSignature("Invalid signature", credential_id=cid) from e

        if signer != credential.issuer:
            logger.warning(
                f"Invalid signature for {_short(cid)}: "
                f"recovered {signer}, issuer is {credential.issuer}"
            )
            raise InvalidSignature("Invalid signature", credential_id=cid)

        event = CredentialVerified(credential_id=cid, verifier=ctx.sender)
        self._event_sink.record(event)

        logger.info(f"Verified credential {_short(cid)} for {ctx.sender}")
        return event

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_credentials_by_issuer(self, issuer: BytesLike) -> List[bytes]:
        """Credential ids registered by issuer, oldest first."""
        return self._lookup("issuer", normalize_address(issuer))

    def get_credentials_by_recipient(self, recipient_did: str) -> List[bytes]:
        """Credential ids issued to recipient_did, oldest first."""
        return self._lookup("recipient", recipient_did)

    def get_credentials_by_type(self, credential_type: str) -> List[bytes]:
        """Credential ids of credential_type, oldest first."""
        return self._lookup("type", credential_type)

    def get_credential(self, credential_id: BytesLike) -> Optional[Credential]:
        """The stored record, or None if the id is unused."""
        return self._get(to_bytes32(credential_id, "credential_id"))

    def has_credential(self, credential_id: BytesLike) -> bool:
        return to_bytes32(credential_id, "credential_id") in self


# Module-level singleton
_registry: Optional[CredentialRegistry] = None
_registry_lock = threading.Lock()


def get_credential_registry(
    config: Optional[RegistryConfig] = None,
    event_sink: Optional[EventSink] = None,
) -> CredentialRegistry:
    """Get the credential registry singleton.

    Args:
        config: Verification settings, applied only on first creation.
        event_sink: Event destination, applied only on first creation.
    """
    global _registry
    with _registry_lock:
        if _registry is None:
            _registry = CredentialRegistry(event_sink=event_sink, config=config)
        return _registry


def reset_credential_registry():
    """Reset the registry (for testing)."""
    global _registry
    with _registry_lock:
        _registry = None
