# -*- encoding: utf-8 -*-
"""
Cryptographic primitives for credential verification.

The registry binds a credential to its issuer with a single signed message:

    digest  = keccak256(credential_id || issuer_address)      # 32 + 20 bytes
    message = keccak256("\\x19Ethereum Signed Message:\\n32" || digest)

The second step is the EIP-191 personal-message framing that wallets apply
when asked to sign arbitrary bytes. Verification recovers the secp256k1
public key from (message, signature) and compares its address with the
issuer on file.

Usage:
    from credential_registry.crypto import credential_message_hash, sign_credential

    digest = credential_message_hash(credential_id, issuer)
    signature = sign_credential(private_key, credential_id, issuer)
"""

from dataclasses import dataclass
from typing import Union

from eth_keys import keys
from eth_keys.constants import SECPK1_N
from eth_keys.exceptions import BadSignature
from eth_utils import (
    ValidationError,
    decode_hex,
    is_address,
    is_checksum_address,
    is_checksum_formatted_address,
    is_hexstr,
    keccak,
    to_canonical_address,
    to_checksum_address,
)

BytesLike = Union[bytes, bytearray, str]

PERSONAL_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n"
SIGNATURE_LENGTH = 65


# =============================================================================
# Encoding helpers
# =============================================================================


def keccak256(data: bytes) -> bytes:
    """Keccak-256 digest (the pre-standard SHA-3 used by Ethereum)."""
    return keccak(primitive=bytes(data))


def to_bytes32(value: BytesLike, field_name: str = "value") -> bytes:
    """
    Coerce a 32-byte value from bytes or a 0x-prefixed hex string.

    Raises:
        ValueError: If the value is not exactly 32 bytes
    """
    if isinstance(value, str):
        if not value.startswith(("0x", "0X")) or not is_hexstr(value):
            raise ValueError(f"{field_name} must be 0x-prefixed hex, got {value!r}")
        try:
            value = decode_hex(value)
        except ValueError as e:
            raise ValueError(f"{field_name} is not valid hex: {e}") from e
    if not isinstance(value, (bytes, bytearray)):
        raise ValueError(f"{field_name} must be bytes or hex, got {type(value).__name__}")
    if len(value) != 32:
        raise ValueError(f"{field_name} must be 32 bytes, got {len(value)}")
    return bytes(value)


def encode_bytes32_string(text: str) -> bytes:
    """
    Encode short text as a zero-padded bytes32 value.

    At most 31 UTF-8 bytes are allowed so the value always keeps a
    terminating zero byte.
    """
    raw = text.encode("utf-8")
    if len(raw) > 31:
        raise ValueError(f"bytes32 string too long: {len(raw)} bytes (max 31)")
    return raw.ljust(32, b"\x00")


def decode_bytes32_string(value: BytesLike) -> str:
    """Inverse of encode_bytes32_string."""
    return to_bytes32(value).rstrip(b"\x00").decode("utf-8")


def normalize_address(address: BytesLike) -> str:
    """
    Return the EIP-55 checksummed form of an address.

    Accepts 20 raw bytes or a hex string. Mixed-case hex must carry a
    valid checksum.

    Raises:
        ValueError: If the value is not a valid address
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != 20:
            raise ValueError(f"Address must be 20 bytes, got {len(address)}")
        address = "0x" + bytes(address).hex()
    if not isinstance(address, str) or not is_address(address):
        raise ValueError(f"Invalid address: {address!r}")
    if is_checksum_formatted_address(address) and not is_checksum_address(address):
        raise ValueError(f"Invalid address checksum: {address!r}")
    return to_checksum_address(address)


def address_bytes(address: BytesLike) -> bytes:
    """20-byte canonical form of an address."""
    return to_canonical_address(normalize_address(address))


# =============================================================================
# Message reconstruction
# =============================================================================


def credential_message_hash(credential_id: BytesLike, issuer: BytesLike) -> bytes:
    """keccak256(credential_id || issuer), tightly packed."""
    packed = to_bytes32(credential_id, "credential_id") + address_bytes(issuer)
    return keccak256(packed)


def signable_hash(digest: bytes, personal_message: bool = True) -> bytes:
    """
    Hash that is actually signed for a message digest.

    With personal_message the digest is wrapped in EIP-191 framing,
    which is what wallet signMessage calls produce.
    """
    if not personal_message:
        return digest
    return keccak256(PERSONAL_MESSAGE_PREFIX + str(len(digest)).encode("ascii") + digest)


# =============================================================================
# Signatures
# =============================================================================


class SignatureFormatError(ValueError):
    """Signature bytes cannot be decomposed into (r, s, v)."""


@dataclass(frozen=True)
class SignatureParts:
    """A decomposed recoverable signature. v is the 0/1 parity bit."""
    r: int
    s: int
    v: int


def parse_signature(signature: BytesLike, reject_high_s: bool = True) -> SignatureParts:
    """
    Split a 65-byte r || s || v signature.

    Accepts v as 0/1 or 27/28. r and s must lie in [1, n); with
    reject_high_s, s must also lie in the lower half of the curve order.

    Raises:
        SignatureFormatError: If any component is out of range
    """
    if isinstance(signature, str):
        if not is_hexstr(signature):
            raise SignatureFormatError("Signature is not valid hex")
        try:
            signature = decode_hex(signature)
        except ValueError as e:
            raise SignatureFormatError(f"Signature is not valid hex: {e}") from e
    if not isinstance(signature, (bytes, bytearray)):
        raise SignatureFormatError(f"Signature must be bytes, got {type(signature).__name__}")
    if len(signature) != SIGNATURE_LENGTH:
        raise SignatureFormatError(
            f"Signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}"
        )

    r = int.from_bytes(signature[0:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]

    if v >= 27:
        v -= 27
    if v not in (0, 1):
        raise SignatureFormatError(f"Invalid recovery byte: {signature[64]}")
    if not 0 < r < SECPK1_N:
        raise SignatureFormatError("Signature r out of range")
    if not 0 < s < SECPK1_N:
        raise SignatureFormatError("Signature s out of range")
    if reject_high_s and s > SECPK1_N // 2:
        raise SignatureFormatError("Signature s is not in the lower half order")

    return SignatureParts(r=r, s=s, v=v)


def recover_signer(message_hash: bytes, parts: SignatureParts) -> str:
    """
    Recover the checksummed signer address for a 32-byte message hash.

    Raises:
        BadSignature: If no public key can be recovered
    """
    try:
        signature = keys.Signature(vrs=(parts.v, parts.r, parts.s))
    except ValidationError as e:
        raise BadSignature(str(e)) from e
    public_key = signature.recover_public_key_from_msg_hash(message_hash)
    return public_key.to_checksum_address()


def _private_key(key: Union[keys.PrivateKey, BytesLike]) -> keys.PrivateKey:
    if isinstance(key, keys.PrivateKey):
        return key
    return keys.PrivateKey(to_bytes32(key, "private_key"))


def sign_hash(private_key: Union[keys.PrivateKey, BytesLike], message_hash: bytes) -> bytes:
    """Sign a 32-byte hash, returning r || s || v with v in {27, 28}."""
    sig = _private_key(private_key).sign_msg_hash(message_hash)
    return (
        sig.r.to_bytes(32, "big")
        + sig.s.to_bytes(32, "big")
        + bytes([sig.v + 27])
    )


def sign_credential(
    private_key: Union[keys.PrivateKey, BytesLike],
    credential_id: BytesLike,
    issuer: BytesLike,
    personal_message: bool = True,
) -> bytes:
    """
    Produce the signature verify_credential expects for a credential.

    Equivalent to a wallet signMessage over
    credential_message_hash(credential_id, issuer).
    """
    digest = credential_message_hash(credential_id, issuer)
    return sign_hash(private_key, signable_hash(digest, personal_message))


def address_of(private_key: Union[keys.PrivateKey, BytesLike]) -> str:
    """Checksummed address controlled by a private key."""
    return _private_key(private_key).public_key.to_checksum_address()
