# -*- encoding: utf-8 -*-
"""
Tests for credential_registry.crypto - hashing, encoding and signatures.
"""

import pytest

from eth_keys.constants import SECPK1_N

from credential_registry.crypto import (
    PERSONAL_MESSAGE_PREFIX,
    SignatureFormatError,
    address_bytes,
    address_of,
    credential_message_hash,
    decode_bytes32_string,
    encode_bytes32_string,
    keccak256,
    normalize_address,
    parse_signature,
    recover_signer,
    sign_credential,
    sign_hash,
    signable_hash,
    to_bytes32,
)


# Local development account #0
DEV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEV_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


class TestHashing:

    def test_keccak256_empty(self):
        assert keccak256(b"").hex() == (
            "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
        )

    def test_credential_message_is_tightly_packed(self):
        cid = encode_bytes32_string("abc")
        expected = keccak256(cid + bytes.fromhex(DEV_ADDRESS[2:]))
        assert credential_message_hash(cid, DEV_ADDRESS) == expected

    def test_credential_message_ignores_address_case(self):
        cid = encode_bytes32_string("abc")
        assert credential_message_hash(cid, DEV_ADDRESS.lower()) == credential_message_hash(cid, DEV_ADDRESS)

    def test_signable_hash_personal_message(self):
        digest = keccak256(b"digest")
        assert signable_hash(digest) == keccak256(PERSONAL_MESSAGE_PREFIX + b"32" + digest)

    def test_signable_hash_raw(self):
        digest = keccak256(b"digest")
        assert signable_hash(digest, personal_message=False) == digest


class TestBytes32:

    def test_encode_pads_right(self):
        value = encode_bytes32_string("1234567890abcdef")
        assert len(value) == 32
        assert value[:16] == b"1234567890abcdef"
        assert value[16:] == b"\x00" * 16

    def test_encode_too_long(self):
        with pytest.raises(ValueError, match="too long"):
            encode_bytes32_string("x" * 32)

    def test_decode(self):
        assert decode_bytes32_string(encode_bytes32_string("Degree")) == "Degree"

    def test_to_bytes32_from_hex(self):
        raw = keccak256(b"x")
        assert to_bytes32("0x" + raw.hex()) == raw

    def test_to_bytes32_wrong_length(self):
        with pytest.raises(ValueError, match="32 bytes"):
            to_bytes32(b"\x00" * 31)

    def test_to_bytes32_odd_length_hex(self):
        with pytest.raises(ValueError, match="not valid hex"):
            to_bytes32("0x" + "a" * 63)

    def test_to_bytes32_requires_prefix(self):
        with pytest.raises(ValueError, match="0x-prefixed"):
            to_bytes32("ab" * 32)

    def test_to_bytes32_rejects_other_types(self):
        with pytest.raises(ValueError):
            to_bytes32(12345)


class TestAddresses:

    def test_address_of_known_key(self):
        assert address_of(DEV_KEY) == DEV_ADDRESS

    def test_normalize_lowercase(self):
        assert normalize_address(DEV_ADDRESS.lower()) == DEV_ADDRESS

    def test_normalize_bytes(self):
        assert normalize_address(bytes.fromhex(DEV_ADDRESS[2:])) == DEV_ADDRESS
        assert address_bytes(DEV_ADDRESS) == bytes.fromhex(DEV_ADDRESS[2:])

    def test_bad_checksum_rejected(self):
        bad = "0xf39fd6e51aad88F6F4ce6aB8827279cffFb92266"
        with pytest.raises(ValueError, match="Invalid address"):
            normalize_address(bad)

    @pytest.mark.parametrize("value", ["0x1234", "not an address", b"\x00" * 19, None])
    def test_invalid_addresses(self, value):
        with pytest.raises(ValueError):
            normalize_address(value)


class TestSignatures:

    def test_sign_and_recover(self):
        message_hash = keccak256(b"hello")
        signature = sign_hash(DEV_KEY, message_hash)

        assert len(signature) == 65
        assert signature[64] in (27, 28)
        assert recover_signer(message_hash, parse_signature(signature)) == DEV_ADDRESS

    def test_sign_credential_matches_manual_steps(self):
        cid = encode_bytes32_string("abcdef0123456789")
        digest = credential_message_hash(cid, DEV_ADDRESS)
        manual = sign_hash(DEV_KEY, signable_hash(digest))
        assert sign_credential(DEV_KEY, cid, DEV_ADDRESS) == manual

    def test_parse_normalizes_v(self):
        signature = sign_hash(DEV_KEY, keccak256(b"hello"))
        parts = parse_signature(signature)
        assert parts.v == signature[64] - 27
        assert parts.r == int.from_bytes(signature[:32], "big")
        assert parts.s == int.from_bytes(signature[32:64], "big")

    def test_parse_hex(self):
        signature = sign_hash(DEV_KEY, keccak256(b"hello"))
        assert parse_signature("0x" + signature.hex()) == parse_signature(signature)

    @pytest.mark.parametrize("length", [0, 32, 64, 66])
    def test_wrong_length(self, length):
        with pytest.raises(SignatureFormatError, match="65 bytes"):
            parse_signature(b"\x01" * length)

    def test_zero_signature(self):
        with pytest.raises(SignatureFormatError, match="r out of range"):
            parse_signature(b"\x00" * 65)

    def test_zero_s(self):
        with pytest.raises(SignatureFormatError, match="s out of range"):
            parse_signature(b"\x01" * 32 + b"\x00" * 32 + b"\x1b")

    def test_r_above_order(self):
        with pytest.raises(SignatureFormatError, match="r out of range"):
            parse_signature(SECPK1_N.to_bytes(32, "big") + b"\x01" * 32 + b"\x1b")

    @pytest.mark.parametrize("v", [2, 26, 29, 255])
    def test_bad_recovery_byte(self, v):
        with pytest.raises(SignatureFormatError, match="recovery byte"):
            parse_signature(b"\x01" * 64 + bytes([v]))

    def test_high_s(self):
        high_s = (SECPK1_N - 1).to_bytes(32, "big")
        signature = b"\x01" * 32 + high_s + b"\x1b"
        with pytest.raises(SignatureFormatError, match="lower half"):
            parse_signature(signature)
        assert parse_signature(signature, reject_high_s=False).s == SECPK1_N - 1

    def test_odd_length_hex(self):
        with pytest.raises(SignatureFormatError, match="not valid hex"):
            parse_signature("0x" + "1" * 129)

    def test_not_hex(self):
        with pytest.raises(SignatureFormatError, match="hex"):
            parse_signature("0xzz")

    def test_signature_format_error_is_value_error(self):
        assert issubclass(SignatureFormatError, ValueError)
