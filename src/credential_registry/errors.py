# -*- encoding: utf-8 -*-
"""
Registry errors.

Every failure of a registry operation is raised as a subclass of
RegistryError. Each class carries a stable ``code`` so client tooling can
branch on the kind of failure without parsing messages:

    RegistryError
    ├── DuplicateCredential     duplicate_credential
    ├── CredentialNotFound      credential_not_found
    └── SignatureError
        ├── MalformedSignature  malformed_signature
        └── InvalidSignature    invalid_signature

No registry operation changes state when it raises.
"""

from typing import Optional


class RegistryError(Exception):
    """Base exception for credential registry failures."""

    code = "registry_error"

    def __init__(self, message: str, credential_id: Optional[bytes] = None):
        self.credential_id = credential_id
        super().__init__(message)


class DuplicateCredential(RegistryError):
    """A credential with this id is already registered."""

    code = "duplicate_credential"


class CredentialNotFound(RegistryError):
    """No credential is registered under this id."""

    code = "credential_not_found"


class SignatureError(RegistryError):
    """Base for signature failures during verification."""

    code = "signature_error"


class MalformedSignature(SignatureError):
    """Signature bytes cannot be split into r, s and a recovery byte."""

    code = "malformed_signature"


class InvalidSignature(SignatureError):
    """Signature is well-formed but does not recover to the issuer."""

    code = "invalid_signature"
