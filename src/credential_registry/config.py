# -*- encoding: utf-8 -*-
"""
Registry configuration.

Usage:
    config = RegistryConfig.from_file("registry.json")
    registry = CredentialRegistry(config=config)

File format:
    {"personal_message": true, "reject_high_s": true}
"""

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union


@dataclass(frozen=True)
class RegistryConfig:
    """
    Verification settings.

    personal_message: wrap the credential digest in EIP-191 framing before
        recovery, as wallet signMessage does. Disable to verify signatures
        made directly over the digest.
    reject_high_s: treat signatures whose s lies in the upper half of the
        curve order as malformed (non-canonical).
    """
    personal_message: bool = True
    reject_high_s: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RegistryConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown registry config keys: {sorted(unknown)}")
        for key, value in data.items():
            if not isinstance(value, bool):
                raise ValueError(f"Config key '{key}' must be a boolean, got {value!r}")
        return cls(**data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RegistryConfig":
        path = Path(path)
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid registry config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Registry config {path} must be a JSON object")
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
