"""
Domain models — immutable values produced by the credential loading pipeline.

KeyAlgorithm names the private-key families the parser understands;
CredentialStorePasswordPair is the single output of the pipeline: an
in-memory key store plus the password protecting its key entry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, unique
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from iot_credentials.adapters.keystore import KeyStore

DEFAULT_ALIAS = "alias"


@unique
class KeyAlgorithm(Enum):
    """Private-key algorithm families, in the order auto-detection tries them."""

    RSA = "RSA"
    EC = "EC"
    DSA = "DSA"
    ED25519 = "Ed25519"
    ED448 = "Ed448"

    @classmethod
    def from_name(cls, name: str) -> KeyAlgorithm:
        """
        Resolve a user-supplied algorithm hint, case-insensitively.

        Accepts the enum values plus the common synonyms "ECDSA" and
        "RSASSA-PSS". Raises ValueError for anything else.
        """
        normalized = name.strip().upper().replace("-", "").replace("_", "")
        aliases = {
            "ECDSA": cls.EC,
            "RSASSAPSS": cls.RSA,
        }
        if normalized in aliases:
            return aliases[normalized]
        for member in cls:
            if member.value.upper() == normalized:
                return member
        raise ValueError(f"Unsupported key algorithm: {name!r}")


@dataclass(frozen=True, slots=True)
class CredentialStorePasswordPair:
    """
    A password-protected in-memory key store holding one certificate/key pair.

    The password is generated per build and only protects the key entry
    inside `key_store`; it is kept out of repr so it never reaches logs.
    """

    key_store: KeyStore
    key_password: str = field(repr=False)
    alias: str = DEFAULT_ALIAS
