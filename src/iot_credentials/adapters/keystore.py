"""
In-memory PKCS#12 key store + credential store builder.

Adapter layer — implements the CredentialStoreBuilder port with
cryptography's PKCS#12 support:

  certificate + private key
    → fresh 128-bit password (secrets)
    → KeyStore: certificate entry under the alias
    → KeyStore: key entry under the same alias, sealed as a PKCS#12 blob
       (BestAvailableEncryption with the password), chain = [certificate]
    → CredentialStorePasswordPair

Nothing is written to disk; the store lives only as long as the returned pair.
"""

from __future__ import annotations

import base64
import secrets
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from cryptography.hazmat.primitives.serialization import pkcs12
from railway import ErrorCode
from railway.result import Result

from iot_credentials.domain.models import DEFAULT_ALIAS, CredentialStorePasswordPair

log = structlog.get_logger()

STORE_TYPE = "PKCS12"
PASSWORD_ENTROPY_BITS = 128


def generate_key_password() -> str:
    """
    Generate a fresh key-entry password from 128 random bits.

    Rendered as lowercase RFC 4648 base-32 without padding (26 characters).
    """
    raw = secrets.token_bytes(PASSWORD_ENTROPY_BITS // 8)
    return base64.b32encode(raw).decode("ascii").rstrip("=").lower()


def key_matches_certificate(private_key: PrivateKeyTypes, certificate: x509.Certificate) -> bool:
    """True when the key's public half is the certificate's subject public key."""
    spki = serialization.PublicFormat.SubjectPublicKeyInfo
    der = serialization.Encoding.DER
    return private_key.public_key().public_bytes(der, spki) == certificate.public_key().public_bytes(der, spki)


@dataclass(frozen=True, slots=True)
class _Entry:
    chain: tuple[x509.Certificate, ...]
    sealed_key: bytes | None = None


class KeyStore:
    """
    Alias-indexed store of certificates and password-protected private keys.

    A certificate entry holds one certificate. A key entry seals the private
    key and its chain into a PKCS#12 blob; the chain stays readable without
    the password, the key does not.
    """

    def __init__(self, store_type: str = STORE_TYPE) -> None:
        if store_type != STORE_TYPE:
            raise ValueError(f"Unsupported key store type: {store_type!r}")
        self._store_type = store_type
        self._entries: dict[str, _Entry] = {}

    @property
    def store_type(self) -> str:
        return self._store_type

    def set_certificate_entry(self, alias: str, certificate: x509.Certificate) -> None:
        existing = self._entries.get(alias)
        if existing is not None and existing.sealed_key is not None:
            raise ValueError(f"Alias {alias!r} already holds a key entry")
        self._entries[alias] = _Entry(chain=(certificate,))

    def set_key_entry(
        self,
        alias: str,
        private_key: PrivateKeyTypes,
        password: str,
        chain: Sequence[x509.Certificate],
    ) -> None:
        """
        Seal `private_key` under `password` and store it with its chain.

        Raises ValueError for an empty chain or password, TypeError when
        PKCS#12 cannot carry the key type.
        """
        if not chain:
            raise ValueError("A key entry requires a certificate chain")
        if not password:
            raise ValueError("A key entry requires a password")
        sealed = pkcs12.serialize_key_and_certificates(
            name=alias.encode("utf-8"),
            key=private_key,  # type: ignore[arg-type]
            cert=chain[0],
            cas=list(chain[1:]) or None,
            encryption_algorithm=serialization.BestAvailableEncryption(password.encode("utf-8")),
        )
        self._entries[alias] = _Entry(chain=tuple(chain), sealed_key=sealed)

    def aliases(self) -> list[str]:
        return list(self._entries)

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def contains_alias(self, alias: str) -> bool:
        return alias in self._entries

    def is_certificate_entry(self, alias: str) -> bool:
        """
        True when `alias` holds a certificate, including the chain head of a key entry.

        Unlike java.security.KeyStore.isCertificateEntry, key entries also count;
        use is_key_entry() to tell the two apart.
        """
        return alias in self._entries

    def is_key_entry(self, alias: str) -> bool:
        entry = self._entries.get(alias)
        return entry is not None and entry.sealed_key is not None

    def get_certificate(self, alias: str) -> x509.Certificate | None:
        """The certificate stored under `alias` (the chain head for key entries)."""
        entry = self._entries.get(alias)
        return entry.chain[0] if entry is not None else None

    def get_certificate_chain(self, alias: str) -> tuple[x509.Certificate, ...]:
        entry = self._entries.get(alias)
        return entry.chain if entry is not None else ()

    def get_key(self, alias: str, password: str) -> PrivateKeyTypes | None:
        """
        Unseal the private key stored under `alias`.

        Returns None when the alias has no key entry.
        Raises ValueError when the password is wrong.
        """
        sealed = self.export_pkcs12(alias)
        if sealed is None:
            return None
        private_key, _, _ = pkcs12.load_key_and_certificates(sealed, password.encode("utf-8"))
        return private_key

    def export_pkcs12(self, alias: str) -> bytes | None:
        """The sealed PKCS#12 blob of a key entry, for TLS stacks that accept PKCS#12 input."""
        entry = self._entries.get(alias)
        return entry.sealed_key if entry is not None else None

    def __repr__(self) -> str:
        return f"KeyStore(type={self._store_type!r}, aliases={self.aliases()!r})"


class Pkcs12CredentialStoreBuilder:
    """
    Build a CredentialStorePasswordPair from a parsed certificate and key.

    Implements the CredentialStoreBuilder port. Every failure during
    assembly collapses into Result.failure(STORE_ERROR, ...).
    """

    def __init__(
        self,
        alias: str = DEFAULT_ALIAS,
        verify_key_match: bool = True,
        password_factory: Callable[[], str] = generate_key_password,
    ) -> None:
        self._alias = alias
        self._verify_key_match = verify_key_match
        self._password_factory = password_factory

    def build(
        self,
        certificate: x509.Certificate,
        private_key: PrivateKeyTypes,
    ) -> Result[CredentialStorePasswordPair]:
        return Result.from_computation(
            lambda: self._assemble(certificate, private_key),
            ErrorCode.STORE_ERROR,
            "Failed to create key store",
        ).peek(
            lambda pair: log.info(
                "keystore.built",
                store_type=pair.key_store.store_type,
                alias=pair.alias,
            )
        )

    def _assemble(
        self,
        certificate: x509.Certificate,
        private_key: PrivateKeyTypes,
    ) -> CredentialStorePasswordPair:
        if self._verify_key_match and not key_matches_certificate(private_key, certificate):
            raise ValueError("Private key does not match the certificate public key")

        key_password = self._password_factory()
        key_store = KeyStore()
        key_store.set_certificate_entry(self._alias, certificate)
        key_store.set_key_entry(self._alias, private_key, key_password, (certificate,))
        return CredentialStorePasswordPair(key_store=key_store, key_password=key_password, alias=self._alias)
