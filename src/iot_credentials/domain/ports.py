"""
Ports — Protocol-based interfaces for the credential loading adapters.

The pipeline depends only on these contracts:

  MaterialSource      → raw bytes for a path
  CertificateParser   → x509.Certificate from PEM/DER bytes
  PrivateKeyParser    → private key from PEM/DER bytes (+ optional hint)
  CredentialStoreBuilder → password-protected in-memory key store

Each port is a Protocol (structural typing), so adapters and test doubles
satisfy the contract by implementing the method — no inheritance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from railway.result import Result

from iot_credentials.domain.models import CredentialStorePasswordPair, KeyAlgorithm


@runtime_checkable
class MaterialSource(Protocol):
    """
    Port: read the raw bytes of a certificate or key file.

    Returns Result.failure(NOT_FOUND) when the path does not exist,
    Result.failure(IO_ERROR) when it exists but cannot be read.
    """

    def read(self, path: Path, description: str) -> Result[bytes]: ...


@runtime_checkable
class CertificateParser(Protocol):
    """Port: decode a DER or PEM X.509 certificate."""

    def parse(self, data: bytes) -> Result[x509.Certificate]: ...


@runtime_checkable
class PrivateKeyParser(Protocol):
    """
    Port: decode a DER or PEM private key.

    With `algorithm` set, the decoded key must belong to that family.
    Without it, the implementation detects the family from the encoding.
    """

    def parse(self, data: bytes, algorithm: KeyAlgorithm | None = None) -> Result[PrivateKeyTypes]: ...


@runtime_checkable
class CredentialStoreBuilder(Protocol):
    """
    Port: assemble a password-protected in-memory key store.

    Either the full CredentialStorePasswordPair is produced or a
    STORE_ERROR failure; never a partially populated store.
    """

    def build(
        self,
        certificate: x509.Certificate,
        private_key: PrivateKeyTypes,
    ) -> Result[CredentialStorePasswordPair]: ...
