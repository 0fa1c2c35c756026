"""
X.509 certificate parser adapter.

Implements the CertificateParser port with cryptography (PyCA). The encoding
is sniffed from the data: PEM armour ("-----BEGIN") selects the PEM loader,
anything else is handed to the DER loader. Malformed, truncated or empty
input becomes Result.failure(PARSE_ERROR) at this boundary.
"""

from __future__ import annotations

import structlog
from cryptography import x509
from railway import ErrorCode
from railway.result import Result

log = structlog.get_logger()

PEM_MARKER = b"-----BEGIN"


def is_pem(data: bytes) -> bool:
    """True when the data carries PEM armour anywhere (preamble text is allowed)."""
    return PEM_MARKER in data


def _load_certificate(data: bytes) -> x509.Certificate:
    if not data:
        raise ValueError("Certificate data is empty")
    if is_pem(data):
        return x509.load_pem_x509_certificate(data)
    return x509.load_der_x509_certificate(data)


class X509CertificateParser:
    """
    Parse DER or PEM bytes into a cryptography Certificate.

    Only the first certificate of a PEM bundle is used; the credential
    store holds a single-certificate chain.
    """

    def parse(self, data: bytes) -> Result[x509.Certificate]:
        return Result.from_computation(
            lambda: _load_certificate(data),
            ErrorCode.PARSE_ERROR,
            "Failed to parse X.509 certificate",
        ).peek(
            lambda cert: log.info(
                "certificate.parsed",
                subject=cert.subject.rfc4514_string(),
                serial=hex(cert.serial_number),
            )
        )
