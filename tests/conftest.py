"""
Shared test fixtures for the iot-credentials test suite.

Key generation is slow enough (RSA-2048) that keys and certificates are
session-scoped; files are written per test under tmp_path.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from tests.material import (
    certificate_bytes,
    generate_ec_key,
    generate_rsa_key,
    private_key_bytes,
    self_signed_certificate,
)


@pytest.fixture(scope="session")
def rsa_key() -> rsa.RSAPrivateKey:
    return generate_rsa_key()


@pytest.fixture(scope="session")
def rsa_certificate(rsa_key: rsa.RSAPrivateKey) -> x509.Certificate:
    return self_signed_certificate(rsa_key)


@pytest.fixture(scope="session")
def ec_key() -> ec.EllipticCurvePrivateKey:
    return generate_ec_key()


@pytest.fixture(scope="session")
def ec_certificate(ec_key: ec.EllipticCurvePrivateKey) -> x509.Certificate:
    return self_signed_certificate(ec_key, common_name="iot-device-ec")


@pytest.fixture()
def rsa_credential_files(
    tmp_path: Path,
    rsa_key: rsa.RSAPrivateKey,
    rsa_certificate: x509.Certificate,
) -> tuple[Path, Path]:
    """cert.pem (X.509 PEM) + key.pem (PKCS#8 RSA PEM) on disk."""
    cert_path = tmp_path / "cert.pem"
    key_path = tmp_path / "key.pem"
    cert_path.write_bytes(certificate_bytes(rsa_certificate))
    key_path.write_bytes(private_key_bytes(rsa_key))
    return cert_path, key_path
