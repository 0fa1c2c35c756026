"""
Private key parser adapter — algorithm detection + key decoding.

Implements the PrivateKeyParser port using:
  - asn1crypto: PEM unarmouring and ASN.1 inspection of the key structure
    to learn its algorithm family without decoding the key material
  - cryptography (PyCA): decoding the key into a usable key object

Pipeline:
  raw bytes
    → asn1crypto: pem.unarmor() when PEM armoured (label gives a first hint)
    → asn1crypto: probe PKCS#8 PrivateKeyInfo → PKCS#1 RSAPrivateKey → SEC1 ECPrivateKey
    → cryptography: load_der_private_key()
    → isinstance check against the hinted or detected family

Encrypted keys are outside what this parser supports; they fail with
PARSE_ERROR like any other undecodable input.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog
from asn1crypto import core, keys, pem
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, ed25519, rsa
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures

from iot_credentials.domain.models import KeyAlgorithm

log = structlog.get_logger()

_KEY_TYPES: dict[KeyAlgorithm, type] = {
    KeyAlgorithm.RSA: rsa.RSAPrivateKey,
    KeyAlgorithm.EC: ec.EllipticCurvePrivateKey,
    KeyAlgorithm.DSA: dsa.DSAPrivateKey,
    KeyAlgorithm.ED25519: ed25519.Ed25519PrivateKey,
    KeyAlgorithm.ED448: ed448.Ed448PrivateKey,
}

# privateKeyAlgorithm OIDs
_PKCS8_ALGORITHMS: dict[str, KeyAlgorithm] = {
    "1.2.840.113549.1.1.1": KeyAlgorithm.RSA,  # rsaEncryption
    "1.2.840.113549.1.1.10": KeyAlgorithm.RSA,  # id-RSASSA-PSS
    "1.2.840.10045.2.1": KeyAlgorithm.EC,  # id-ecPublicKey
    "1.2.840.10040.4.1": KeyAlgorithm.DSA,  # id-dsa
    "1.3.101.112": KeyAlgorithm.ED25519,
    "1.3.101.113": KeyAlgorithm.ED448,
}

# Traditional (algorithm-specific) PEM labels
_PEM_LABELS: dict[str, KeyAlgorithm] = {
    "RSA PRIVATE KEY": KeyAlgorithm.RSA,
    "EC PRIVATE KEY": KeyAlgorithm.EC,
    "DSA PRIVATE KEY": KeyAlgorithm.DSA,
}

_ASN1_ERRORS = (ValueError, TypeError, KeyError)

# ─────────────────────── PKCS#8 ASN.1 Schema ───────────────────────
# RFC 5208 / RFC 5958
#
# PrivateKeyInfo ::= SEQUENCE {
#     version              INTEGER,
#     privateKeyAlgorithm  AlgorithmIdentifier,
#     privateKey           OCTET STRING,
#     attributes       [0] Attributes OPTIONAL,
#     publicKey        [1] BIT STRING OPTIONAL
# }


class _AlgorithmIdentifier(core.Sequence):  # type: ignore[misc]
    """AlgorithmIdentifier with opaque parameters; only the OID is inspected."""

    _fields = [
        ("algorithm", core.ObjectIdentifier),
        ("parameters", core.Any, {"optional": True}),
    ]


class _PrivateKeyInfo(core.Sequence):  # type: ignore[misc]
    """PKCS#8 envelope, read without interpreting the inner key."""

    _fields = [
        ("version", core.Integer),
        ("private_key_algorithm", _AlgorithmIdentifier),
        ("private_key", core.OctetString),
        ("attributes", core.Any, {"optional": True}),
        ("public_key", core.Any, {"optional": True}),
    ]


# ─────────────────────── Encoding ───────────────────────


def _unwrap(data: bytes) -> tuple[bytes, KeyAlgorithm | None]:
    """
    Return the DER body of the key and the algorithm implied by its PEM label.

    Raises ValueError for empty input and for encrypted keys.
    """
    if not data:
        raise ValueError("Private key data is empty")
    if not pem.detect(data):
        return data, None

    label, headers, der_bytes = pem.unarmor(data)
    if label == "ENCRYPTED PRIVATE KEY" or headers.get("Proc-Type", "").endswith("ENCRYPTED"):
        raise ValueError("Encrypted private keys are not supported")
    return der_bytes, _PEM_LABELS.get(label)


# ─────────────────────── Algorithm Detection ───────────────────────


def _probe_pkcs8(der_bytes: bytes) -> KeyAlgorithm | None:
    """PKCS#8 embeds the algorithm identifier; read it without touching the key."""
    try:
        info = _PrivateKeyInfo.load(der_bytes, strict=True)
        oid = info["private_key_algorithm"]["algorithm"].dotted
        _ = info["private_key"].native
    except _ASN1_ERRORS:
        return None
    return _PKCS8_ALGORITHMS.get(oid)


def _probe_pkcs1_rsa(der_bytes: bytes) -> KeyAlgorithm | None:
    try:
        _ = keys.RSAPrivateKey.load(der_bytes, strict=True).native
    except _ASN1_ERRORS:
        return None
    return KeyAlgorithm.RSA


def _probe_sec1_ec(der_bytes: bytes) -> KeyAlgorithm | None:
    try:
        ec_key = keys.ECPrivateKey.load(der_bytes, strict=True)
        _ = ec_key["private_key"].native
    except _ASN1_ERRORS:
        return None
    return KeyAlgorithm.EC


_PROBES: tuple[Callable[[bytes], KeyAlgorithm | None], ...] = (
    _probe_pkcs8,
    _probe_pkcs1_rsa,
    _probe_sec1_ec,
)


def detect_key_algorithm(der_bytes: bytes) -> KeyAlgorithm | None:
    """
    Detect the algorithm family of a DER private key.

    Probes run in a fixed order: PKCS#8 (algorithm identifier), then PKCS#1
    RSA, then SEC1 EC. Returns None when no probe recognises the structure.
    """
    for probe in _PROBES:
        algorithm = probe(der_bytes)
        if algorithm is not None:
            return algorithm
    return None


# ─────────────────────── Public Parser Class ───────────────────────


class Asn1PrivateKeyParser:
    """
    Parse DER or PEM private keys (PKCS#8, PKCS#1, SEC1).

    Implements the PrivateKeyParser port.
    All exceptions are caught at this adapter boundary via Result.from_computation().
    """

    def parse(
        self,
        data: bytes,
        algorithm: KeyAlgorithm | None = None,
    ) -> Result[PrivateKeyTypes]:
        """
        Decode a private key, optionally constrained to an algorithm family.

        Returns Result.failure(PARSE_ERROR, ...) when the bytes are not a
        supported unencrypted key or the key is not of the hinted family.
        """
        return (
            Result.from_computation(
                lambda: _unwrap(data),
                ErrorCode.PARSE_ERROR,
                "Failed to decode private key encoding",
            )
            .flat_map(lambda unwrapped: self._decode(unwrapped[0], algorithm or unwrapped[1]))
            .peek(lambda key: log.info("private_key.parsed", key_type=type(key).__name__))
        )

    def _decode(
        self,
        der_bytes: bytes,
        expected: KeyAlgorithm | None,
    ) -> Result[PrivateKeyTypes]:
        algorithm = expected or detect_key_algorithm(der_bytes)
        if algorithm is None:
            return ResultFailures.parse_error(
                "Private key is not a recognised PKCS#8, PKCS#1 RSA or SEC1 EC structure"
            )
        return Result.from_computation(
            lambda: serialization.load_der_private_key(der_bytes, password=None),
            ErrorCode.PARSE_ERROR,
            f"Failed to parse {algorithm.value} private key",
        ).ensure(
            lambda key: isinstance(key, _KEY_TYPES[algorithm]),
            ErrorCode.PARSE_ERROR,
            f"Private key is not of the {algorithm.value} family",
        )
