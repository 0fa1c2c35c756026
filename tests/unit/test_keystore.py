"""
Unit tests for the in-memory PKCS#12 key store and its builder.

Test categories:
  - Password generation: entropy, encoding, freshness
  - KeyStore entries: certificate/key entries share an alias, key is sealed
  - Builder: success track, key/certificate mismatch, store rejection → STORE_ERROR
"""

from __future__ import annotations

import re
from collections.abc import Callable

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import dsa, ec, ed448, rsa
from cryptography.hazmat.primitives.asymmetric.types import CertificateIssuerPrivateKeyTypes
from cryptography.hazmat.primitives.serialization import Encoding, pkcs12
from railway import ErrorCode, ResultAssertions

from iot_credentials.adapters.keystore import (
    PASSWORD_ENTROPY_BITS,
    STORE_TYPE,
    KeyStore,
    Pkcs12CredentialStoreBuilder,
    generate_key_password,
    key_matches_certificate,
)
from iot_credentials.domain.models import DEFAULT_ALIAS
from tests.material import generate_dsa_key, generate_ed448_key, self_signed_certificate

# ─────────────────────── Password Generation ───────────────────────


class TestGenerateKeyPassword:
    def test_is_base32_text(self) -> None:
        assert re.fullmatch(r"[a-z2-7]{26}", generate_key_password())

    def test_carries_128_bits(self) -> None:
        # 26 base-32 digits hold 130 bits; the last digit pads 2 bits
        assert PASSWORD_ENTROPY_BITS == 128
        assert len(generate_key_password()) * 5 >= PASSWORD_ENTROPY_BITS

    def test_fresh_per_call(self) -> None:
        passwords = {generate_key_password() for _ in range(50)}
        assert len(passwords) == 50


# ─────────────────────── KeyStore ───────────────────────


class TestKeyStore:
    def test_default_type_is_pkcs12(self) -> None:
        assert KeyStore().store_type == STORE_TYPE == "PKCS12"

    def test_rejects_other_store_types(self) -> None:
        with pytest.raises(ValueError, match="Unsupported key store type"):
            KeyStore("JKS")

    def test_new_store_is_empty(self) -> None:
        store = KeyStore()
        assert store.size() == 0
        assert store.aliases() == []
        assert store.get_certificate("alias") is None
        assert store.get_key("alias", "pw") is None

    def test_certificate_entry(self, rsa_certificate: x509.Certificate) -> None:
        store = KeyStore()
        store.set_certificate_entry("device", rsa_certificate)
        assert store.is_certificate_entry("device")
        assert not store.is_key_entry("device")
        assert store.get_certificate("device") == rsa_certificate

    def test_key_entry_shares_alias_with_certificate(
        self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate
    ) -> None:
        store = KeyStore()
        store.set_certificate_entry("device", rsa_certificate)
        store.set_key_entry("device", rsa_key, "pw-123", [rsa_certificate])

        assert store.aliases() == ["device"]
        assert len(store) == 1
        assert store.is_certificate_entry("device")
        assert store.is_key_entry("device")
        assert store.get_certificate_chain("device") == (rsa_certificate,)

    def test_key_entry_counts_as_certificate_entry(
        self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate
    ) -> None:
        """
        GIVEN only a key entry under an alias
        WHEN the entry kind is queried
        THEN it reports both a key entry and a certificate (its chain head).
        """
        store = KeyStore()
        store.set_key_entry("device", rsa_key, "pw-123", [rsa_certificate])

        assert store.is_key_entry("device")
        assert store.is_certificate_entry("device")
        assert not store.is_certificate_entry("other")

    def test_key_requires_password(self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate) -> None:
        store = KeyStore()
        store.set_key_entry("device", rsa_key, "pw-123", [rsa_certificate])

        key = store.get_key("device", "pw-123")
        assert isinstance(key, rsa.RSAPrivateKey)
        assert key.private_numbers() == rsa_key.private_numbers()
        with pytest.raises(ValueError):
            store.get_key("device", "wrong")

    def test_exported_pkcs12_is_password_protected(
        self, ec_key: ec.EllipticCurvePrivateKey, ec_certificate: x509.Certificate
    ) -> None:
        store = KeyStore()
        store.set_key_entry("device", ec_key, "pw-123", [ec_certificate])

        blob = store.export_pkcs12("device")
        assert blob is not None
        bundle = pkcs12.load_pkcs12(blob, b"pw-123")
        assert bundle.cert is not None
        assert bundle.cert.friendly_name == b"device"
        assert bundle.cert.certificate == ec_certificate

    def test_key_entry_requires_chain(self, rsa_key: rsa.RSAPrivateKey) -> None:
        with pytest.raises(ValueError, match="certificate chain"):
            KeyStore().set_key_entry("device", rsa_key, "pw", [])

    def test_certificate_entry_cannot_replace_key_entry(
        self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate
    ) -> None:
        store = KeyStore()
        store.set_key_entry("device", rsa_key, "pw", [rsa_certificate])
        with pytest.raises(ValueError, match="already holds a key entry"):
            store.set_certificate_entry("device", rsa_certificate)

    def test_repr_lists_aliases_only(self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate) -> None:
        store = KeyStore()
        store.set_key_entry("device", rsa_key, "pw-secret", [rsa_certificate])
        assert repr(store) == "KeyStore(type='PKCS12', aliases=['device'])"


# ─────────────────────── Builder ───────────────────────


class TestPkcs12CredentialStoreBuilder:
    """
    GIVEN a parsed certificate and its matching private key
    WHEN build is called
    THEN a one-alias key store protected by a fresh password is returned.
    """

    def test_builds_single_alias_store(self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate) -> None:
        pair = ResultAssertions.assert_success(Pkcs12CredentialStoreBuilder().build(rsa_certificate, rsa_key))

        store = pair.key_store
        assert pair.alias == DEFAULT_ALIAS == "alias"
        assert store.aliases() == ["alias"]
        assert store.is_certificate_entry("alias")
        assert store.is_key_entry("alias")
        assert store.get_key("alias", pair.key_password) is not None

    def test_certificate_round_trips_byte_for_byte(
        self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate
    ) -> None:
        pair = ResultAssertions.assert_success(Pkcs12CredentialStoreBuilder().build(rsa_certificate, rsa_key))
        stored = pair.key_store.get_certificate("alias")
        assert stored is not None
        assert stored.public_bytes(Encoding.DER) == rsa_certificate.public_bytes(Encoding.DER)

    def test_passwords_differ_between_builds(
        self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate
    ) -> None:
        builder = Pkcs12CredentialStoreBuilder()
        first = ResultAssertions.assert_success(builder.build(rsa_certificate, rsa_key))
        second = ResultAssertions.assert_success(builder.build(rsa_certificate, rsa_key))
        assert first.key_password != second.key_password
        assert first.key_store is not second.key_store

    def test_ec_pair(self, ec_key: ec.EllipticCurvePrivateKey, ec_certificate: x509.Certificate) -> None:
        pair = ResultAssertions.assert_success(Pkcs12CredentialStoreBuilder().build(ec_certificate, ec_key))
        assert isinstance(pair.key_store.get_key("alias", pair.key_password), ec.EllipticCurvePrivateKey)

    @pytest.mark.parametrize(
        ("generate_key", "key_type"),
        [(generate_dsa_key, dsa.DSAPrivateKey), (generate_ed448_key, ed448.Ed448PrivateKey)],
        ids=["dsa", "ed448"],
    )
    def test_other_supported_key_types(
        self, generate_key: Callable[[], CertificateIssuerPrivateKeyTypes], key_type: type
    ) -> None:
        """
        GIVEN a DSA or Ed448 key and its self-signed certificate
        WHEN build is called
        THEN the key is sealed and unsealed with the same type.
        """
        key = generate_key()
        certificate = self_signed_certificate(key)

        pair = ResultAssertions.assert_success(Pkcs12CredentialStoreBuilder().build(certificate, key))

        restored = pair.key_store.get_key("alias", pair.key_password)
        assert isinstance(restored, key_type)
        assert key_matches_certificate(restored, certificate)  # type: ignore[arg-type]

    def test_custom_alias(self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate) -> None:
        pair = ResultAssertions.assert_success(
            Pkcs12CredentialStoreBuilder(alias="thing-01").build(rsa_certificate, rsa_key)
        )
        assert pair.key_store.aliases() == ["thing-01"]

    def test_password_not_in_repr(self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate) -> None:
        pair = ResultAssertions.assert_success(Pkcs12CredentialStoreBuilder().build(rsa_certificate, rsa_key))
        assert pair.key_password not in repr(pair)

    def test_mismatched_key_is_store_error(
        self, ec_key: ec.EllipticCurvePrivateKey, rsa_certificate: x509.Certificate
    ) -> None:
        """
        GIVEN a certificate and a private key that does not belong to it
        WHEN build is called
        THEN the result is STORE_ERROR and no store is returned.
        """
        result = Pkcs12CredentialStoreBuilder().build(rsa_certificate, ec_key)
        error = ResultAssertions.assert_failure(result, ErrorCode.STORE_ERROR)
        assert "does not match" in error.reason

    def test_store_rejection_is_store_error(
        self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate
    ) -> None:
        """
        GIVEN a password source that yields an empty password
        WHEN build is called
        THEN the store rejects the key entry and the failure is STORE_ERROR.
        """
        builder = Pkcs12CredentialStoreBuilder(password_factory=lambda: "")
        ResultAssertions.assert_failure(builder.build(rsa_certificate, rsa_key), ErrorCode.STORE_ERROR)


class TestKeyMatchesCertificate:
    def test_matching(self, rsa_key: rsa.RSAPrivateKey, rsa_certificate: x509.Certificate) -> None:
        assert key_matches_certificate(rsa_key, rsa_certificate)

    def test_not_matching(self, ec_key: ec.EllipticCurvePrivateKey, rsa_certificate: x509.Certificate) -> None:
        assert not key_matches_certificate(ec_key, rsa_certificate)
