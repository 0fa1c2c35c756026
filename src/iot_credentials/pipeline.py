"""
Pipeline — loads a certificate/key pair from files into a key store.

The stages are connected via flat_map, forming a railway:

  require both paths + resolve the algorithm hint
    → read certificate file
      → parse certificate
        → read private key file
          → parse private key
            → build password-protected key store

Each stage returns Result[T]. The first failure short-circuits the rest
(a missing certificate means the key file is never opened), is logged
once here, and comes back to the caller as a Failure — nothing raises.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import partial
from pathlib import Path

import structlog
from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from railway.failure import FailureDescription
from railway.result import Result
from railway.result_failures import ResultFailures

from iot_credentials.adapters.certificate_parser import X509CertificateParser
from iot_credentials.adapters.file_source import FileMaterialSource
from iot_credentials.adapters.keystore import Pkcs12CredentialStoreBuilder
from iot_credentials.adapters.private_key_parser import Asn1PrivateKeyParser
from iot_credentials.domain.models import CredentialStorePasswordPair, KeyAlgorithm
from iot_credentials.domain.ports import (
    CertificateParser,
    CredentialStoreBuilder,
    MaterialSource,
    PrivateKeyParser,
)

log = structlog.get_logger()

type PathLike = str | Path
type KeyParseStep = Callable[[bytes], Result[PrivateKeyTypes]]


def _require_paths(
    certificate_path: PathLike | None,
    private_key_path: PathLike | None,
) -> Result[tuple[Path, Path]]:
    if not certificate_path or not private_key_path:
        return ResultFailures.not_found("Certificate or private key file", "path not configured")
    return Result.success((Path(certificate_path), Path(private_key_path)))


def _bind_key_parser(
    key_parser: PrivateKeyParser,
    algorithm: KeyAlgorithm | str | None,
) -> Result[KeyParseStep]:
    """
    Fix the algorithm hint into the key parsing step.

    A blank or missing hint means auto-detection; an unknown name fails
    with VALIDATION_ERROR before any file is read.
    """
    hint: KeyAlgorithm | None
    if isinstance(algorithm, str):
        if not algorithm.strip():
            hint = None
        else:
            try:
                hint = KeyAlgorithm.from_name(algorithm)
            except ValueError as e:
                return ResultFailures.validation_error(str(e))
    else:
        hint = algorithm
    return Result.success(partial(key_parser.parse, algorithm=hint))


def _load_certificate(
    path: Path,
    source: MaterialSource,
    certificate_parser: CertificateParser,
) -> Result[x509.Certificate]:
    return source.read(path, "Certificate file").flat_map(certificate_parser.parse)


def _load_private_key(
    path: Path,
    source: MaterialSource,
    parse_key: KeyParseStep,
) -> Result[PrivateKeyTypes]:
    return source.read(path, "Private key file").flat_map(parse_key)


def _log_failure(error: FailureDescription) -> None:
    log.error(
        "credentials.load_failed",
        error_code=error.code.value,
        reason=error.reason,
    )


def run_pipeline(
    certificate_path: PathLike | None,
    private_key_path: PathLike | None,
    algorithm: KeyAlgorithm | str | None,
    source: MaterialSource,
    certificate_parser: CertificateParser,
    key_parser: PrivateKeyParser,
    store_builder: CredentialStoreBuilder,
) -> Result[CredentialStorePasswordPair]:
    """
    Execute the credential loading pipeline with injected ports.

    Returns Result[CredentialStorePasswordPair] on success, or the failure
    of the first stage that failed (NOT_FOUND, IO_ERROR, PARSE_ERROR,
    VALIDATION_ERROR or STORE_ERROR).
    """

    def assemble(paths: tuple[Path, Path], parse_key: KeyParseStep) -> Result[CredentialStorePasswordPair]:
        certificate_file, key_file = paths
        return _load_certificate(certificate_file, source, certificate_parser).flat_map(
            lambda certificate: _load_private_key(key_file, source, parse_key).flat_map(
                lambda private_key: store_builder.build(certificate, private_key)
            )
        )

    return (
        Result.combine(
            _require_paths(certificate_path, private_key_path),
            _bind_key_parser(key_parser, algorithm),
            lambda paths, parse_key: (paths, parse_key),
        )
        .flat_map(lambda inputs: assemble(*inputs))
        .peek(lambda pair: log.info("credentials.loaded", alias=pair.alias))
        .peek_failure(_log_failure)
    )


def load_credential_pair_from_files(
    certificate_path: PathLike | None,
    private_key_path: PathLike | None,
    algorithm: KeyAlgorithm | str | None = None,
    *,
    verify_key_match: bool = True,
) -> Result[CredentialStorePasswordPair]:
    """
    Load a certificate and private key from disk into a key store.

    `algorithm` is an optional hint ("RSA", "EC", KeyAlgorithm.EC, ...);
    without it the key's algorithm is detected from its encoding.
    """
    return run_pipeline(
        certificate_path,
        private_key_path,
        algorithm,
        source=FileMaterialSource(),
        certificate_parser=X509CertificateParser(),
        key_parser=Asn1PrivateKeyParser(),
        store_builder=Pkcs12CredentialStoreBuilder(verify_key_match=verify_key_match),
    )
