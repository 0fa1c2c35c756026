"""
Application entry point — wires settings, logging and the credential pipeline.

Composition root responsibilities:
  1. Load and validate configuration (environment, .env, bundled properties)
  2. Configure structlog
  3. Load the certificate/key pair into an in-memory key store
  4. Report the outcome (the key password is never logged)

A TLS/MQTT client would take the CredentialStorePasswordPair from here;
that client is not part of this package.
"""

from __future__ import annotations

import logging
import sys

import structlog
from pydantic import ValidationError
from railway.result import Result

from iot_credentials import __version__
from iot_credentials.config import AppSettings
from iot_credentials.domain.models import CredentialStorePasswordPair
from iot_credentials.pipeline import load_credential_pair_from_files


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured console logging.

    Unknown level names fall back to INFO.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_from_settings(settings: AppSettings) -> Result[CredentialStorePasswordPair]:
    """Run the credential pipeline with the paths and hint from settings."""
    return load_credential_pair_from_files(
        settings.certificate_file,
        settings.private_key_file,
        settings.key_algorithm,
        verify_key_match=settings.verify_key_match,
    )


def main() -> None:
    """Load settings, build the key store and exit non-zero on failure."""
    try:
        settings = AppSettings()
    except ValidationError as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        log_level=settings.log_level,
        client_endpoint=settings.client_endpoint,
        client_id=settings.client_id,
    )

    result = load_from_settings(settings)
    if result.is_failure():
        sys.exit(1)

    pair = result.value()
    log.info(
        "app.credentials_ready",
        store_type=pair.key_store.store_type,
        aliases=pair.key_store.aliases(),
        subject=pair.key_store.get_certificate(pair.alias).subject.rfc4514_string(),  # type: ignore[union-attr]
    )


if __name__ == "__main__":
    main()
