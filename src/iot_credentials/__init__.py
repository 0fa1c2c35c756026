"""
iot_credentials — TLS client credentials for an IoT message broker.

Loads an X.509 certificate and a PEM/DER private key from disk and wraps
them into a password-protected in-memory PKCS#12 key store, ready for a
mutually-authenticated TLS connection.

Built on the Railway-Oriented Programming (ROP) framework: every stage
returns a Result, so callers check for failure instead of catching exceptions.
"""

__version__ = "0.1.0"
