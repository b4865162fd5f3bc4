"""
TLS helpers for serving the login server over HTTPS.

Generates a self-signed certificate for local development and resolves
the certificate/key pair the built-in server should use. Run it as a
script to create ``certs/cert.pem`` and ``certs/key.pem``::

    python -m login_app.tls
"""

from __future__ import annotations

import ipaddress
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID

CERTS_DIR = Path(__file__).resolve().parent.parent / "certs"
CERT_PATH = CERTS_DIR / "cert.pem"
KEY_PATH = CERTS_DIR / "key.pem"


def generate_self_signed_certificate(
    cert_path: Path,
    key_path: Path,
    common_name: str = "localhost",
    days: int = 365,
) -> None:
    """
    Write a self-signed RSA certificate and its private key as PEM files.

    The certificate covers ``localhost`` and ``127.0.0.1`` in addition
    to *common_name*, which is what browsers check rather than the CN.
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])

    alt_names: list[x509.GeneralName] = [
        x509.DNSName(common_name),
        x509.DNSName("localhost"),
        x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
    ]
    now = datetime.now(timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=days))
        .add_extension(x509.SubjectAlternativeName(alt_names), critical=False)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .sign(private_key, hashes.SHA256())
    )

    cert_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    key_path.chmod(0o600)
    cert_path.write_bytes(certificate.public_bytes(serialization.Encoding.PEM))


def ssl_context(config: Mapping[str, Any]) -> tuple[str, str] | None:
    """
    Return the ``(cert, key)`` pair to serve with, or ``None`` for plain HTTP.

    HTTPS is used only when both configured files exist.
    """
    cert = config.get("TLS_CERT_PATH")
    key = config.get("TLS_KEY_PATH")
    if not cert or not key:
        return None
    if not Path(cert).is_file() or not Path(key).is_file():
        return None
    return str(cert), str(key)


def main() -> int:
    """Generate the development certificate once; skip when it already exists."""
    cert_exists = CERT_PATH.exists()
    key_exists = KEY_PATH.exists()

    if cert_exists and key_exists:
        print(f"Certificate already exists, skipping: {CERT_PATH} / {KEY_PATH}")
        return 0

    if cert_exists != key_exists:
        raise SystemExit(
            "Only one of cert.pem/key.pem exists. Remove both and run this script again."
        )

    generate_self_signed_certificate(CERT_PATH, KEY_PATH)
    print(f"Generated: {CERT_PATH}")
    print(f"Generated: {KEY_PATH}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
