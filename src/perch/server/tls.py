"""TLS certificate provisioning for ``--https``.

Two sources of certificate material:

- **Custom**: ``cert_file`` and ``key_file`` supplied together (optionally
  with ``ca_file``). Relative paths resolve against the site directory.
- **Generated**: a local development CA plus a leaf certificate for the
  hostname, both kept under ``<site>/.cache/ssl/`` and reused across
  runs until the leaf is close to expiry.

A provisioner returns ``TLSMaterial`` or ``None``. ``None`` means "no
usable material"; the bootstrap treats it as fatal and never falls back
to plain HTTP.
"""

from __future__ import annotations

import ipaddress
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, TypeAlias

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

if TYPE_CHECKING:
    from perch.reporting import Reporter

logger = logging.getLogger("perch.tls")

SSL_DIR = Path(".cache") / "ssl"

# Leaf certificates are reissued when they have less than this left
_RENEW_BEFORE = timedelta(days=7)
_LEAF_LIFETIME = timedelta(days=365)
_CA_LIFETIME = timedelta(days=3650)


@dataclass(frozen=True, slots=True)
class TLSMaterial:
    """Paths of the PEM files the ASGI server loads."""

    cert_file: Path
    key_file: Path
    ca_file: Path | None = None


TLSProvisioner: TypeAlias = Callable[..., TLSMaterial | None]


def _absolute_or_directory(directory: Path, file: str) -> Path:
    path = Path(file).expanduser()
    return path if path.is_absolute() else directory / path


def _write_pem(path: Path, data: bytes, *, private: bool = False) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    if private:
        os.chmod(path, 0o600)


def _private_bytes(key: rsa.RSAPrivateKey) -> bytes:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def _san_for(name: str) -> list[x509.GeneralName]:
    names: list[x509.GeneralName] = []
    try:
        names.append(x509.IPAddress(ipaddress.ip_address(name)))
    except ValueError:
        names.append(x509.DNSName(name))
    if name == "localhost":
        names.append(x509.IPAddress(ipaddress.IPv4Address("127.0.0.1")))
        names.append(x509.IPAddress(ipaddress.IPv6Address("::1")))
    return names


class LocalCertificateAuthority:
    """A development CA that lives in one directory.

    Creates its key and self-signed root on first use, then issues leaf
    certificates for server names.
    """

    __slots__ = ("cert_path", "directory", "key_path")

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.key_path = directory / "ca.key.pem"
        self.cert_path = directory / "ca.cert.pem"

    def ensure(self) -> tuple[rsa.RSAPrivateKey, x509.Certificate]:
        """Load the CA, creating it if missing."""
        if self.key_path.is_file() and self.cert_path.is_file():
            key = serialization.load_pem_private_key(self.key_path.read_bytes(), password=None)
            cert = x509.load_pem_x509_certificate(self.cert_path.read_bytes())
            if not isinstance(key, rsa.RSAPrivateKey):
                msg = f"{self.key_path} is not an RSA key"
                raise ValueError(msg)
            return key, cert

        logger.info("Generating local development CA in %s", self.directory)
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        subject = x509.Name(
            [
                x509.NameAttribute(NameOID.COMMON_NAME, "perch development CA"),
                x509.NameAttribute(NameOID.ORGANIZATION_NAME, "perch"),
            ]
        )
        now = datetime.now(UTC)
        cert = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(days=1))
            .not_valid_after(now + _CA_LIFETIME)
            .add_extension(x509.BasicConstraints(ca=True, path_length=0), critical=True)
            .add_extension(
                x509.KeyUsage(
                    digital_signature=False,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False)
            .sign(key, hashes.SHA256())
        )
        _write_pem(self.key_path, _private_bytes(key), private=True)
        _write_pem(self.cert_path, cert.public_bytes(serialization.Encoding.PEM))
        return key, cert

    def issue(self, name: str, cert_path: Path, key_path: Path) -> None:
        """Issue and write a server certificate for *name*."""
        ca_key, ca_cert = self.ensure()
        leaf_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        now = datetime.now(UTC)
        cert = (
            x509.CertificateBuilder()
            .subject_name(x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, name)]))
            .issuer_name(ca_cert.subject)
            .public_key(leaf_key.public_key())
            .serial_number(x509.random_serial_number())
            .not_valid_before(now - timedelta(days=1))
            .not_valid_after(now + _LEAF_LIFETIME)
            .add_extension(x509.SubjectAlternativeName(_san_for(name)), critical=False)
            .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=True,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=False,
                    crl_sign=False,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]), critical=False)
            .add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()),
                critical=False,
            )
            .sign(ca_key, hashes.SHA256())
        )
        _write_pem(key_path, _private_bytes(leaf_key), private=True)
        _write_pem(cert_path, cert.public_bytes(serialization.Encoding.PEM))
        logger.info("Issued development certificate for %s", name)


def _leaf_is_current(cert_path: Path, key_path: Path) -> bool:
    if not (cert_path.is_file() and key_path.is_file()):
        return False
    try:
        cert = x509.load_pem_x509_certificate(cert_path.read_bytes())
    except ValueError:
        logger.warning("Unreadable certificate at %s; reissuing", cert_path)
        return False
    return cert.not_valid_after_utc > datetime.now(UTC) + _RENEW_BEFORE


def generate_dev_cert(name: str, directory: Path) -> TLSMaterial:
    """Certificate for *name* signed by the site's local CA, reused when current."""
    ssl_dir = directory / SSL_DIR
    safe_name = name.replace(":", "_").replace("/", "_")
    cert_path = ssl_dir / f"{safe_name}.cert.pem"
    key_path = ssl_dir / f"{safe_name}.key.pem"
    ca = LocalCertificateAuthority(ssl_dir)

    if not _leaf_is_current(cert_path, key_path):
        ca.issue(name, cert_path, key_path)
    else:
        logger.debug("Reusing development certificate %s", cert_path)
    return TLSMaterial(cert_file=cert_path, key_file=key_path, ca_file=ca.cert_path)


def get_ssl_cert(
    *,
    name: str,
    directory: str | Path,
    reporter: Reporter,
    cert_file: str | None = None,
    key_file: str | None = None,
    ca_file: str | None = None,
) -> TLSMaterial | None:
    """Default provisioner: custom files if given, else a generated certificate.

    Returns None (after reporting why) when custom files are missing or
    generation fails. The caller validates that ``cert_file`` and
    ``key_file`` come as a pair.
    """
    site_dir = Path(directory)

    if cert_file and key_file:
        cert_path = _absolute_or_directory(site_dir, cert_file)
        key_path = _absolute_or_directory(site_dir, key_file)
        ca_path = _absolute_or_directory(site_dir, ca_file) if ca_file else None
        missing = [p for p in (cert_path, key_path, ca_path) if p is not None and not p.is_file()]
        if missing:
            reporter.error(f"SSL file not found: {', '.join(str(p) for p in missing)}")
            return None
        return TLSMaterial(cert_file=cert_path, key_file=key_path, ca_file=ca_path)

    reporter.info("setting up automatic SSL certificate")
    try:
        return generate_dev_cert(name, site_dir)
    except (OSError, ValueError) as exc:
        reporter.error(f"Could not generate an SSL certificate: {exc}")
        return None
