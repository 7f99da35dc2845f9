"""Shared pytest fixtures for servicekit tests."""

import base64
import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from servicekit.core.config import Configuration
from servicekit.services.cert_forwarding import BufferPool


@pytest.fixture(scope="session")
def certificate() -> x509.Certificate:
    """Throwaway self-signed client certificate."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "test-client")])
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )


@pytest.fixture(scope="session")
def certificate_header(certificate) -> str:
    der = certificate.public_bytes(serialization.Encoding.DER)
    return base64.b64encode(der).decode("ascii")


@pytest.fixture
def pool() -> BufferPool:
    return BufferPool()


@pytest.fixture
def configuration() -> Configuration:
    return Configuration.from_mapping({
        "CorsPolicy": {
            "Origins": "https://app.example.com; https://admin.example.com",
            "Methods": "GET, POST",
        },
    })
