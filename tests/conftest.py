import datetime
import os
from contextlib import contextmanager

import pytest
import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from meshcli.api_client import ApiClientInterface
from meshcli.exceptions import RemoteCallError
from meshcli.shell import Shell


"""
This file is used for sharing fixtures across all other test files.
https://docs.pytest.org/en/stable/fixture.html#scope-sharing-fixtures-across-classes-modules-packages-or-session
"""

DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")


@contextmanager
def no_exc():
    yield


def get_kubeconfig(name):
    return os.path.join(DATA_DIR, "kubeconfig", f"{name}.yaml")


class FakeShell(Shell):
    def __init__(self, home: str = "/home/mesh", env: dict = None):
        self.home = home
        self.env = env or {}

    def home_dir(self):
        return self.home

    def getenv(self, name):
        return self.env.get(name)


class FakeApiClient(ApiClientInterface):
    def __init__(self, pods: list = None, version: dict = None, error: str = None):
        self.pods = pods or []
        self.server_version = version or {"releaseVersion": "v1.2.3"}
        self.error = error
        self.calls = []

    def list_pods(self):
        self.calls.append("ListPods")
        if self.error:
            raise RemoteCallError(message=self.error)
        return self.pods

    def version(self):
        self.calls.append("Version")
        if self.error:
            raise RemoteCallError(message=self.error)
        return self.server_version


class MockResponse:
    content: dict
    status_code: int = 200

    def __init__(self, content=None, status_code: int = 200):
        self.content = content
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self.content is None:
            raise ValueError("no JSON body")
        return self.content


class MockSession:
    def __init__(self, response=None, error: Exception = None):
        self.response = response
        self.error = error
        self.requests = []

    def post(self, url, **kwargs):
        self.requests.append((url, kwargs))
        if self.error:
            raise self.error
        return self.response


def generate_cert_pair():
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "mesh-admin")])
    now = datetime.datetime.now(datetime.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=1))
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), True)
        .sign(key, hashes.SHA256())
    )
    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )
    return cert_pem, key_pem


@pytest.fixture(scope="session")
def cert_pair():
    return generate_cert_pair()


@pytest.fixture(scope="session")
def other_cert_pair():
    return generate_cert_pair()


@pytest.fixture
def fake_shell():
    return FakeShell()
