import logging
import os
import ssl
import tempfile

import requests
from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    PublicFormat,
    load_pem_private_key,
)
from requests.adapters import HTTPAdapter

from meshcli.exceptions import TransportBuildError
from meshcli.kube_config import (
    BearerToken,
    CertificatePair,
    ClusterConfig,
    Credentials,
    NoAuth,
)


class ClusterTLSAdapter(HTTPAdapter):
    """
    Transport adapter that hands a prepared SSL context to every connection
    pool, so the cluster's trust settings and client certificate are used
    instead of the defaults of `requests`.
    """

    def __init__(self, ssl_context: ssl.SSLContext, **kwargs):
        # must be set before HTTPAdapter.__init__ creates the pool manager
        self.ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args, **kwargs):
        kwargs["ssl_context"] = self.ssl_context
        return super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args, **kwargs):
        kwargs["ssl_context"] = self.ssl_context
        return super().proxy_manager_for(*args, **kwargs)


def build_transport(config: ClusterConfig) -> requests.Session:
    """
    Create an HTTP session for the Kubernetes API server, secured with the
    credentials of `config`. Nothing is sent over the network.

    Raise `TransportBuildError` if the credentials are incomplete or
    inconsistent.
    """
    credentials = config.credentials
    context = __ssl_context(credentials)

    session = requests.Session()
    session.verify = not credentials.insecure_skip_tls_verify

    auth = credentials.auth
    if isinstance(auth, CertificatePair):
        __load_cert_pair(context, auth)
    elif isinstance(auth, BearerToken):
        session.headers["Authorization"] = f"Bearer {__get_token(auth)}"
    elif isinstance(auth, NoAuth):
        logging.debug("no client authentication configured for %s", config.host)
    else:
        msg = "Unsupported authentication type {auth_type}."
        raise TransportBuildError(message=msg, auth_type=type(auth).__name__)

    session.mount("https://", ClusterTLSAdapter(context))
    return session


def __ssl_context(credentials: Credentials):
    if credentials.insecure_skip_tls_verify:
        if credentials.ca_file or credentials.ca_data:
            msg = (
                "Specifying a root certificate authority together with "
                "insecure-skip-tls-verify is not allowed."
            )
            raise TransportBuildError(message=msg)
        context = ssl.create_default_context()
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        return context

    try:
        # bytes are taken for DER by the ssl module, kubeconfigs carry PEM
        ca_data = credentials.ca_data.decode("ascii") if credentials.ca_data else None
        return ssl.create_default_context(cafile=credentials.ca_file, cadata=ca_data)
    except (OSError, ValueError) as err:
        msg = "Unable to load certificate authority: {reason}."
        raise TransportBuildError(message=msg, reason=str(err)) from err


def __load_cert_pair(context: ssl.SSLContext, auth: CertificatePair):
    if not (auth.has_cert and auth.has_key):
        msg = "Client certificate and client key must be configured together."
        raise TransportBuildError(message=msg)

    cert_pem = auth.cert_data or __read(auth.cert_file, "client certificate")
    key_pem = auth.key_data or __read(auth.key_file, "client key")
    __check_cert_pair(cert_pem, key_pem)

    # the ssl module loads certificate chains from files only
    with tempfile.TemporaryDirectory(prefix="meshcli-") as tmp_dir:
        cert_path = __write(tmp_dir, "client.crt", cert_pem)
        key_path = __write(tmp_dir, "client.key", key_pem)
        try:
            context.load_cert_chain(cert_path, key_path)
        except ssl.SSLError as err:
            msg = "Unable to load client certificate: {reason}."
            raise TransportBuildError(message=msg, reason=str(err)) from err


def __check_cert_pair(cert_pem: bytes, key_pem: bytes):
    try:
        cert = x509.load_pem_x509_certificate(cert_pem)
        key = load_pem_private_key(key_pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as err:
        msg = "Unable to parse client certificate or key: {reason}."
        raise TransportBuildError(message=msg, reason=str(err)) from err

    cert_public_key = cert.public_key().public_bytes(
        Encoding.PEM, PublicFormat.SubjectPublicKeyInfo
    )
    key_public_key = key.public_key().public_bytes(
        Encoding.PEM, PublicFormat.SubjectPublicKeyInfo
    )
    if cert_public_key != key_public_key:
        msg = "Client certificate doesn't match the client key."
        raise TransportBuildError(message=msg)


def __get_token(auth: BearerToken):
    token = auth.token
    if not token and auth.token_file:
        try:
            token = __read(auth.token_file, "token").decode("utf-8").strip()
        except UnicodeDecodeError as err:
            msg = "Token file {path} is not valid UTF-8."
            raise TransportBuildError(message=msg, path=auth.token_file) from err
    if not token:
        msg = "Bearer token is empty."
        raise TransportBuildError(message=msg)
    return token


def __read(path: str, kind: str):
    try:
        with open(path, "rb") as file:
            return file.read()
    except OSError as err:
        msg = "Unable to read {kind} file {path}: {reason}."
        raise TransportBuildError(
            message=msg, kind=kind, path=path, reason=err.strerror
        ) from err


def __write(directory: str, name: str, content: bytes):
    path = os.path.join(directory, name)
    with open(os.open(path, os.O_WRONLY | os.O_CREAT, 0o600), "wb") as file:
        file.write(content)
    return path
