import base64
import binascii
import logging
import os
from typing import NamedTuple, Optional, Union

import yaml

import meshcli.constants as const
from meshcli.exceptions import ConfigParseError, ConfigReadError
from meshcli.util import res_path, validate_schema


class CertificatePair(NamedTuple):
    """
    Client certificate authentication. Each half is given either as a file path
    or as PEM data. Incomplete pairs are accepted here and rejected when the
    transport is built.
    """

    cert_file: Optional[str] = None
    cert_data: Optional[bytes] = None
    key_file: Optional[str] = None
    key_data: Optional[bytes] = None

    @property
    def has_cert(self):
        return bool(self.cert_file or self.cert_data)

    @property
    def has_key(self):
        return bool(self.key_file or self.key_data)


class BearerToken(NamedTuple):
    token: Optional[str] = None
    token_file: Optional[str] = None


class NoAuth(NamedTuple):
    pass


Auth = Union[CertificatePair, BearerToken, NoAuth]


class Credentials(NamedTuple):
    auth: Auth = NoAuth()
    ca_file: Optional[str] = None
    ca_data: Optional[bytes] = None
    insecure_skip_tls_verify: bool = False


class ClusterConfig(NamedTuple):
    host: str
    credentials: Credentials = Credentials()


def resolve_config_path(explicit_override: str, env_override: str, home_dir: str):
    """
    Return the path of the configuration file to read. An explicit override
    wins over the environment, which wins over the file in the user's home
    directory. No filesystem access happens here.
    """
    if explicit_override:
        return explicit_override

    # the variable may hold a list of files, only the first one is used
    env_paths = [path for path in (env_override or "").split(os.pathsep) if path]
    if env_paths:
        return env_paths[0]

    return os.path.join(home_dir or "", const.KUBECONFIG_DIR, const.KUBECONFIG_FILE)


def parse_config(path: str):
    """
    Read the kubeconfig at `path` and reduce it to the server host and the
    credentials of a single context.

    Raise `ConfigReadError` if the file can't be read.

    Raise `ConfigParseError` if the file is no valid kubeconfig or lacks a
    server address.
    """
    try:
        with open(path, "r", encoding="utf-8") as config_file:
            content = yaml.safe_load(config_file)
    except OSError as err:
        msg = "Unable to read Kubernetes config file {path}: {reason}."
        raise ConfigReadError(message=msg, path=path, reason=err.strerror) from err
    except (yaml.YAMLError, UnicodeDecodeError) as err:
        msg = "Kubernetes config file {path} is no valid YAML."
        raise ConfigParseError(message=msg, path=path) from err

    if not isinstance(content, dict):
        msg = "Kubernetes config file {path} is empty or not a mapping."
        raise ConfigParseError(message=msg, path=path)

    validate_schema(
        content,
        res_path("kubeconfig_schema.json"),
        f"Kubernetes config file {path}",
        ConfigParseError,
    )

    cluster, user = __select_context(content, path)

    server = (cluster.get("server") or "").rstrip("/")
    if not server:
        msg = "Kubernetes config file {path} has no server address."
        raise ConfigParseError(message=msg, path=path)

    base_dir = os.path.dirname(os.path.abspath(path))
    credentials = Credentials(
        auth=__get_auth(user, base_dir, path),
        ca_file=__resolve_file(cluster.get("certificate-authority"), base_dir),
        ca_data=__decode(cluster, "certificate-authority-data", path),
        insecure_skip_tls_verify=cluster.get("insecure-skip-tls-verify", False),
    )
    logging.debug("using Kubernetes API server %s from %s", server, path)
    return ClusterConfig(host=server, credentials=credentials)


def __select_context(content: dict, path: str):
    clusters = content.get("clusters") or []
    contexts = content.get("contexts") or []
    users = content.get("users") or []

    context_name = content.get("current-context")
    if context_name:
        context = __find(contexts, context_name, "context", path)
    elif contexts:
        context = contexts[0]
    else:
        cluster = clusters[0]["cluster"] if clusters else {}
        user = (users[0].get("user") or {}) if users else {}
        return cluster, user

    context_body = context.get("context") or {}
    cluster = __find(clusters, context_body.get("cluster"), "cluster", path)
    user = {}
    if context_body.get("user"):
        user = __find(users, context_body["user"], "user", path).get("user") or {}
    return cluster["cluster"], user


def __find(entries: list, name: str, kind: str, path: str):
    try:
        return next(entry for entry in entries if entry["name"] == name)
    except StopIteration as err:
        msg = "Kubernetes config file {path} references unknown {kind} {name}."
        raise ConfigParseError(message=msg, path=path, kind=kind, name=name) from err


def __get_auth(user: dict, base_dir: str, path: str):
    cert_file = __resolve_file(user.get("client-certificate"), base_dir)
    cert_data = __decode(user, "client-certificate-data", path)
    key_file = __resolve_file(user.get("client-key"), base_dir)
    key_data = __decode(user, "client-key-data", path)

    if cert_file or cert_data or key_file or key_data:
        if user.get("token") or user.get("tokenFile"):
            logging.debug("client certificate configured, ignoring token")
        return CertificatePair(cert_file, cert_data, key_file, key_data)

    if user.get("token") or user.get("tokenFile"):
        return BearerToken(
            token=user.get("token"),
            token_file=__resolve_file(user.get("tokenFile"), base_dir),
        )

    for unsupported in ("exec", "auth-provider", "username"):
        if unsupported in user:
            logging.warning(
                "%s authentication in %s is not supported, continuing without "
                "client authentication",
                unsupported,
                path,
            )
    return NoAuth()


def __resolve_file(file_path: Optional[str], base_dir: str):
    if not file_path:
        return None
    return os.path.join(base_dir, os.path.expanduser(file_path))


def __decode(section: dict, key: str, path: str):
    value = section.get(key)
    if not value:
        return None
    try:
        return base64.b64decode("".join(value.split()), validate=True)
    except (binascii.Error, ValueError) as err:
        msg = "{key} in Kubernetes config file {path} is not valid base64."
        raise ConfigParseError(message=msg, key=key, path=path) from err
