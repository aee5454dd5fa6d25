import logging
import re
from urllib.parse import SplitResult, quote, urlsplit, urlunsplit

import meshcli.constants as const
from meshcli.exceptions import InvalidEndpointError, InvalidPathError
from meshcli.kube_config import ClusterConfig, parse_config, resolve_config_path
from meshcli.shell import Shell
from meshcli.transport import build_transport

# everything that may appear unescaped in a path or query, "%" included so
# existing escapes are kept as they are
PATH_SAFE_CHARS = "/%:@!$&'()*+,;=-._~"
QUERY_SAFE_CHARS = PATH_SAFE_CHARS + "?"
# DNS-1123 label
NAMESPACE_PATTERN = r"[a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?"


class KubernetesApi:
    """
    Entry point to the Kubernetes API server of one cluster: knows where the
    server lives and how to talk to it securely.
    """

    config: ClusterConfig
    api_scheme_host_and_port: str

    def __init__(self, config: ClusterConfig, api_scheme_host_and_port: str):
        self.config = config
        self.api_scheme_host_and_port = api_scheme_host_and_port

    def url_for(self, namespace: str, extra_path: str):
        return build_url(self.api_scheme_host_and_port, namespace, extra_path)

    def new_client(self):
        return build_transport(self.config)


def new_k8s_api(
    shell: Shell, kubeconfig_path_override: str = "", api_addr_override: str = ""
):
    """
    Locate and parse the Kubernetes config and resolve the API endpoint to use.

    Raise `ConfigReadError` or `ConfigParseError` if the config can't be used.
    """
    path = resolve_config_path(
        kubeconfig_path_override,
        shell.getenv(const.KUBECONFIG_ENV_VARIABLE),
        shell.home_dir(),
    )
    config = parse_config(path)
    endpoint = resolve_endpoint(config, api_addr_override)
    logging.debug("resolved Kubernetes API endpoint %s", endpoint)
    return KubernetesApi(config, endpoint)


def has_scheme_prefix(address: str) -> bool:
    return address.lower().startswith(const.HTTP_SCHEMES)


def resolve_endpoint(config: ClusterConfig, override: str = "") -> str:
    """
    Return the scheme, host and port all API requests go to. A non-empty
    `override` always wins over the configured host and gets `https://`
    prepended if it carries no scheme.
    """
    if not override:
        return config.host
    if has_scheme_prefix(override):
        return override
    return f"{const.DEFAULT_SCHEME}{override}"


def build_url(endpoint: str, namespace: str, extra_path: str) -> SplitResult:
    """
    Build the URL of a Kubernetes API request.

    Input:
        'https://1.2.3.4:6443', 'mesh', '/services/web/proxy/?watch=1'

    Output:
        'https://1.2.3.4:6443/api/v1/namespaces/mesh/services/web/proxy/?watch=1'

    The namespace segment is left out for an empty `namespace`. `extra_path`
    is taken as is, only characters that can't be part of a URL get escaped.

    Raise `InvalidPathError` if `extra_path` doesn't start with a slash or
    `namespace` is no valid namespace name.

    Raise `InvalidEndpointError` if `endpoint` is no absolute http(s) URL.
    """
    if not extra_path.startswith("/"):
        msg = "Path must start with a [/], was [{path}]."
        raise InvalidPathError(message=msg, path=extra_path)

    if namespace and not re.fullmatch(NAMESPACE_PATTERN, namespace):
        msg = "{namespace} is not a valid namespace name."
        raise InvalidPathError(message=msg, namespace=namespace)

    base = __parse_endpoint(endpoint)

    path, _, query = extra_path.partition("?")
    namespace_segment = f"/namespaces/{namespace}" if namespace else ""
    base_path = base.path.rstrip("/")
    full_path = f"{base_path}{const.KUBERNETES_API_PREFIX}{namespace_segment}{path}"

    return urlsplit(
        urlunsplit(
            (
                base.scheme,
                base.netloc,
                quote(full_path, safe=PATH_SAFE_CHARS),
                quote(query, safe=QUERY_SAFE_CHARS),
                "",
            )
        )
    )


def __parse_endpoint(endpoint: str):
    msg = "{endpoint} is not a valid Kubernetes API endpoint."
    try:
        base = urlsplit(endpoint)
        # accessing the port validates it
        base.port  # pylint: disable=pointless-statement
    except ValueError as err:
        raise InvalidEndpointError(message=msg, endpoint=endpoint) from err

    if (
        base.scheme.lower() not in ("http", "https")
        or not base.hostname
        or base.query
        or base.fragment
    ):
        raise InvalidEndpointError(message=msg, endpoint=endpoint)
    return base
