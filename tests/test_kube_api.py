from urllib.parse import urlsplit

import pytest
import requests

import meshcli.exceptions as exc
import meshcli.kube_api as k_api
from meshcli.kube_config import BearerToken, ClusterConfig, Credentials

from . import conftest as fix

sample_config = ClusterConfig(host="https://prod.example.com:6443")


@pytest.mark.parametrize(
    "address, has_prefix",
    [
        ("http://localhost:8001", True),
        ("https://localhost:8001", True),
        ("HTTPS://LOCALHOST", True),
        ("HtTp://localhost", True),
        ("localhost:8001", False),
        ("10.0.0.1", False),
        ("ftp://localhost", False),
        ("httpx://localhost", False),
        ("http:/localhost", False),
        ("", False),
    ],
)
def test_has_scheme_prefix(address, has_prefix):
    assert k_api.has_scheme_prefix(address) == has_prefix


@pytest.mark.parametrize(
    "override, endpoint",
    [
        ("", "https://prod.example.com:6443"),
        (None, "https://prod.example.com:6443"),
        ("localhost:8001", "https://localhost:8001"),
        ("10.0.0.1", "https://10.0.0.1"),
        ("http://localhost:8001", "http://localhost:8001"),
        ("HTTP://Localhost:8001", "HTTP://Localhost:8001"),
        ("https://proxy.local/prefix", "https://proxy.local/prefix"),
    ],
)
def test_resolve_endpoint(override, endpoint):
    assert k_api.resolve_endpoint(sample_config, override) == endpoint


@pytest.mark.parametrize(
    "endpoint, namespace, extra_path, url",
    [
        (
            "https://1.2.3.4:6443",
            "mesh",
            "/services/web/proxy/?watch=1",
            "https://1.2.3.4:6443/api/v1/namespaces/mesh/services/web/proxy/?watch=1",
        ),
        (
            "https://1.2.3.4:6443",
            "",
            "/nodes",
            "https://1.2.3.4:6443/api/v1/nodes",
        ),
        (
            "http://localhost:8001/",
            "default",
            "/pods",
            "http://localhost:8001/api/v1/namespaces/default/pods",
        ),
        (
            "https://proxy.local/clusters/a/",
            "kube-system",
            "/pods/p%2F1",
            "https://proxy.local/clusters/a/api/v1/namespaces/kube-system/pods/p%2F1",
        ),
        (
            "https://proxy.local",
            "mesh-system",
            "/services/http:api:8085/proxy/api/v1/ListPods",
            "https://proxy.local/api/v1/namespaces/mesh-system/services/"
            "http:api:8085/proxy/api/v1/ListPods",
        ),
        (
            "https://proxy.local",
            "",
            "/pods?labelSelector=app%3Dweb&limit=5",
            "https://proxy.local/api/v1/pods?labelSelector=app%3Dweb&limit=5",
        ),
        (
            "https://proxy.local",
            "",
            "/pods/with space",
            "https://proxy.local/api/v1/pods/with%20space",
        ),
        (
            "https://[::1]:6443",
            "mesh",
            "/",
            "https://[::1]:6443/api/v1/namespaces/mesh/",
        ),
    ],
)
def test_build_url(endpoint, namespace, extra_path, url):
    built = k_api.build_url(endpoint, namespace, extra_path)
    assert built.geturl() == url


@pytest.mark.parametrize(
    "extra_path",
    [
        "/pods",
        "/pods/name-1/log",
        "/services/http:api:8085/proxy/",
        "/pods/p%2F1",
        "/pods/%25literal",
        "/a;b=c/@x/~y/",
    ],
)
def test_build_url_keeps_path(extra_path):
    built = k_api.build_url("https://1.2.3.4:6443", "mesh", extra_path)

    assert built.path == f"/api/v1/namespaces/mesh{extra_path}"
    assert urlsplit(built.geturl()).path == built.path
    assert "%25" not in built.path.replace(extra_path, "")


@pytest.mark.parametrize(
    "endpoint, namespace, extra_path, exception",
    [
        ("https://1.2.3.4", "mesh", "pods", pytest.raises(exc.InvalidPathError)),
        ("https://1.2.3.4", "mesh", "", pytest.raises(exc.InvalidPathError)),
        ("https://1.2.3.4", "Mesh", "/pods", pytest.raises(exc.InvalidPathError)),
        ("https://1.2.3.4", "a/b", "/pods", pytest.raises(exc.InvalidPathError)),
        ("https://1.2.3.4", "-mesh", "/pods", pytest.raises(exc.InvalidPathError)),
        ("1.2.3.4:6443", "mesh", "/pods", pytest.raises(exc.InvalidEndpointError)),
        ("ftp://1.2.3.4", "mesh", "/pods", pytest.raises(exc.InvalidEndpointError)),
        ("https://", "mesh", "/pods", pytest.raises(exc.InvalidEndpointError)),
        ("", "mesh", "/pods", pytest.raises(exc.InvalidEndpointError)),
        (
            "https://1.2.3.4:port",
            "mesh",
            "/pods",
            pytest.raises(exc.InvalidEndpointError),
        ),
        (
            "https://1.2.3.4?x=1",
            "mesh",
            "/pods",
            pytest.raises(exc.InvalidEndpointError),
        ),
        ("https://1.2.3.4", "mesh", "/pods", fix.no_exc()),
    ],
)
def test_build_url_errors(endpoint, namespace, extra_path, exception):
    with exception:
        k_api.build_url(endpoint, namespace, extra_path)


def test_build_url_is_immutable():
    built = k_api.build_url("https://1.2.3.4", "mesh", "/pods")
    with pytest.raises(AttributeError):
        built.path = "/other"


@pytest.mark.parametrize(
    "kubeconfig_override, env, api_addr, endpoint",
    [
        (fix.get_kubeconfig("sample_token"), {}, "", "https://prod.example.com:6443"),
        (
            "",
            {"KUBECONFIG": fix.get_kubeconfig("sample_cert_files")},
            "",
            "http://localhost:8080",
        ),
        (
            fix.get_kubeconfig("sample_token"),
            {"KUBECONFIG": fix.get_kubeconfig("sample_cert_files")},
            "localhost:8001",
            "https://localhost:8001",
        ),
    ],
)
def test_new_k8s_api(kubeconfig_override, env, api_addr, endpoint):
    kube_api = k_api.new_k8s_api(
        fix.FakeShell(env=env), kubeconfig_override, api_addr
    )
    assert kube_api.api_scheme_host_and_port == endpoint
    assert kube_api.url_for("mesh", "/pods").geturl() == (
        f"{endpoint}/api/v1/namespaces/mesh/pods"
    )


def test_new_k8s_api_home_dir(tmp_path):
    kube_dir = tmp_path / ".kube"
    kube_dir.mkdir()
    (kube_dir / "config").write_text(
        "clusters:\n- name: home\n  cluster:\n    server: https://home.local\n"
    )
    kube_api = k_api.new_k8s_api(fix.FakeShell(home=str(tmp_path)))
    assert kube_api.api_scheme_host_and_port == "https://home.local"


def test_new_k8s_api_missing_config(tmp_path):
    with pytest.raises(exc.ConfigReadError):
        k_api.new_k8s_api(fix.FakeShell(home=str(tmp_path)))


def test_new_client():
    config = ClusterConfig(
        host="https://prod.example.com",
        credentials=Credentials(auth=BearerToken(token="abc")),
    )
    session = k_api.KubernetesApi(config, config.host).new_client()
    assert isinstance(session, requests.Session)
    assert session.headers["Authorization"] == "Bearer abc"
