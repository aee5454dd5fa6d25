KUBECONFIG_ENV_VARIABLE = "KUBECONFIG"
KUBECONFIG_DIR = ".kube"
KUBECONFIG_FILE = "config"
HTTP_SCHEMES = ("http://", "https://")
DEFAULT_SCHEME = "https://"
KUBERNETES_API_PREFIX = "/api/v1"
DEFAULT_CONTROL_PLANE_NAMESPACE = "mesh-system"
# the public API is reached through the Kubernetes service proxy
API_PROXY_PATH = "/services/http:api:8085/proxy/api/v1/"
REQUEST_TIMEOUT_SECONDS = 30
LOG_LEVEL = "LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_DASHBOARD_ADDRESS = "127.0.0.1:8084"
