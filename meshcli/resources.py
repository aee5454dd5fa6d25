from meshcli.exceptions import UnsupportedResourceError

KUBERNETES_DEPLOYMENTS = "deployments"
KUBERNETES_NAMESPACES = "namespaces"
KUBERNETES_PODS = "pods"
KUBERNETES_REPLICATION_CONTROLLERS = "replicationcontrollers"
KUBERNETES_SERVICES = "services"

FRIENDLY_NAMES = {
    "deploy": KUBERNETES_DEPLOYMENTS,
    "deployment": KUBERNETES_DEPLOYMENTS,
    "deployments": KUBERNETES_DEPLOYMENTS,
    "ns": KUBERNETES_NAMESPACES,
    "namespace": KUBERNETES_NAMESPACES,
    "namespaces": KUBERNETES_NAMESPACES,
    "po": KUBERNETES_PODS,
    "pod": KUBERNETES_PODS,
    "pods": KUBERNETES_PODS,
    "rc": KUBERNETES_REPLICATION_CONTROLLERS,
    "replicationcontroller": KUBERNETES_REPLICATION_CONTROLLERS,
    "replicationcontrollers": KUBERNETES_REPLICATION_CONTROLLERS,
    "svc": KUBERNETES_SERVICES,
    "service": KUBERNETES_SERVICES,
    "services": KUBERNETES_SERVICES,
}


def canonicalize(friendly_name: str) -> str:
    """
    Return the canonical Kubernetes resource name for one of its aliases,
    e.g. 'pods' for 'po'.

    Raise `UnsupportedResourceError` for unknown names.
    """
    try:
        return FRIENDLY_NAMES[friendly_name.lower()]
    except KeyError as err:
        msg = "Cannot find Kubernetes canonical name from friendly name [{name}]."
        raise UnsupportedResourceError(message=msg, name=friendly_name) from err
