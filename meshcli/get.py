import logging
from typing import Callable

from meshcli.api_client import ApiClientInterface
from meshcli.exceptions import UnsupportedResourceError, UsageError
from meshcli.resources import KUBERNETES_PODS, canonicalize


def validate_resource_args(resource_args: list) -> str:
    """
    Return the canonical resource name of the single resource argument.

    Raise `UsageError` if there is not exactly one argument.

    Raise `UnsupportedResourceError` if the argument doesn't name pods.
    """
    if len(resource_args) < 1:
        raise UsageError(message="please specify a resource type")
    if len(resource_args) > 1:
        raise UsageError(message="please specify only one resource type")

    friendly_name = resource_args[0]
    msg = (
        "invalid resource type {name}, only {allowed} are allowed as resource types"
    )
    try:
        resource_type = canonicalize(friendly_name)
    except UnsupportedResourceError as err:
        raise UnsupportedResourceError(
            message=msg, name=friendly_name, allowed=KUBERNETES_PODS
        ) from err

    if resource_type != KUBERNETES_PODS:
        raise UnsupportedResourceError(
            message=msg, name=friendly_name, allowed=KUBERNETES_PODS
        )
    return resource_type


def get_pods(api_client: ApiClientInterface) -> list:
    return [pod["name"] for pod in api_client.list_pods()]


def dispatch(
    resource_args: list, api_client_factory: Callable[[], ApiClientInterface]
) -> list:
    """
    Validate the resource arguments of the `get` command and return the names
    of the requested resources, in the order the control plane sent them.
    The API client is only created once the arguments are valid.
    """
    resource_type = validate_resource_args(resource_args)
    logging.debug("listing %s", resource_type)
    return get_pods(api_client_factory())
