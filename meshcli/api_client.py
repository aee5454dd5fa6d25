import logging

import requests

import meshcli.constants as const
from meshcli.exceptions import RemoteCallError
from meshcli.kube_api import KubernetesApi


class ApiClientInterface:
    def list_pods(self) -> list:
        """
        Return the pods known to the control plane, as dicts with at least a
        `name` key.
        """
        raise NotImplementedError

    def version(self) -> dict:
        raise NotImplementedError


class PublicApiClient(ApiClientInterface):
    """
    Client for the control plane's public API, reached through the Kubernetes
    API server's service proxy.
    """

    kube_api: KubernetesApi
    namespace: str
    session: requests.Session

    def __init__(self, kube_api: KubernetesApi, namespace: str):
        self.kube_api = kube_api
        self.namespace = namespace
        self.session = kube_api.new_client()

    def list_pods(self) -> list:
        pods = self.__call("ListPods").get("pods") or []
        if not isinstance(pods, list) or not all(
            isinstance(pod, dict) and pod.get("name") and isinstance(pod["name"], str)
            for pod in pods
        ):
            msg = "Malformed pod list in the response of {method}."
            raise RemoteCallError(message=msg, method="ListPods")
        return pods

    def version(self) -> dict:
        return self.__call("Version")

    def __call(self, method: str):
        url = self.kube_api.url_for(
            self.namespace, f"{const.API_PROXY_PATH}{method}"
        ).geturl()
        logging.debug("calling %s", url)

        try:
            response = self.session.post(
                url, json={}, timeout=const.REQUEST_TIMEOUT_SECONDS
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.exceptions.RequestException, ValueError) as err:
            msg = "Error calling {method} on the control plane API: {reason}."
            raise RemoteCallError(message=msg, method=method, reason=str(err)) from err

        if not isinstance(payload, dict):
            msg = "Unexpected response of {method} from the control plane API."
            raise RemoteCallError(message=msg, method=method)
        return payload


def new_api_client(kube_api: KubernetesApi, namespace: str):
    return PublicApiClient(kube_api, namespace)
