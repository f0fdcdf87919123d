"""Client for reading and writing the cluster objects this component manages."""

import logging
from typing import Any, Dict, Optional

import urllib3
from kubernetes import client
from kubernetes.client.rest import ApiException

from .config import (
    MONITORING_GROUP,
    PROMETHEUS_RULE_VERSION,
    PROMETHEUS_RULE_PLURAL,
    SCRAPE_CONFIG_VERSION,
    SCRAPE_CONFIG_PLURAL,
    REQUEST_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

KIND_CONFIGMAP = "ConfigMap"
KIND_STATEFULSET = "StatefulSet"
KIND_PROMETHEUS_RULE = "PrometheusRule"
KIND_SCRAPE_CONFIG = "ScrapeConfig"

# kind -> (group, version, plural) for custom resources
CUSTOM_KINDS = {
    KIND_PROMETHEUS_RULE: (MONITORING_GROUP, PROMETHEUS_RULE_VERSION, PROMETHEUS_RULE_PLURAL),
    KIND_SCRAPE_CONFIG: (MONITORING_GROUP, SCRAPE_CONFIG_VERSION, SCRAPE_CONFIG_PLURAL),
}

API_VERSIONS = {
    KIND_CONFIGMAP: "v1",
    KIND_STATEFULSET: "apps/v1",
    KIND_PROMETHEUS_RULE: f"{MONITORING_GROUP}/{PROMETHEUS_RULE_VERSION}",
    KIND_SCRAPE_CONFIG: f"{MONITORING_GROUP}/{SCRAPE_CONFIG_VERSION}",
}


# Failures a cluster call can raise: API errors, plus connection and
# timeout errors urllib3 raises before any response arrives
API_ERRORS = (ApiException, urllib3.exceptions.HTTPError)


def is_not_found(error: ApiException) -> bool:
    return error.status == 404


def error_reason(error: Exception) -> str:
    """Short description of a failed cluster call for error messages."""
    if isinstance(error, ApiException):
        return error.reason or f"HTTP {error.status}"
    return f"{type(error).__name__}: {error}"


class ObjectClient:
    """
    Kind-aware access to ConfigMaps, StatefulSets and the monitoring
    custom resources, with every object handled as a plain dict.

    get() returns None on not-found; every other ApiException, and any
    urllib3 connection or timeout error, propagates.
    """

    def __init__(
        self,
        api_client: Optional[client.ApiClient] = None,
        core_api=None,
        apps_api=None,
        custom_api=None,
        request_timeout: Optional[float] = REQUEST_TIMEOUT_SECONDS,
    ):
        """
        Initialize the object client.

        Args:
            api_client: Shared ApiClient (default: built from the loaded kube config)
            core_api: CoreV1Api override
            apps_api: AppsV1Api override
            custom_api: CustomObjectsApi override
            request_timeout: Per-request timeout in seconds, None to disable
        """
        self.api_client = api_client or client.ApiClient()
        self.core_v1 = core_api or client.CoreV1Api(self.api_client)
        self.apps_v1 = apps_api or client.AppsV1Api(self.api_client)
        self.custom_api = custom_api or client.CustomObjectsApi(self.api_client)
        self.request_timeout = request_timeout

    def _to_dict(self, obj) -> Dict[str, Any]:
        """Convert a typed API model into the camelCase dict the API speaks."""
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    def _call_kwargs(self) -> Dict[str, Any]:
        if self.request_timeout is None:
            return {}
        return {"_request_timeout": self.request_timeout}

    def get(self, kind: str, name: str, namespace: str) -> Optional[Dict[str, Any]]:
        """
        Read an object by identity.

        Returns:
            The object dict or None if it does not exist
        """
        try:
            if kind == KIND_CONFIGMAP:
                obj = self.core_v1.read_namespaced_config_map(
                    name=name, namespace=namespace, **self._call_kwargs()
                )
            elif kind == KIND_STATEFULSET:
                obj = self.apps_v1.read_namespaced_stateful_set(
                    name=name, namespace=namespace, **self._call_kwargs()
                )
            else:
                group, version, plural = CUSTOM_KINDS[kind]
                obj = self.custom_api.get_namespaced_custom_object(
                    group=group,
                    version=version,
                    namespace=namespace,
                    plural=plural,
                    name=name,
                    **self._call_kwargs()
                )
        except ApiException as e:
            if is_not_found(e):
                logger.debug(f"{kind} {namespace}/{name} not found")
                return None
            raise

        obj = self._to_dict(obj)
        obj.setdefault("apiVersion", API_VERSIONS[kind])
        obj.setdefault("kind", kind)
        return obj

    def create(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Create an object from its full dict representation."""
        kind = obj["kind"]
        namespace = obj["metadata"]["namespace"]

        if kind == KIND_CONFIGMAP:
            created = self.core_v1.create_namespaced_config_map(
                namespace=namespace, body=obj, **self._call_kwargs()
            )
        else:
            group, version, plural = CUSTOM_KINDS[kind]
            created = self.custom_api.create_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural=plural,
                body=obj,
                **self._call_kwargs()
            )
        return self._to_dict(created)

    def patch(self, kind: str, name: str, namespace: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send a merge patch for an object.

        ConfigMaps go through the strategic merge patch endpoint, which for
        the map-valued fields written here (labels, data) behaves exactly
        like a JSON merge patch.
        """
        if kind == KIND_CONFIGMAP:
            patched = self.core_v1.patch_namespaced_config_map(
                name=name, namespace=namespace, body=patch, **self._call_kwargs()
            )
        else:
            group, version, plural = CUSTOM_KINDS[kind]
            patched = self.custom_api.patch_namespaced_custom_object(
                group=group,
                version=version,
                namespace=namespace,
                plural=plural,
                name=name,
                body=patch,
                **self._call_kwargs()
            )
        return self._to_dict(patched)

    def delete(self, kind: str, name: str, namespace: str) -> bool:
        """
        Delete an object by identity.

        Returns:
            True if the object was deleted, False if it was already absent
        """
        try:
            if kind == KIND_CONFIGMAP:
                self.core_v1.delete_namespaced_config_map(
                    name=name, namespace=namespace, **self._call_kwargs()
                )
            else:
                group, version, plural = CUSTOM_KINDS[kind]
                self.custom_api.delete_namespaced_custom_object(
                    group=group,
                    version=version,
                    namespace=namespace,
                    plural=plural,
                    name=name,
                    **self._call_kwargs()
                )
        except ApiException as e:
            if is_not_found(e):
                return False
            raise
        return True
