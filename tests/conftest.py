# =====================================================================
# Pytest configuration and fixtures
# =====================================================================
# FakeCluster stands in for the Kubernetes API: it stores objects as
# dicts and serves the CoreV1Api, AppsV1Api and CustomObjectsApi calls
# made by ObjectClient, with merge-patch semantics and fault injection.
# =====================================================================

import copy
from datetime import datetime, timezone

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from registry_cache_monitoring.content import StaticContentSource
from registry_cache_monitoring.object_client import ObjectClient
from registry_cache_monitoring.reconciler import MonitoringReconciler
from registry_cache_monitoring.utils import apply_merge_patch

NAMESPACE = "shoot--garden--local"

PLURAL_KINDS = {
    "prometheusrules": "PrometheusRule",
    "scrapeconfigs": "ScrapeConfig",
}


class FakeCluster:
    """In-memory object store keyed by (kind, namespace, name)."""

    def __init__(self):
        self.objects = {}
        self.writes = []
        self.failures = {}
        self._version = 0

        self.core = FakeCoreV1Api(self)
        self.apps = FakeAppsV1Api(self)
        self.custom = FakeCustomObjectsApi(self)

    # --- test helpers ---

    def add(self, kind, name, namespace=NAMESPACE, **fields):
        obj = {"kind": kind, "metadata": {"name": name, "namespace": namespace}}
        obj.update(copy.deepcopy(fields))
        self._stamp(obj)
        self.objects[(kind, namespace, name)] = obj
        return obj

    def get(self, kind, name, namespace=NAMESPACE):
        return self.objects.get((kind, namespace, name))

    def fail(self, verb, kind, status=500, reason="Internal Server Error"):
        self.failures[(verb, kind)] = ApiException(status=status, reason=reason)

    def fail_with(self, verb, kind, error):
        """Raise an arbitrary exception, e.g. a urllib3 connection error."""
        self.failures[(verb, kind)] = error

    def snapshot(self):
        return copy.deepcopy(self.objects)

    # --- API plumbing ---

    def _stamp(self, obj):
        self._version += 1
        metadata = obj.setdefault("metadata", {})
        metadata.setdefault("uid", f"uid-{self._version}")
        metadata.setdefault("creationTimestamp", "2024-05-01T00:00:00Z")
        metadata["resourceVersion"] = str(self._version)

    def _check(self, verb, kind):
        if (verb, kind) in self.failures:
            raise self.failures[(verb, kind)]

    def read(self, kind, name, namespace):
        self._check("get", kind)
        obj = self.objects.get((kind, namespace, name))
        if obj is None:
            raise ApiException(status=404, reason="Not Found")
        return copy.deepcopy(obj)

    def create(self, kind, namespace, body):
        self._check("create", kind)
        name = body["metadata"]["name"]
        if (kind, namespace, name) in self.objects:
            raise ApiException(status=409, reason="Conflict")
        obj = copy.deepcopy(body)
        self._stamp(obj)
        self.objects[(kind, namespace, name)] = obj
        self.writes.append(("create", kind, name))
        return copy.deepcopy(obj)

    def patch(self, kind, name, namespace, body):
        self._check("patch", kind)
        key = (kind, namespace, name)
        if key not in self.objects:
            raise ApiException(status=404, reason="Not Found")
        merged = apply_merge_patch(copy.deepcopy(self.objects[key]), copy.deepcopy(body))
        if merged != self.objects[key]:
            self._stamp(merged)
        self.objects[key] = merged
        self.writes.append(("patch", kind, name))
        return copy.deepcopy(merged)

    def delete(self, kind, name, namespace):
        self._check("delete", kind)
        if self.objects.pop((kind, namespace, name), None) is None:
            raise ApiException(status=404, reason="Not Found")
        self.writes.append(("delete", kind, name))
        return {"status": "Success"}


class FakeCoreV1Api:
    def __init__(self, cluster):
        self.cluster = cluster

    def read_namespaced_config_map(self, name, namespace, **kwargs):
        return self.cluster.read("ConfigMap", name, namespace)

    def create_namespaced_config_map(self, namespace, body, **kwargs):
        return self.cluster.create("ConfigMap", namespace, body)

    def patch_namespaced_config_map(self, name, namespace, body, **kwargs):
        return self.cluster.patch("ConfigMap", name, namespace, body)

    def delete_namespaced_config_map(self, name, namespace, **kwargs):
        return self.cluster.delete("ConfigMap", name, namespace)


class FakeAppsV1Api:
    def __init__(self, cluster):
        self.cluster = cluster

    def read_namespaced_stateful_set(self, name, namespace, **kwargs):
        return self.cluster.read("StatefulSet", name, namespace)


class FakeCustomObjectsApi:
    def __init__(self, cluster):
        self.cluster = cluster

    def get_namespaced_custom_object(self, group, version, namespace, plural, name, **kwargs):
        return self.cluster.read(PLURAL_KINDS[plural], name, namespace)

    def create_namespaced_custom_object(self, group, version, namespace, plural, body, **kwargs):
        return self.cluster.create(PLURAL_KINDS[plural], namespace, body)

    def patch_namespaced_custom_object(self, group, version, namespace, plural, name, body, **kwargs):
        return self.cluster.patch(PLURAL_KINDS[plural], name, namespace, body)

    def delete_namespaced_custom_object(self, group, version, namespace, plural, name, **kwargs):
        return self.cluster.delete(PLURAL_KINDS[plural], name, namespace)


def to_object_meta(metadata):
    return client.V1ObjectMeta(
        name=metadata.get("name"),
        namespace=metadata.get("namespace"),
        labels=metadata.get("labels"),
        annotations=metadata.get("annotations"),
        uid=metadata.get("uid"),
        resource_version=metadata.get("resourceVersion"),
        creation_timestamp=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


class TypedCoreV1Api(FakeCoreV1Api):
    """Returns V1ConfigMap models like the real CoreV1Api."""

    @staticmethod
    def _model(obj):
        return client.V1ConfigMap(
            api_version="v1",
            kind="ConfigMap",
            metadata=to_object_meta(obj["metadata"]),
            data=obj.get("data"),
        )

    def read_namespaced_config_map(self, name, namespace, **kwargs):
        return self._model(super().read_namespaced_config_map(name, namespace, **kwargs))

    def create_namespaced_config_map(self, namespace, body, **kwargs):
        return self._model(super().create_namespaced_config_map(namespace, body, **kwargs))

    def patch_namespaced_config_map(self, name, namespace, body, **kwargs):
        return self._model(super().patch_namespaced_config_map(name, namespace, body, **kwargs))


class TypedAppsV1Api(FakeAppsV1Api):
    """Returns V1StatefulSet models like the real AppsV1Api."""

    def read_namespaced_stateful_set(self, name, namespace, **kwargs):
        obj = super().read_namespaced_stateful_set(name, namespace, **kwargs)
        return client.V1StatefulSet(
            api_version="apps/v1",
            kind="StatefulSet",
            metadata=to_object_meta(obj["metadata"]),
        )


@pytest.fixture
def cluster():
    return FakeCluster()


@pytest.fixture
def objects(cluster):
    return ObjectClient(
        api_client=object(),
        core_api=cluster.core,
        apps_api=cluster.apps,
        custom_api=cluster.custom,
    )


@pytest.fixture
def content():
    return StaticContentSource(
        alerting_rules="groups:\n- name: registry-cache.rules\n  rules: []",
        dashboard='{"title": "Registry Cache"}',
        scrape_config="- job_name: registry-cache-metrics\n",
    )


@pytest.fixture
def reconciler(objects, content):
    return MonitoringReconciler.from_client(objects, content=content)


@pytest.fixture
def typed_objects(cluster):
    """ObjectClient whose core and apps reads return typed models, converted by a real ApiClient."""
    return ObjectClient(
        api_client=client.ApiClient(),
        core_api=TypedCoreV1Api(cluster),
        apps_api=TypedAppsV1Api(cluster),
        custom_api=cluster.custom,
    )
