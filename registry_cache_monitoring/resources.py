"""Identities and desired state of the monitoring objects."""

from typing import Any, Dict, List

from .config import (
    COMPONENT_NAME,
    PROMETHEUS_NAME,
    LABEL_COMPONENT,
    LABEL_PROMETHEUS,
    LABEL_DASHBOARD_SHOOT,
    LABEL_EXTENSION_CONFIGURATION,
    LABEL_VALUE_MONITORING,
    LEGACY_CONFIGMAP_NAME,
    DASHBOARD_CONFIGMAP_NAME,
    LEGACY_KEY_ALERTING_RULES,
    LEGACY_KEY_SCRAPE_CONFIG,
    LEGACY_KEY_DASHBOARD,
    DASHBOARD_KEY,
    KUBE_APISERVER_HOST,
    KUBE_APISERVER_PORT,
    TARGET_NAMESPACE,
    SCRAPE_JOB_NAME,
    SCRAPE_TIMEOUT,
    SCRAPE_TOKEN_SECRET_NAME,
    SCRAPE_TOKEN_SECRET_KEY,
    SCRAPE_METRICS_REGEX,
    config_object_name,
    kube_apiserver_address,
)
from .content import MonitoringBundle
from .object_client import KIND_CONFIGMAP, KIND_PROMETHEUS_RULE, KIND_SCRAPE_CONFIG
from .upserter import Mutator, TargetResource
from .utils import indent, set_metadata_label

PVC_SELECTOR = 'persistentvolumeclaim=~"^cache-volume-registry-.+$"'

ALERT_LABELS = {
    "service": "registry-cache-extension",
    "severity": "warning",
    "type": "shoot",
    "visibility": "owner",
}


# --- Identities ---

def aggregated_config_map(namespace: str) -> TargetResource:
    return TargetResource(KIND_CONFIGMAP, LEGACY_CONFIGMAP_NAME, namespace)


def dashboard_config_map(namespace: str) -> TargetResource:
    return TargetResource(KIND_CONFIGMAP, DASHBOARD_CONFIGMAP_NAME, namespace)


def alert_rule_set(namespace: str) -> TargetResource:
    return TargetResource(KIND_PROMETHEUS_RULE, config_object_name(), namespace)


def scrape_config_entry(namespace: str) -> TargetResource:
    return TargetResource(KIND_SCRAPE_CONFIG, config_object_name(), namespace)


# --- Legacy templates ---

def legacy_alerting_rules(bundle: MonitoringBundle) -> str:
    return f"registry-cache.rules.yaml: |\n  {indent(bundle.alerting_rules, 2)}\n"


def legacy_dashboard(bundle: MonitoringBundle) -> str:
    return f"registry-cache.dashboard.json: '{bundle.dashboard}'"


def legacy_scrape_config(bundle: MonitoringBundle) -> str:
    return bundle.scrape_config


# --- Desired state ---

def _volume_free_ratio() -> str:
    return (
        "100 * (\n"
        f" kubelet_volume_stats_available_bytes{{{PVC_SELECTOR}}}\n"
        "   /\n"
        f" kubelet_volume_stats_capacity_bytes{{{PVC_SELECTOR}}}\n"
        ")"
    )


def alert_rules() -> List[Dict[str, Any]]:
    """Rules of the registry-cache.rules group: two alerts, two recording rules."""
    return [
        {
            "alert": "RegistryCachePersistentVolumeUsageCritical",
            "expr": f"{_volume_free_ratio()} < 5",
            "for": "1h",
            "labels": dict(ALERT_LABELS),
            "annotations": {
                "description": (
                    "The registry-cache PersistentVolume claimed by {{ $labels.persistentvolumeclaim }} "
                    'is only {{ printf "%0.2f" $value }}% free. When there is no available disk space, '
                    "no new images will be cached. However, image pull operations are not affected."
                ),
                "summary": "Registry cache PersistentVolume almost full.",
            },
        },
        {
            "alert": "RegistryCachePersistentVolumeFullInFourDays",
            "expr": (
                f"{_volume_free_ratio()} < 15\n"
                "and\n"
                f"predict_linear(kubelet_volume_stats_available_bytes{{{PVC_SELECTOR}}}[30m], 4 * 24 * 3600) <= 0"
            ),
            "for": "1h",
            "labels": dict(ALERT_LABELS),
            "annotations": {
                "description": (
                    "Based on recent sampling, the registry cache PersistentVolume claimed by "
                    "{{ $labels.persistentvolumeclaim }} is expected to fill up within four days. "
                    'Currently {{ printf "%0.2f" $value }}% is available.'
                ),
                "summary": "Registry cache PersistentVolume will be full in four days.",
            },
        },
        # Recording rules named shoot:<metric>:<aggregation> get federated upwards.
        {
            "record": "shoot:registry_proxy_pushed_bytes_total:sum",
            "expr": "sum by (upstream_host) (rate(registry_proxy_pushed_bytes_total[5m]))",
        },
        {
            "record": "shoot:registry_proxy_pulled_bytes_total:sum",
            "expr": "sum by (upstream_host) (rate(registry_proxy_pulled_bytes_total[5m]))",
        },
    ]


def _token_authorization() -> Dict[str, Any]:
    return {"credentials": {"name": SCRAPE_TOKEN_SECRET_NAME, "key": SCRAPE_TOKEN_SECRET_KEY}}


def relabelings() -> List[Dict[str, Any]]:
    """Target relabeling for the scrape config. Order matters."""
    return [
        {
            "action": "replace",
            "replacement": SCRAPE_JOB_NAME,
            "targetLabel": "job",
        },
        {
            "sourceLabels": [
                "__meta_kubernetes_pod_label_upstream_host",
                "__meta_kubernetes_pod_container_port_name",
            ],
            "action": "keep",
            "regex": "(.+);debug",
        },
        {
            "action": "labelmap",
            "regex": "__meta_kubernetes_pod_label_(.+)",
        },
        {
            "targetLabel": "__address__",
            "action": "replace",
            "replacement": kube_apiserver_address(),
        },
        {
            "sourceLabels": ["__meta_kubernetes_pod_name", "__meta_kubernetes_pod_container_port_number"],
            "action": "replace",
            "targetLabel": "__metrics_path__",
            "regex": "(.+);(.+)",
            "replacement": f"/api/v1/namespaces/{TARGET_NAMESPACE}/pods/${{1}}:${{2}}/proxy/metrics",
        },
    ]


def metric_relabelings(*metrics: str) -> List[Dict[str, Any]]:
    """Keep only series whose name matches one of the given patterns."""
    return [
        {
            "sourceLabels": ["__name__"],
            "action": "keep",
            "regex": "^(" + "|".join(metrics) + ")$",
        }
    ]


def scrape_config_spec() -> Dict[str, Any]:
    return {
        "honorLabels": False,
        "scrapeTimeout": SCRAPE_TIMEOUT,
        "scheme": "HTTPS",
        # kubelet serving certificates are not issued for pod IPs
        "tlsConfig": {"insecureSkipVerify": True},
        "authorization": _token_authorization(),
        "kubernetesSDConfigs": [
            {
                "apiServer": f"https://{KUBE_APISERVER_HOST}:{KUBE_APISERVER_PORT}",
                "role": "endpoints",
                "namespaces": {"names": [TARGET_NAMESPACE]},
                "authorization": _token_authorization(),
                # cluster CA bundle is not fetched
                "tlsConfig": {"insecureSkipVerify": True},
                "followRedirects": True,
            }
        ],
        "relabelings": relabelings(),
        "metricRelabelings": metric_relabelings(SCRAPE_METRICS_REGEX),
    }


def mutate_aggregated_config_map(bundle: MonitoringBundle) -> Mutator:
    def mutate(obj: Dict[str, Any]) -> None:
        set_metadata_label(obj, LABEL_EXTENSION_CONFIGURATION, LABEL_VALUE_MONITORING)
        obj["data"] = {
            LEGACY_KEY_ALERTING_RULES: legacy_alerting_rules(bundle),
            LEGACY_KEY_SCRAPE_CONFIG: legacy_scrape_config(bundle),
            LEGACY_KEY_DASHBOARD: legacy_dashboard(bundle),
        }
    return mutate


def mutate_dashboard_config_map(bundle: MonitoringBundle) -> Mutator:
    def mutate(obj: Dict[str, Any]) -> None:
        set_metadata_label(obj, LABEL_COMPONENT, COMPONENT_NAME)
        set_metadata_label(obj, LABEL_DASHBOARD_SHOOT, "true")
        obj["data"] = {DASHBOARD_KEY: bundle.dashboard}
    return mutate


def mutate_alert_rule_set(obj: Dict[str, Any]) -> None:
    set_metadata_label(obj, LABEL_COMPONENT, COMPONENT_NAME)
    set_metadata_label(obj, LABEL_PROMETHEUS, PROMETHEUS_NAME)
    obj["spec"] = {
        "groups": [
            {"name": "registry-cache.rules", "rules": alert_rules()},
        ]
    }


def mutate_scrape_config_entry(obj: Dict[str, Any]) -> None:
    set_metadata_label(obj, LABEL_COMPONENT, COMPONENT_NAME)
    set_metadata_label(obj, LABEL_PROMETHEUS, PROMETHEUS_NAME)
    obj["spec"] = scrape_config_spec()
