"""Static monitoring content: alerting rules, dashboard and scrape config documents."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .config import (
    KUBE_APISERVER_HOST,
    KUBE_APISERVER_PORT,
    SCRAPE_JOB_NAME,
    TARGET_NAMESPACE,
)

STATIC_DIR = Path(__file__).parent / "static"
ALERTING_RULES_FILE = "registry-cache.rules.yaml"
DASHBOARD_FILE = "dashboard.json"

_API_SERVER = KUBE_APISERVER_HOST + ":" + str(KUBE_APISERVER_PORT)

# Prometheus scrape config used by the legacy aggregated ConfigMap.
SCRAPE_CONFIG_YAML = """- job_name: """ + SCRAPE_JOB_NAME + """
  scheme: https
  tls_config:
    ca_file: /etc/prometheus/seed/ca.crt
  authorization:
    type: Bearer
    credentials_file: /var/run/secrets/gardener.cloud/shoot/token/token
  honor_labels: false
  kubernetes_sd_configs:
  - role: pod
    api_server: https://""" + _API_SERVER + """
    namespaces:
      names: [ """ + TARGET_NAMESPACE + """ ]
    tls_config:
      ca_file: /etc/prometheus/seed/ca.crt
    authorization:
      type: Bearer
      credentials_file: /var/run/secrets/gardener.cloud/shoot/token/token
  relabel_configs:
  - source_labels: [__meta_kubernetes_pod_label_upstream_host, __meta_kubernetes_pod_container_port_name]
    action: keep
    regex: (.+);debug
  - action: labelmap
    regex: __meta_kubernetes_pod_label_(.+)
  - target_label: __address__
    action: replace
    replacement: """ + _API_SERVER + """
  - source_labels: [__meta_kubernetes_pod_name, __meta_kubernetes_pod_container_port_number]
    action: replace
    target_label: __metrics_path__
    regex: (.+);(.+)
    replacement: /api/v1/namespaces/""" + TARGET_NAMESPACE + """/pods/${1}:${2}/proxy/metrics
  metric_relabel_configs:
  - source_labels: [ __name__ ]
    regex: registry_proxy_.+
    action: keep
"""


@dataclass(frozen=True)
class MonitoringBundle:
    """The three documents reconciled in one pass."""
    alerting_rules: str
    dashboard: str
    scrape_config: str


class StaticContentSource:
    """Holds the monitoring documents handed to it at construction."""

    def __init__(self, alerting_rules: str, dashboard: str, scrape_config: str = SCRAPE_CONFIG_YAML):
        self._bundle = MonitoringBundle(
            alerting_rules=alerting_rules,
            dashboard=dashboard,
            scrape_config=scrape_config,
        )

    @classmethod
    def from_directory(cls, directory: Union[str, Path]) -> "StaticContentSource":
        """Load the alerting rules and dashboard files from a directory."""
        directory = Path(directory)
        return cls(
            alerting_rules=(directory / ALERTING_RULES_FILE).read_text(encoding="utf-8"),
            dashboard=(directory / DASHBOARD_FILE).read_text(encoding="utf-8"),
        )

    @classmethod
    def from_package(cls, directory: Optional[Union[str, Path]] = None) -> "StaticContentSource":
        """Load the documents shipped with this package."""
        return cls.from_directory(directory or STATIC_DIR)

    def bundle(self) -> MonitoringBundle:
        return self._bundle
