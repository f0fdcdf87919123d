"""Configuration settings for the Registry Cache Monitoring reconciler."""

# Component identity
COMPONENT_NAME = "registry-cache"
PROMETHEUS_NAME = "shoot"

# Label keys and values
LABEL_COMPONENT = "component"
LABEL_PROMETHEUS = "prometheus"
LABEL_DASHBOARD_SHOOT = "dashboard.monitoring.gardener.cloud/shoot"
LABEL_EXTENSION_CONFIGURATION = "extensions.gardener.cloud/configuration"
LABEL_VALUE_MONITORING = "monitoring"

# Object names
LEGACY_CONFIGMAP_NAME = "extension-registry-cache-monitoring"
DASHBOARD_CONFIGMAP_NAME = "registry-cache-dashboards"
SENTINEL_STATEFULSET_NAME = "prometheus-shoot"

# Legacy aggregated ConfigMap keys
LEGACY_KEY_ALERTING_RULES = "alerting_rules"
LEGACY_KEY_SCRAPE_CONFIG = "scrape_config"
LEGACY_KEY_DASHBOARD = "dashboard_operators"

# Dashboard ConfigMap key
DASHBOARD_KEY = "registry-cache.dashboard.json"

# Custom resource coordinates (group, version, plural)
MONITORING_GROUP = "monitoring.coreos.com"
PROMETHEUS_RULE_VERSION = "v1"
PROMETHEUS_RULE_PLURAL = "prometheusrules"
SCRAPE_CONFIG_VERSION = "v1alpha1"
SCRAPE_CONFIG_PLURAL = "scrapeconfigs"

# Scrape target settings
KUBE_APISERVER_HOST = "kube-apiserver"
KUBE_APISERVER_PORT = 443
TARGET_NAMESPACE = "kube-system"
SCRAPE_JOB_NAME = "registry-cache-metrics"
SCRAPE_TIMEOUT = "10s"
SCRAPE_TOKEN_SECRET_NAME = "shoot-access-prometheus-shoot"
SCRAPE_TOKEN_SECRET_KEY = "token"
SCRAPE_METRICS_REGEX = "registry_proxy_.+"

# Controller loop settings
RECONCILE_INTERVAL_SECONDS = 60
REQUEST_TIMEOUT_SECONDS = 30


def config_object_name(component: str = COMPONENT_NAME, prometheus: str = PROMETHEUS_NAME) -> str:
    """Name of a monitoring config object scoped to a Prometheus instance."""
    return f"{prometheus}-{component}"


def kube_apiserver_address() -> str:
    return f"{KUBE_APISERVER_HOST}:{KUBE_APISERVER_PORT}"
