import pytest

from registry_cache_monitoring.resources import (
    alert_rules,
    mutate_scrape_config_entry,
    scrape_config_entry,
    alert_rule_set,
    relabelings,
)

from conftest import NAMESPACE


pytestmark = pytest.mark.unit


def test_scoped_config_names():
    assert alert_rule_set(NAMESPACE).name == "shoot-registry-cache"
    assert scrape_config_entry(NAMESPACE).kind == "ScrapeConfig"


def test_alert_thresholds():
    critical, four_days, pushed, pulled = alert_rules()

    assert critical["alert"] == "RegistryCachePersistentVolumeUsageCritical"
    assert critical["expr"].endswith(") < 5")
    assert critical["for"] == "1h"
    assert critical["labels"] == {
        "service": "registry-cache-extension",
        "severity": "warning",
        "type": "shoot",
        "visibility": "owner",
    }

    assert four_days["alert"] == "RegistryCachePersistentVolumeFullInFourDays"
    assert ") < 15\nand\n" in four_days["expr"]
    assert "[30m], 4 * 24 * 3600) <= 0" in four_days["expr"]
    assert four_days["for"] == "1h"

    assert pushed == {
        "record": "shoot:registry_proxy_pushed_bytes_total:sum",
        "expr": "sum by (upstream_host) (rate(registry_proxy_pushed_bytes_total[5m]))",
    }
    assert pulled["expr"] == "sum by (upstream_host) (rate(registry_proxy_pulled_bytes_total[5m]))"


def test_pvc_selector_in_alert_expressions():
    for rule in alert_rules()[:2]:
        assert 'kubelet_volume_stats_available_bytes{persistentvolumeclaim=~"^cache-volume-registry-.+$"}' in rule["expr"]


def test_relabeling_order():
    rules = relabelings()

    assert [r.get("targetLabel") or r["action"] for r in rules] == [
        "job",
        "keep",
        "labelmap",
        "__address__",
        "__metrics_path__",
    ]
    assert rules[1]["regex"] == "(.+);debug"


def test_scrape_config_spec():
    obj = {}
    mutate_scrape_config_entry(obj)
    spec = obj["spec"]

    assert spec["honorLabels"] is False
    assert spec["tlsConfig"] == {"insecureSkipVerify": True}
    assert spec["authorization"] == {
        "credentials": {"name": "shoot-access-prometheus-shoot", "key": "token"}
    }
    sd = spec["kubernetesSDConfigs"][0]
    assert sd["apiServer"] == "https://kube-apiserver:443"
    assert sd["namespaces"] == {"names": ["kube-system"]}
    assert sd["followRedirects"] is True
    assert spec["metricRelabelings"] == [
        {"sourceLabels": ["__name__"], "action": "keep", "regex": "^(registry_proxy_.+)$"}
    ]
    assert obj["metadata"]["labels"] == {"component": "registry-cache", "prometheus": "shoot"}
