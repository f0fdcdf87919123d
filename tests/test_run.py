import logging

import pytest

import run


pytestmark = pytest.mark.unit


def test_check_target_scraped(caplog):
    caplog.set_level(logging.INFO)
    code = run.check_target([
        "__meta_kubernetes_pod_name=registry-docker-io-0",
        "__meta_kubernetes_pod_container_port_name=debug",
        "__meta_kubernetes_pod_container_port_number=5001",
        "__meta_kubernetes_pod_label_upstream_host=docker.io",
    ])

    assert code == 0
    assert "__address__=kube-apiserver:443" in caplog.text


def test_check_target_dropped():
    code = run.check_target([
        "__meta_kubernetes_pod_container_port_name=registry",
        "__meta_kubernetes_pod_label_upstream_host=docker.io",
    ])
    assert code == 1


def test_check_target_bad_argument():
    assert run.check_target(["oops"]) == 2


def test_namespace_required(monkeypatch):
    monkeypatch.setattr("sys.argv", ["run.py", "--once"])
    with pytest.raises(SystemExit) as excinfo:
        run.main()
    assert excinfo.value.code == 2


def test_parser_defaults():
    args = run.build_parser().parse_args(["-n", "shoot--foo"])
    assert args.namespace == "shoot--foo"
    assert args.once is False
    assert args.dry_run is False
    assert args.interval == 60
