import json
import logging
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from conftest import cluster, task
from photonctl.cli import app
from photonctl.commands import cluster as cluster_cmd
from photonctl.config import Config
from photonctl.modules.models import VM, NamedReference
from photonctl.modules.photon import PhotonTransientError

runner = CliRunner()

CREATE_ARGS = [
    "cluster", "create", "--tenant", "eng", "--project", "infra",
    "--name", "demo", "--type", "kubernetes",
    "--dns", "10.0.0.2", "--gateway", "10.0.0.1", "--netmask", "255.255.255.0",
    "--master-ip", "10.0.0.10", "--container-network", "10.2.0.0/16", "--etcd1", "10.0.0.11",
]


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake_client(monkeypatch):
    client = MagicMock()
    client.find_tenant.return_value = NamedReference(id="tn1", name="eng")
    client.find_project.return_value = NamedReference(id="p1", name="infra")
    client.create_cluster.return_value = task("QUEUED")
    client.resize_cluster.return_value = task("QUEUED", task_id="t2")
    client.delete_cluster.return_value = task("QUEUED", task_id="t3")
    client.get_task.side_effect = lambda task_id: task("COMPLETED", task_id=task_id)
    client.get_cluster.return_value = cluster("READY")
    monkeypatch.setattr(cluster_cmd, "get_client", lambda: client)
    monkeypatch.setattr(Config, "TASK_POLL_DELAY", 0)
    monkeypatch.setattr(Config, "CLUSTER_POLL_DELAY", 0)
    return client


def test_help():
    result = runner.invoke(app, ["--help"])
    assert result.exit_code == 0
    assert "cluster" in result.output


def test_cluster_commands_exist():
    result = runner.invoke(app, ["cluster", "--help"])
    for command in ("create", "show", "list", "list-vms", "resize", "delete"):
        assert command in result.output


def test_create_without_waiting(fake_client):
    result = runner.invoke(app, ["--non-interactive"] + CREATE_ARGS)

    assert result.exit_code == 0, result.output
    assert "cluster show c1" in result.output
    fake_client.find_project.assert_called_once_with("tn1", "infra")
    fake_client.get_cluster.assert_not_called()


def test_create_wait_for_ready_announces_wait(fake_client):
    result = runner.invoke(app, ["-n"] + CREATE_ARGS + ["--wait-for-ready"])

    assert result.exit_code == 0, result.output
    assert "Waiting for cluster c1 to become ready" in result.output
    assert "cluster show c1" not in result.output


def test_create_wait_for_ready_json(fake_client):
    result = runner.invoke(app, ["-n", "-o", "json"] + CREATE_ARGS + ["--wait-for-ready"])

    assert result.exit_code == 0, result.output
    # Log records may share the captured stream on older Click releases
    body = json.loads(result.stdout[result.stdout.index("{\n"):])
    assert body["id"] == "c1"
    assert body["state"] == "READY"


def test_create_from_file_with_override(fake_client, tmp_path):
    cluster_yaml = tmp_path / "cluster.yaml"
    cluster_yaml.write_text("""
name: from-file
type: swarm
tenant: eng
project: infra
dns: 10.0.0.2
gateway: 10.0.0.1
netmask: 255.255.255.0
worker_count: 5
etcd:
- 10.0.0.11
""")

    result = runner.invoke(app, ["-n", "cluster", "create", "--file", str(cluster_yaml), "--worker-count", "2"])

    assert result.exit_code == 0, result.output
    spec = fake_client.create_cluster.call_args[0][1]
    assert spec.name == "from-file"
    assert spec.worker_count == 2


def test_create_validation_fails_before_remote_calls(monkeypatch):
    get_client = MagicMock()
    monkeypatch.setattr(cluster_cmd, "get_client", get_client)
    args = list(CREATE_ARGS)
    args[args.index("--dns") + 1] = ""

    result = runner.invoke(app, ["-n"] + args)

    assert result.exit_code == 1
    assert "DNS, gateway, and netmask" in result.output
    get_client.assert_not_called()


def test_create_cancelled(fake_client):
    result = runner.invoke(app, CREATE_ARGS, input="n\n")

    assert result.exit_code == 0
    assert "Cancelled" in result.output
    fake_client.create_cluster.assert_not_called()


def test_resize_wait_for_ready_error_state(fake_client):
    fake_client.get_cluster.return_value = cluster("ERROR")

    result = runner.invoke(app, ["-n", "cluster", "resize", "c1", "4", "--wait-for-ready"])

    assert result.exit_code == 1
    assert "Cluster c1 entered ERROR state" in result.output
    fake_client.resize_cluster.assert_called_once_with("c1", 4)


def test_resize_rejects_bad_worker_count(fake_client):
    result = runner.invoke(app, ["-n", "cluster", "resize", "c1", "0"])
    assert result.exit_code == 1
    fake_client.resize_cluster.assert_not_called()

    result = runner.invoke(app, ["-n", "cluster", "resize", "c1", "many"])
    assert result.exit_code == 2


def test_resize_background_note(fake_client):
    result = runner.invoke(app, ["-n", "cluster", "resize", "c1", "4"])

    assert result.exit_code == 0, result.output
    assert "RESIZING" in result.output


def test_delete_retry_budget_exhausted(fake_client):
    fake_client.get_task.side_effect = PhotonTransientError("connection refused")

    result = runner.invoke(app, ["-n", "cluster", "delete", "c1"])

    assert result.exit_code == 1
    assert "connection refused" in result.output
    assert fake_client.get_task.call_count == Config.MAX_RETRIES + 1


def test_short_debug_flag(fake_client):
    result = runner.invoke(app, ["-d", "-n", "cluster", "delete", "c1"])

    assert result.exit_code == 0, result.output
    assert logging.getLogger().level == logging.DEBUG


def test_delete_interactive_confirm(fake_client):
    result = runner.invoke(app, ["cluster", "delete", "c1"], input="y\n")

    assert result.exit_code == 0, result.output
    assert "Cluster c1 deleted" in result.output


def test_show_lists_masters(fake_client):
    fake_client.get_cluster_vms.return_value = [
        VM(id="vm1", name="master-1", state="STARTED", tags=["cluster:c1:master"]),
        VM(id="vm2", name="worker-1", state="STARTED", tags=["cluster:c1:worker"]),
    ]

    result = runner.invoke(app, ["cluster", "show", "c1"])

    assert result.exit_code == 0, result.output
    assert "master-1" in result.output
    assert "worker-1" not in result.output


def test_list_summary(fake_client):
    fake_client.list_clusters.return_value = [cluster("READY", "c1"), cluster("CREATING", "c2")]

    result = runner.invoke(app, ["cluster", "list", "--tenant", "eng", "--project", "infra", "--summary"])

    assert result.exit_code == 0, result.output
    assert "c2\tdemo\tCREATING" in result.output
    assert "Total: 2" in result.output


def test_unknown_output_format():
    result = runner.invoke(app, ["-o", "xml", "cluster", "list"])
    assert result.exit_code == 2
