"""Cluster lifecycle operations and readiness waits."""
import logging
import os
import time
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import yaml
from jsonschema import validate, ValidationError

from photonctl.config import Config
from photonctl.modules.models import (
    EXTENDED_PROPERTY_CONTAINER_NETWORK,
    EXTENDED_PROPERTY_DNS,
    EXTENDED_PROPERTY_ETCD_IPS,
    EXTENDED_PROPERTY_GATEWAY,
    EXTENDED_PROPERTY_MASTER_IP,
    EXTENDED_PROPERTY_NETMASK,
    EXTENDED_PROPERTY_SSH_KEY,
    EXTENDED_PROPERTY_ZOOKEEPER_IPS,
    VM,
    Cluster,
    ClusterCreateSpec,
    ClusterState,
    ClusterType,
    Task,
)
from photonctl.modules.photon import PhotonAPIError, PhotonClient
from photonctl.modules.polling import (
    ClusterErrorStateError,
    Poller,
    PollOutcome,
    PollPolicy,
    ReporterFactory,
)
from photonctl.modules.tasks import wait_for_task

logger = logging.getLogger(__name__)

DEFAULT_WORKER_COUNT = 1

CLUSTER_SCHEMA = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "type": {"type": "string"},
        "tenant": {"type": "string"},
        "project": {"type": "string"},
        "vm_flavor": {"type": "string"},
        "disk_flavor": {"type": "string"},
        "network_id": {"type": "string"},
        "worker_count": {"type": "integer", "minimum": 1},
        "batch_size": {"type": "integer", "minimum": 0},
        "dns": {"type": "string"},
        "gateway": {"type": "string"},
        "netmask": {"type": "string"},
        "master_ip": {"type": "string"},
        "container_network": {"type": "string"},
        "ssh_key": {"type": "string"},
        "etcd": {"type": "array", "items": {"type": "string"}, "maxItems": 3},
        "zookeeper": {"type": "array", "items": {"type": "string"}, "maxItems": 3}
    },
    "required": ["name", "type"],
    "additionalProperties": False
}


def cluster_policy() -> PollPolicy:
    return PollPolicy(
        delay=Config.CLUSTER_POLL_DELAY,
        timeout=Config.CLUSTER_POLL_TIMEOUT,
        retries=Config.MAX_RETRIES,
    )


def evaluate_cluster(cluster: Cluster) -> PollOutcome:
    if cluster.state is ClusterState.READY:
        return PollOutcome.SUCCEEDED
    if cluster.state is ClusterState.ERROR:
        return PollOutcome.FAILED
    return PollOutcome.PENDING


def wait_for_cluster(
    client: PhotonClient,
    cluster_id: str,
    policy: Optional[PollPolicy] = None,
    reporter_factory: Optional[ReporterFactory] = None,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> Cluster:
    """Block until a cluster is READY.

    Returns:
        The READY cluster, as fetched on the iteration that observed it

    Raises:
        ClusterErrorStateError: The cluster entered ERROR
        RetryError: The transient-error budget was exhausted
        WaitTimeoutError: The cluster did not converge within the timeout
    """
    poller = Poller(policy or cluster_policy(), reporter_factory, clock=clock, sleep=sleep)
    cluster = poller.run(
        fetch=lambda: client.get_cluster(cluster_id),
        evaluate=evaluate_cluster,
        on_failure=ClusterErrorStateError,
        description=f"cluster {cluster_id} to enter READY state",
    )
    logger.info("Cluster %s is ready", cluster.id)
    return cluster


def validate_ssh_key(key: str) -> None:
    if not key:
        raise ValueError("The ssh-key file provided has no content")


def read_ssh_key(filename: str) -> str:
    """Read the first line of an SSH public key file."""
    with open(os.path.expanduser(filename)) as f:
        # The key file should only be one line long
        key = f.readline().strip()
    validate_ssh_key(key)
    return key


def load_cluster_file(path: str) -> Dict[str, Any]:
    """Load and schema-check a cluster definition YAML."""
    cluster_path = Path(os.path.expanduser(path))
    if not cluster_path.exists():
        raise ValueError(f"Cluster definition not found: {cluster_path}")

    with open(cluster_path) as f:
        cluster_config = yaml.safe_load(f) or {}

    try:
        validate(instance=cluster_config, schema=CLUSTER_SCHEMA)
    except ValidationError as ve:
        raise ValueError(f"YAML validation error: {ve.message}") from ve

    logger.debug(f"Loaded cluster definition from {cluster_path}")
    return cluster_config


def _chained(keys: Sequence[str], values: Sequence[str]) -> Dict[str, str]:
    # A later address only counts when every earlier one is set
    properties = {}
    for key, value in zip(keys, list(values) + [''] * len(keys)):
        if not value:
            break
        properties[key] = value
    return properties


def build_create_spec(
    name: str,
    cluster_type: str,
    dns: str,
    gateway: str,
    netmask: str,
    worker_count: int = 0,
    vm_flavor: str = '',
    disk_flavor: str = '',
    network_id: str = '',
    batch_size: int = 0,
    ssh_key: str = '',
    master_ip: str = '',
    container_network: str = '',
    etcd: Sequence[str] = (),
    zookeeper: Sequence[str] = (),
) -> ClusterCreateSpec:
    """Validate create inputs and assemble the request body.

    Raises:
        ValueError: On any missing or malformed input; nothing is sent
    """
    if not name or not cluster_type:
        raise ValueError("Provide a valid cluster name and type")

    if worker_count < 0:
        raise ValueError("Please supply a valid worker count")
    if worker_count == 0:
        worker_count = DEFAULT_WORKER_COUNT

    if not dns or not gateway or not netmask:
        raise ValueError("Provide a valid DNS, gateway, and netmask")

    try:
        kind = ClusterType(cluster_type.upper())
    except ValueError:
        raise ValueError(f"Unsupported cluster type: {cluster_type.upper()}") from None

    extended_properties = {
        EXTENDED_PROPERTY_DNS: dns,
        EXTENDED_PROPERTY_GATEWAY: gateway,
        EXTENDED_PROPERTY_NETMASK: netmask,
    }
    if ssh_key:
        extended_properties[EXTENDED_PROPERTY_SSH_KEY] = read_ssh_key(ssh_key)

    if kind is ClusterType.KUBERNETES:
        if not master_ip or not container_network:
            raise ValueError("Kubernetes clusters require a master IP and a container network")
        extended_properties[EXTENDED_PROPERTY_MASTER_IP] = master_ip
        extended_properties[EXTENDED_PROPERTY_CONTAINER_NETWORK] = container_network

    if kind in (ClusterType.KUBERNETES, ClusterType.SWARM):
        etcd_properties = _chained(EXTENDED_PROPERTY_ETCD_IPS, etcd)
        if not etcd_properties:
            raise ValueError(f"{kind.value.capitalize()} clusters require at least one etcd address")
        extended_properties.update(etcd_properties)
    else:
        zookeeper_properties = _chained(EXTENDED_PROPERTY_ZOOKEEPER_IPS, zookeeper)
        if not zookeeper_properties:
            raise ValueError("Mesos clusters require at least one zookeeper address")
        extended_properties.update(zookeeper_properties)

    return ClusterCreateSpec(
        name=name,
        type=kind,
        vm_flavor=vm_flavor,
        disk_flavor=disk_flavor,
        network_id=network_id,
        worker_count=worker_count,
        batch_size_worker=batch_size,
        extended_properties=extended_properties,
    )


def resolve_project_id(client: PhotonClient, tenant_name: str, project_name: str) -> str:
    if not tenant_name or not project_name:
        raise ValueError("Provide a tenant and a project")
    tenant = client.find_tenant(tenant_name)
    project = client.find_project(tenant.id, project_name)
    logger.debug(f"Resolved project {project_name} in tenant {tenant_name} to {project.id}")
    return project.id


def create_cluster(
    client: PhotonClient,
    project_id: str,
    spec: ClusterCreateSpec,
    wait_for_ready: bool = False,
    reporter_factory: Optional[ReporterFactory] = None,
    notify: Optional[Callable[[str], None]] = None,
) -> Tuple[Task, Optional[Cluster]]:
    """Submit a create request, wait for its task and optionally for READY.

    ``notify`` receives the user-facing "waiting" line; without it the line is logged.
    """
    logger.info(f"Creating cluster {spec.name} ({spec.type.value})")
    submitted = client.create_cluster(project_id, spec)
    task = wait_for_task(client, submitted.id, reporter_factory=reporter_factory)
    if task.entity is None:
        task.entity = submitted.entity
    if task.entity is None:
        raise PhotonAPIError(f"Task {task.id} does not reference the created cluster")

    cluster = None
    if wait_for_ready:
        message = f"Waiting for cluster {task.entity.id} to become ready"
        if notify:
            notify(message)
        else:
            logger.info(message)
        cluster = wait_for_cluster(client, task.entity.id, reporter_factory=reporter_factory)
    return task, cluster


def resize_cluster(
    client: PhotonClient,
    cluster_id: str,
    worker_count: int,
    wait_for_ready: bool = False,
    reporter_factory: Optional[ReporterFactory] = None,
) -> Tuple[Task, Optional[Cluster]]:
    """Submit a resize request, wait for its task and optionally for READY."""
    if not cluster_id or worker_count <= 0:
        raise ValueError("Provide a valid cluster ID and worker count")

    logger.info(f"Resizing cluster {cluster_id} to worker count {worker_count}")
    task = client.resize_cluster(cluster_id, worker_count)
    task = wait_for_task(client, task.id, reporter_factory=reporter_factory)

    cluster = None
    if wait_for_ready:
        cluster = wait_for_cluster(client, cluster_id, reporter_factory=reporter_factory)
    return task, cluster


def delete_cluster(
    client: PhotonClient,
    cluster_id: str,
    reporter_factory: Optional[ReporterFactory] = None,
) -> Task:
    if not cluster_id:
        raise ValueError("Please provide a valid cluster ID")

    logger.info(f"Deleting cluster {cluster_id}")
    task = client.delete_cluster(cluster_id)
    return wait_for_task(client, task.id, reporter_factory=reporter_factory)


def show_cluster(client: PhotonClient, cluster_id: str) -> Tuple[Cluster, List[VM]]:
    """Fetch a cluster together with its master VMs."""
    cluster = client.get_cluster(cluster_id)
    vms = client.get_cluster_vms(cluster_id)
    return cluster, [vm for vm in vms if vm.is_master]
