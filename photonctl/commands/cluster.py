import functools
import logging
from contextlib import contextmanager
from typing import Optional

import typer

from photonctl.config import Config
from photonctl.modules import cluster as cluster_ops
from photonctl.modules.photon import PhotonError, get_client
from photonctl.modules.polling import WaitError
from photonctl.modules.progress import ProgressReporter
from photonctl.utils import RetryError
from photonctl.utils.output import (
    echo_cluster,
    echo_cluster_list,
    echo_vms,
    format_object,
)

logger = logging.getLogger(__name__)

cluster_app = typer.Typer(help="Options for clusters")


def _is_non_interactive(ctx: typer.Context) -> bool:
    return bool((ctx.obj or {}).get("non_interactive"))


def _output_format(ctx: typer.Context) -> Optional[str]:
    return (ctx.obj or {}).get("output")


def _reporter_factory(ctx: typer.Context, message: str):
    # Machine-readable output must stay clean
    if _is_non_interactive(ctx) or _output_format(ctx):
        return None
    return functools.partial(ProgressReporter, message=message)


def _confirmed(ctx: typer.Context) -> bool:
    if _is_non_interactive(ctx):
        return True
    return typer.confirm("Are you sure?", default=False)


@contextmanager
def _abort_on_error():
    try:
        yield
    except (PhotonError, WaitError, RetryError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        typer.secho(f"❌ {e}", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)


def _echo_ready(ctx: typer.Context, cluster) -> None:
    fmt = _output_format(ctx)
    if fmt:
        typer.echo(format_object(cluster, fmt))
    else:
        typer.echo(f"✅ Cluster {cluster.id} is ready")


@cluster_app.command("create")
def create_cluster_cmd(
    ctx: typer.Context,
    tenant: str = typer.Option(None, "--tenant", "-t", help="Tenant name"),
    project: str = typer.Option(None, "--project", "-p", help="Project name"),
    name: str = typer.Option(None, "--name", "-n", help="Cluster name"),
    cluster_type: str = typer.Option(None, "--type", "-k", help="Cluster type (accepted values are KUBERNETES, MESOS, or SWARM)"),
    vm_flavor: str = typer.Option(None, "--vm-flavor", "-v", help="VM flavor name"),
    disk_flavor: str = typer.Option(None, "--disk-flavor", "-d", help="Disk flavor name"),
    network_id: str = typer.Option(None, "--network-id", "-w", help="VM network ID"),
    worker_count: int = typer.Option(None, "--worker-count", "-c", help="Worker count"),
    dns: str = typer.Option(None, help="VM network DNS server IP address"),
    gateway: str = typer.Option(None, help="VM network gateway IP address"),
    netmask: str = typer.Option(None, help="VM network netmask"),
    master_ip: str = typer.Option(None, "--master-ip", help="Kubernetes master IP address (required for Kubernetes clusters)"),
    container_network: str = typer.Option(None, "--container-network", help="CIDR of the container network, e.g. '10.2.0.0/16' (required for Kubernetes clusters)"),
    zookeeper1: str = typer.Option(None, help="Static IP address of Zookeeper node 1 (required for Mesos clusters)"),
    zookeeper2: str = typer.Option(None, help="Static IP address of Zookeeper node 2"),
    zookeeper3: str = typer.Option(None, help="Static IP address of Zookeeper node 3"),
    etcd1: str = typer.Option(None, help="Static IP address of etcd node 1 (required for Kubernetes and Swarm clusters)"),
    etcd2: str = typer.Option(None, help="Static IP address of etcd node 2"),
    etcd3: str = typer.Option(None, help="Static IP address of etcd node 3"),
    ssh_key: str = typer.Option(None, "--ssh-key", help="The file path of the SSH key"),
    batch_size: int = typer.Option(None, "--batch-size", help="Batch size for expanding worker nodes"),
    file: str = typer.Option(None, "--file", "-f", help="Cluster definition YAML; flags override its values"),
    wait_for_ready: bool = typer.Option(False, "--wait-for-ready", help="Wait synchronously for the cluster to become ready and expanded fully"),
):
    """Create a new cluster."""
    with _abort_on_error():
        definition = cluster_ops.load_cluster_file(file) if file else {}

        def pick(value, key, default=None):
            return value if value is not None else definition.get(key, default)

        etcd = [etcd1, etcd2, etcd3] if any([etcd1, etcd2, etcd3]) else definition.get("etcd", [])
        zookeeper = (
            [zookeeper1, zookeeper2, zookeeper3]
            if any([zookeeper1, zookeeper2, zookeeper3])
            else definition.get("zookeeper", [])
        )

        spec = cluster_ops.build_create_spec(
            name=pick(name, "name", ""),
            cluster_type=pick(cluster_type, "type", ""),
            dns=pick(dns, "dns", ""),
            gateway=pick(gateway, "gateway", ""),
            netmask=pick(netmask, "netmask", ""),
            worker_count=pick(worker_count, "worker_count", 0),
            vm_flavor=pick(vm_flavor, "vm_flavor", ""),
            disk_flavor=pick(disk_flavor, "disk_flavor", ""),
            network_id=pick(network_id, "network_id", ""),
            batch_size=pick(batch_size, "batch_size", 0),
            ssh_key=pick(ssh_key, "ssh_key", ""),
            master_ip=pick(master_ip, "master_ip", ""),
            container_network=pick(container_network, "container_network", ""),
            etcd=etcd,
            zookeeper=zookeeper,
        )

        client = get_client()
        project_id = cluster_ops.resolve_project_id(
            client,
            pick(tenant, "tenant", Config.PHOTON_TENANT),
            pick(project, "project", Config.PHOTON_PROJECT),
        )

        if not _is_non_interactive(ctx):
            typer.echo(f"\nCreating cluster: {spec.name} ({spec.type.value})")
            if spec.vm_flavor:
                typer.echo(f"  VM flavor: {spec.vm_flavor}")
            if spec.disk_flavor:
                typer.echo(f"  Disk flavor: {spec.disk_flavor}")
            typer.echo(f"  Worker count: {spec.worker_count}")
            if spec.batch_size_worker:
                typer.echo(f"  Batch size: {spec.batch_size_worker}")
            typer.echo()

        if not _confirmed(ctx):
            typer.echo("❌ Cancelled")
            raise typer.Exit()

        task, cluster = cluster_ops.create_cluster(
            client,
            project_id,
            spec,
            wait_for_ready=wait_for_ready,
            reporter_factory=_reporter_factory(ctx, f"Creating cluster {spec.name}"),
            notify=None if _output_format(ctx) else typer.echo,
        )

    if cluster is not None:
        _echo_ready(ctx, cluster)
    else:
        typer.echo("Note: the cluster has been created with minimal resources. You can use the cluster now.")
        typer.echo("A background task is running to gradually expand the cluster to its target capacity.")
        typer.echo(f"You can run 'cluster show {task.entity.id}' to see the state of the cluster.")


@cluster_app.command("show")
def show_cluster_cmd(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster ID"),
):
    """Show information about a cluster."""
    with _abort_on_error():
        cluster, master_vms = cluster_ops.show_cluster(get_client(), cluster_id)

    fmt = _output_format(ctx)
    if fmt:
        typer.echo(format_object({"cluster": cluster, "masters": master_vms}, fmt))
        return
    echo_cluster(cluster, non_interactive=_is_non_interactive(ctx))
    echo_vms(master_vms, non_interactive=_is_non_interactive(ctx))


@cluster_app.command("list")
def list_clusters_cmd(
    ctx: typer.Context,
    tenant: str = typer.Option(None, "--tenant", "-t", help="Tenant name"),
    project: str = typer.Option(None, "--project", "-p", help="Project name"),
    summary: bool = typer.Option(False, "--summary", "-s", help="Summary view"),
):
    """List clusters."""
    with _abort_on_error():
        client = get_client()
        project_id = cluster_ops.resolve_project_id(
            client, tenant or Config.PHOTON_TENANT, project or Config.PHOTON_PROJECT
        )
        clusters = client.list_clusters(project_id)

    fmt = _output_format(ctx)
    if fmt:
        typer.echo(format_object(clusters, fmt))
        return
    echo_cluster_list(clusters, summary=summary, non_interactive=_is_non_interactive(ctx))


@cluster_app.command("list-vms")
def list_vms_cmd(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster ID"),
):
    """List the VMs associated with a cluster."""
    with _abort_on_error():
        vms = get_client().get_cluster_vms(cluster_id)

    fmt = _output_format(ctx)
    if fmt:
        typer.echo(format_object(vms, fmt))
        return
    echo_vms(vms, non_interactive=_is_non_interactive(ctx))


@cluster_app.command("resize")
def resize_cluster_cmd(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster ID"),
    worker_count: int = typer.Argument(..., help="New worker count"),
    wait_for_ready: bool = typer.Option(False, "--wait-for-ready", help="Wait synchronously for the cluster to become ready and expanded fully"),
):
    """Resize a cluster."""
    with _abort_on_error():
        if not cluster_id or worker_count <= 0:
            raise ValueError("Provide a valid cluster ID and worker count")

        client = get_client()
        if not _is_non_interactive(ctx):
            typer.echo(f"\nResizing cluster {cluster_id} to worker count {worker_count}")

        if not _confirmed(ctx):
            typer.echo("❌ Cancelled")
            raise typer.Exit()

        task, cluster = cluster_ops.resize_cluster(
            client,
            cluster_id,
            worker_count,
            wait_for_ready=wait_for_ready,
            reporter_factory=_reporter_factory(ctx, f"Resizing cluster {cluster_id}"),
        )

    if cluster is not None:
        _echo_ready(ctx, cluster)
    else:
        typer.echo("Note: A background task is running to gradually resize the cluster to its target capacity.")
        typer.echo(f"You may continue to use the cluster. You can run 'cluster show {cluster_id}'")
        typer.echo("to see the state of the cluster. If the resize operation is still in progress, the cluster state")
        typer.echo("will show as RESIZING. Once the cluster is resized, the cluster state will show as READY.")


@cluster_app.command("delete")
def delete_cluster_cmd(
    ctx: typer.Context,
    cluster_id: str = typer.Argument(..., help="Cluster ID"),
):
    """Delete a cluster."""
    with _abort_on_error():
        if not cluster_id:
            raise ValueError("Please provide a valid cluster ID")

        client = get_client()
        if not _is_non_interactive(ctx):
            typer.echo(f"\nDeleting cluster {cluster_id}")

        if not _confirmed(ctx):
            typer.echo("❌ Cancelled")
            raise typer.Exit()

        task = cluster_ops.delete_cluster(
            client,
            cluster_id,
            reporter_factory=_reporter_factory(ctx, f"Deleting cluster {cluster_id}"),
        )

    typer.echo(f"🧹 Cluster {cluster_id} deleted (task {task.id})")

app = cluster_app
