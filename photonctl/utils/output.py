"""Rendering of control plane objects for the terminal."""
import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, List

import typer
import yaml

from photonctl.modules.models import VM, Cluster

OUTPUT_FORMATS = ("json", "yaml")


def to_plain(obj: Any) -> Any:
    """Convert dataclasses and enums into JSON-compatible structures."""
    if is_dataclass(obj) and not isinstance(obj, type):
        return to_plain(asdict(obj))
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: to_plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_plain(item) for item in obj]
    return obj


def format_object(obj: Any, fmt: str) -> str:
    data = to_plain(obj)
    if fmt == "json":
        return json.dumps(data, indent=2)
    if fmt == "yaml":
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip()
    raise ValueError(f"Unsupported output format: {fmt}")


def echo_cluster(cluster: Cluster, non_interactive: bool = False) -> None:
    if non_interactive:
        properties = ",".join(f"{k}:{v}" for k, v in cluster.extended_properties.items())
        typer.echo("\t".join([
            cluster.id, cluster.name, cluster.state.value, cluster.type,
            str(cluster.worker_count), properties,
        ]))
        return

    typer.echo(f"Cluster ID:             {cluster.id}")
    typer.echo(f"  Name:                 {cluster.name}")
    typer.echo(f"  State:                {cluster.state.value}")
    typer.echo(f"  Type:                 {cluster.type}")
    typer.echo(f"  Worker count:         {cluster.worker_count}")
    typer.echo(f"  Extended Properties:  {cluster.extended_properties}")
    typer.echo()


def echo_vms(vms: List[VM], non_interactive: bool = False) -> None:
    for vm in vms:
        if non_interactive:
            typer.echo(f"{vm.id}\t{vm.name}\t{vm.state}")
        else:
            typer.echo(f"VM ID: {vm.id}  Name: {vm.name}  State: {vm.state}")
    if not non_interactive:
        typer.echo(f"Total: {len(vms)}")


def echo_cluster_list(clusters: List[Cluster], summary: bool = False, non_interactive: bool = False) -> None:
    for cluster in clusters:
        if non_interactive or summary:
            typer.echo(f"{cluster.id}\t{cluster.name}\t{cluster.state.value}")
        else:
            echo_cluster(cluster)
    if not non_interactive:
        typer.echo(f"Total: {len(clusters)}")
