"""Data models for the Photon control plane resources."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from enum import Enum

# Extended property keys understood by the control plane
EXTENDED_PROPERTY_DNS = 'dns'
EXTENDED_PROPERTY_GATEWAY = 'gateway'
EXTENDED_PROPERTY_NETMASK = 'netmask'
EXTENDED_PROPERTY_MASTER_IP = 'master_ip'
EXTENDED_PROPERTY_CONTAINER_NETWORK = 'container_network'
EXTENDED_PROPERTY_ZOOKEEPER_IPS = ('zookeeper_ip1', 'zookeeper_ip2', 'zookeeper_ip3')
EXTENDED_PROPERTY_ETCD_IPS = ('etcd_ip1', 'etcd_ip2', 'etcd_ip3')
EXTENDED_PROPERTY_SSH_KEY = 'ssh_key'


class TaskState(str, Enum):
    """States reported for a remote asynchronous task."""
    QUEUED = 'QUEUED'
    STARTED = 'STARTED'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'
    ERROR = 'ERROR'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'TaskState':
        """Map a remote state string onto the enum, case-insensitively.

        Unrecognised failure variants (``ERROR_TIMEOUT``, ``FAILED``...) map to
        ERROR; anything else unknown stays non-terminal.
        """
        normalized = (value or '').strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            if 'ERROR' in normalized or 'FAIL' in normalized:
                return cls.ERROR
            return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in (TaskState.COMPLETED, TaskState.ERROR)


class ClusterState(str, Enum):
    """Lifecycle states of a cluster."""
    CREATING = 'CREATING'
    RESIZING = 'RESIZING'
    READY = 'READY'
    PENDING_DELETE = 'PENDING_DELETE'
    ERROR = 'ERROR'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def parse(cls, value: Optional[str]) -> 'ClusterState':
        try:
            return cls((value or '').strip().upper())
        except ValueError:
            return cls.UNKNOWN


class ClusterType(str, Enum):
    """Supported cluster orchestrators."""
    KUBERNETES = 'KUBERNETES'
    MESOS = 'MESOS'
    SWARM = 'SWARM'


@dataclass
class Entity:
    """Reference to the entity a task operates on."""
    id: str
    kind: str = ''


@dataclass
class TaskError:
    """Error detail attached to a failed task."""
    code: str = ''
    message: str = ''


@dataclass
class Task:
    """A handle to a remote asynchronous operation."""
    id: str
    state: TaskState = TaskState.QUEUED
    operation: str = ''
    entity: Optional[Entity] = None
    errors: List[TaskError] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Task':
        entity = data.get('entity')
        return cls(
            id=data['id'],
            state=TaskState.parse(data.get('state')),
            operation=data.get('operation', ''),
            entity=Entity(id=entity.get('id', ''), kind=entity.get('kind', '')) if entity else None,
            errors=[
                TaskError(code=e.get('code', ''), message=e.get('message', ''))
                for e in data.get('errors') or []
            ],
        )


@dataclass
class Cluster:
    """A remotely owned cluster; the CLI only observes it."""
    id: str
    name: str = ''
    type: str = ''
    state: ClusterState = ClusterState.UNKNOWN
    worker_count: int = 0
    extended_properties: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Cluster':
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            type=data.get('type', ''),
            state=ClusterState.parse(data.get('state')),
            worker_count=int(data.get('workerCount') or 0),
            extended_properties=dict(data.get('extendedProperties') or {}),
        )


@dataclass
class VM:
    """A virtual machine belonging to a cluster."""
    id: str
    name: str = ''
    state: str = ''
    tags: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VM':
        return cls(
            id=data['id'],
            name=data.get('name', ''),
            state=data.get('state', ''),
            tags=list(data.get('tags') or []),
        )

    @property
    def is_master(self) -> bool:
        # Master tags look like "cluster:<id>:master"; worker tags name the role
        return any(
            tag.count(':') == 2 and 'worker' not in tag.lower()
            for tag in self.tags
        )


@dataclass
class NamedReference:
    """Tenant or project as returned by name lookups."""
    id: str
    name: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'NamedReference':
        return cls(id=data['id'], name=data.get('name', ''))


@dataclass
class ClusterCreateSpec:
    """Request body for creating a cluster."""
    name: str
    type: ClusterType
    vm_flavor: str = ''
    disk_flavor: str = ''
    network_id: str = ''
    worker_count: int = 1
    batch_size_worker: int = 0
    extended_properties: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            'name': self.name,
            'type': self.type.value,
            'workerCount': self.worker_count,
            'extendedProperties': dict(self.extended_properties),
        }
        if self.vm_flavor:
            body['vmFlavor'] = self.vm_flavor
        if self.disk_flavor:
            body['diskFlavor'] = self.disk_flavor
        if self.network_id:
            body['vmNetworkId'] = self.network_id
        if self.batch_size_worker:
            body['workerBatchExpansionSize'] = self.batch_size_worker
        return body
