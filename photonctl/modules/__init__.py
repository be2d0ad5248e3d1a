"""
Control plane client and long-running operation tracking.
"""
from .photon import PhotonClient, get_client
from .tasks import wait_for_task
from .cluster import wait_for_cluster

__all__ = [
    'PhotonClient',
    'get_client',
    'wait_for_task',
    'wait_for_cluster',
]
