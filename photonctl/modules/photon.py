"""
Photon control plane API client.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from photonctl.config import Config
from photonctl.modules.models import (
    VM,
    Cluster,
    ClusterCreateSpec,
    NamedReference,
    Task,
)
from photonctl.utils import redact_sensitive_data

logger = logging.getLogger(__name__)

# Custom exceptions
class PhotonError(Exception):
    """Base exception for control plane client errors."""
    pass

class PhotonTransientError(PhotonError):
    """Network failure, request timeout or server-side (5xx) error; safe to retry."""
    pass

class PhotonAPIError(PhotonError):
    """The control plane rejected the request."""

    def __init__(self, message: str, status_code: int = 0, code: str = ''):
        super().__init__(message)
        self.status_code = status_code
        self.code = code

class PhotonNotFoundError(PhotonAPIError):
    """Exception raised when a requested object is not found."""
    pass

class PhotonClient:
    """Client for the control plane REST API."""

    def __init__(self, url: str, token: str = '', timeout: float = None,
                 session: Optional[requests.Session] = None):
        """Initialize the client.

        Args:
            url: Control plane endpoint (e.g. 'https://photon.example.com:9000')
            token: Bearer token, if the endpoint requires authentication
            timeout: Per-request timeout in seconds
            session: Pre-built session, mostly for tests
        """
        self.url = url.rstrip('/')
        self.timeout = timeout if timeout is not None else Config.API_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update({'Accept': 'application/json'})
        if token:
            self.session.headers.update({'Authorization': f'Bearer {token}'})
        self.logger = logging.getLogger(f"{__name__}.PhotonClient")

    def _request(self, method: str, path: str, json_body: Dict[str, Any] = None,
                 params: Dict[str, Any] = None) -> Any:
        url = f"{self.url}{path}"
        if json_body is not None:
            self.logger.debug(f"{method} {url} body={redact_sensitive_data(json_body)}")
        else:
            self.logger.debug(f"{method} {url} params={params}")

        try:
            response = self.session.request(
                method, url, json=json_body, params=params, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout,
                requests.exceptions.ChunkedEncodingError,
                requests.exceptions.ContentDecodingError) as e:
            raise PhotonTransientError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 500:
            raise PhotonTransientError(
                f"{method} {url} returned {response.status_code}: {response.text}"
            )
        if response.status_code >= 400:
            code, message = self._error_details(response)
            error_cls = PhotonNotFoundError if response.status_code == 404 else PhotonAPIError
            raise error_cls(
                f"{method} {url} returned {response.status_code}: {message}",
                status_code=response.status_code,
                code=code,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            # Proxies and load balancers answer with HTML pages while the API restarts
            raise PhotonTransientError(
                f"{method} {url} returned a non-JSON body: {response.text[:200]}"
            ) from e

    @staticmethod
    def _error_details(response: requests.Response):
        try:
            payload = response.json()
        except ValueError:
            return '', response.text
        return payload.get('code', ''), payload.get('message', response.text)

    # Tasks

    def get_task(self, task_id: str) -> Task:
        return Task.from_dict(self._request('GET', f'/tasks/{task_id}'))

    # Clusters

    def get_cluster(self, cluster_id: str) -> Cluster:
        return Cluster.from_dict(self._request('GET', f'/clusters/{cluster_id}'))

    def get_cluster_vms(self, cluster_id: str) -> List[VM]:
        data = self._request('GET', f'/clusters/{cluster_id}/vms')
        return [VM.from_dict(item) for item in data.get('items', [])]

    def create_cluster(self, project_id: str, spec: ClusterCreateSpec) -> Task:
        data = self._request('POST', f'/projects/{project_id}/clusters', json_body=spec.to_dict())
        return Task.from_dict(data)

    def resize_cluster(self, cluster_id: str, worker_count: int) -> Task:
        data = self._request(
            'POST', f'/clusters/{cluster_id}/resize',
            json_body={'newWorkerCount': worker_count},
        )
        return Task.from_dict(data)

    def delete_cluster(self, cluster_id: str) -> Task:
        return Task.from_dict(self._request('DELETE', f'/clusters/{cluster_id}'))

    def list_clusters(self, project_id: str) -> List[Cluster]:
        data = self._request('GET', f'/projects/{project_id}/clusters')
        return [Cluster.from_dict(item) for item in data.get('items', [])]

    # Tenants and projects

    def find_tenant(self, name: str) -> NamedReference:
        data = self._request('GET', '/tenants', params={'name': name})
        return self._single(data, 'tenant', name)

    def find_project(self, tenant_id: str, name: str) -> NamedReference:
        data = self._request('GET', f'/tenants/{tenant_id}/projects', params={'name': name})
        return self._single(data, 'project', name)

    @staticmethod
    def _single(data: Dict[str, Any], kind: str, name: str) -> NamedReference:
        items = data.get('items', [])
        if not items:
            raise PhotonNotFoundError(f"No {kind} found with name '{name}'", status_code=404)
        if len(items) > 1:
            raise PhotonAPIError(f"Found {len(items)} {kind}s named '{name}'")
        return NamedReference.from_dict(items[0])

def get_client(url: str = None, token: str = None) -> PhotonClient:
    """
    Get a control plane client using configuration or provided credentials.

    Args:
        url: Control plane endpoint (falls back to PHOTON_TARGET)
        token: Bearer token (falls back to PHOTON_TOKEN)

    Returns:
        PhotonClient instance

    Raises:
        ValueError: If no endpoint is configured
    """
    url = url or Config.PHOTON_TARGET
    token = token or Config.PHOTON_TOKEN

    if not url:
        raise ValueError("No target set. Export PHOTON_TARGET or add it to .env")

    logger.debug(f"Initializing client for {url}")
    return PhotonClient(url, token)
