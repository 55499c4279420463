from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any
from urllib.parse import quote

import urllib3
from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException

from kubegraph.errors import AccessError, KubeGraphError, NotFoundError
from kubegraph.models import APIResourceInfo, GroupVersionResource

logger = logging.getLogger(__name__)

SERVICE_ACCOUNT_NAMESPACE = Path("/var/run/secrets/kubernetes.io/serviceaccount/namespace")

LIST_PAGE_SIZE = 500


class KubernetesAdapter:
    """
    Cluster client backed by the official ``kubernetes`` Python client.

    Talks to the API server through raw REST paths so any resource type the
    server advertises, custom resources included, can be read as plain dicts.
    Blocking client calls run in worker threads.

    Example:
        >>> adapter = KubernetesAdapter(context="staging")
        >>> adapter.default_namespace
        'default'
    """

    def __init__(
        self,
        kubeconfig: str | None = None,
        context: str | None = None,
        request_timeout: float = 30.0,
        api_client: k8s_client.ApiClient | None = None,
    ):
        """
        Initialize the adapter.

        Args:
            kubeconfig: Path to a kubeconfig file (default lookup if None)
            context: Kubeconfig context to use (current context if None)
            request_timeout: HTTP timeout for each request in seconds
            api_client: Preconfigured client; skips config loading

        Raises:
            AccessError: No usable kubeconfig or in-cluster configuration
        """
        self.request_timeout = request_timeout
        if api_client is not None:
            self.api_client = api_client
            self.default_namespace = "default"
        else:
            self.api_client, self.default_namespace = self._load_config(kubeconfig, context)

        self._api_call_stats = {"discover_resources": 0, "get": 0, "list": 0, "total": 0}

    @staticmethod
    def _load_config(
        kubeconfig: str | None, context: str | None
    ) -> tuple[k8s_client.ApiClient, str]:
        configuration = k8s_client.Configuration()
        try:
            k8s_config.load_kube_config(
                config_file=kubeconfig,
                context=context,
                client_configuration=configuration,
            )
            contexts, active = k8s_config.list_kube_config_contexts(config_file=kubeconfig)
            if context:
                active = next((c for c in contexts if c.get("name") == context), active)
            namespace = (active or {}).get("context", {}).get("namespace") or "default"
            logger.info(f"Loaded kubeconfig context '{(active or {}).get('name')}'")
        except ConfigException as e:
            if kubeconfig or context:
                raise AccessError(f"cannot load kubeconfig: {e}") from e
            try:
                k8s_config.load_incluster_config(client_configuration=configuration)
            except ConfigException as incluster_error:
                raise AccessError(
                    f"no kubeconfig and not running in a cluster: {incluster_error}"
                ) from incluster_error
            namespace = "default"
            if SERVICE_ACCOUNT_NAMESPACE.exists():
                namespace = SERVICE_ACCOUNT_NAMESPACE.read_text().strip() or "default"
            logger.info("Loaded in-cluster configuration")

        return k8s_client.ApiClient(configuration), namespace

    async def discover_resources(self) -> list[APIResourceInfo]:
        self._count("discover_resources")
        return await asyncio.to_thread(self._discover_resources_sync)

    async def get(self, gvr: GroupVersionResource, namespace: str, name: str) -> dict[str, Any]:
        self._count("get")
        return await asyncio.to_thread(self._get_sync, gvr, namespace, name)

    async def list(
        self,
        gvr: GroupVersionResource,
        namespace: str,
        label_selector: str = "",
    ) -> list[dict[str, Any]]:
        self._count("list")
        return await asyncio.to_thread(self._list_sync, gvr, namespace, label_selector)

    def get_api_call_stats(self) -> dict[str, int]:
        return self._api_call_stats.copy()

    def reset_api_call_stats(self) -> None:
        self._api_call_stats = {"discover_resources": 0, "get": 0, "list": 0, "total": 0}

    def _count(self, operation: str) -> None:
        self._api_call_stats[operation] += 1
        self._api_call_stats["total"] += 1

    def _discover_resources_sync(self) -> list[APIResourceInfo]:
        resources = self._parse_resource_list(self._request("/api/v1"), "", "v1")

        for group in self._request("/apis").get("groups") or []:
            preferred = group.get("preferredVersion") or {}
            group_version = preferred.get("groupVersion")
            if not group_version:
                continue
            try:
                data = self._request(f"/apis/{group_version}")
            except KubeGraphError as e:
                # aggregated APIs (metrics, custom metrics) are often unavailable
                logger.warning(f"Skipping API group {group_version}: {e}")
                continue
            resources.extend(
                self._parse_resource_list(data, group.get("name", ""), preferred.get("version", ""))
            )

        return resources

    @staticmethod
    def _parse_resource_list(data: dict[str, Any], group: str, version: str) -> list[APIResourceInfo]:
        resources: list[APIResourceInfo] = []
        for entry in data.get("resources") or []:
            name = entry.get("name", "")
            if not name or "/" in name or "get" not in (entry.get("verbs") or []):
                continue
            resources.append(
                APIResourceInfo(
                    group=group,
                    version=version,
                    resource=name,
                    kind=entry.get("kind", ""),
                    namespaced=entry.get("namespaced", True),
                    singular_name=entry.get("singularName") or "",
                    short_names=tuple(entry.get("shortNames") or ()),
                )
            )
        return resources

    def _get_sync(self, gvr: GroupVersionResource, namespace: str, name: str) -> dict[str, Any]:
        try:
            obj = self._request(self._path(gvr, namespace, name))
        except NotFoundError as e:
            raise NotFoundError(gvr.kind, namespace, name) from e
        obj.setdefault("kind", gvr.kind)
        obj.setdefault("apiVersion", gvr.api_version)
        return obj

    def _list_sync(
        self, gvr: GroupVersionResource, namespace: str, label_selector: str
    ) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        query: list[tuple[str, Any]] = [("limit", LIST_PAGE_SIZE)]
        if label_selector:
            query.append(("labelSelector", label_selector))

        continue_token = None
        while True:
            page_query = list(query)
            if continue_token:
                page_query.append(("continue", continue_token))
            data = self._request(self._path(gvr, namespace), page_query)

            for item in data.get("items") or []:
                # list responses omit kind and apiVersion on items
                item.setdefault("kind", gvr.kind)
                item.setdefault("apiVersion", gvr.api_version)
                items.append(item)

            continue_token = (data.get("metadata") or {}).get("continue")
            if not continue_token:
                return items

    @staticmethod
    def _path(gvr: GroupVersionResource, namespace: str, name: str | None = None) -> str:
        path = f"/apis/{gvr.group}/{gvr.version}" if gvr.group else f"/api/{gvr.version}"
        if gvr.namespaced and namespace:
            path = f"{path}/namespaces/{quote(namespace, safe='')}"
        path = f"{path}/{gvr.resource}"
        if name:
            path = f"{path}/{quote(name, safe='')}"
        return path

    def _request(self, path: str, query: list[tuple[str, Any]] | None = None) -> dict[str, Any]:
        try:
            data = self.api_client.call_api(
                path,
                "GET",
                query_params=query or [],
                header_params={"Accept": "application/json"},
                response_type="object",
                auth_settings=["BearerToken"],
                _return_http_data_only=True,
                _preload_content=True,
                _request_timeout=self.request_timeout,
            )
        except ApiException as e:
            if e.status == 404:
                raise NotFoundError("resource", "", path) from e
            if e.status in (401, 403):
                raise AccessError(f"forbidden: GET {path} ({e.status} {e.reason})") from e
            raise AccessError(f"GET {path} failed: {e.status} {e.reason}") from e
        except (urllib3.exceptions.HTTPError, OSError) as e:
            raise AccessError(f"GET {path} failed: {e}") from e

        if not isinstance(data, dict):
            raise AccessError(f"GET {path} returned unexpected {type(data).__name__}")
        return data
