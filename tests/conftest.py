"""Shared test fixtures for kubegraph tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from kubegraph.errors import AccessError, NotFoundError
from kubegraph.models import APIResourceInfo, GroupVersionResource, split_api_version

DISCOVERY = [
    APIResourceInfo(version="v1", resource="pods", kind="Pod", singular_name="pod", short_names=("po",)),
    APIResourceInfo(version="v1", resource="services", kind="Service", singular_name="service", short_names=("svc",)),
    APIResourceInfo(version="v1", resource="configmaps", kind="ConfigMap", singular_name="configmap", short_names=("cm",)),
    APIResourceInfo(version="v1", resource="secrets", kind="Secret", singular_name="secret"),
    APIResourceInfo(version="v1", resource="serviceaccounts", kind="ServiceAccount", singular_name="serviceaccount", short_names=("sa",)),
    APIResourceInfo(version="v1", resource="persistentvolumeclaims", kind="PersistentVolumeClaim", singular_name="persistentvolumeclaim", short_names=("pvc",)),
    APIResourceInfo(version="v1", resource="persistentvolumes", kind="PersistentVolume", namespaced=False, singular_name="persistentvolume", short_names=("pv",)),
    APIResourceInfo(version="v1", resource="nodes", kind="Node", namespaced=False, singular_name="node", short_names=("no",)),
    APIResourceInfo(version="v1", resource="events", kind="Event", singular_name="event", short_names=("ev",)),
    APIResourceInfo(group="apps", version="v1", resource="deployments", kind="Deployment", singular_name="deployment", short_names=("deploy",)),
    APIResourceInfo(group="apps", version="v1", resource="replicasets", kind="ReplicaSet", singular_name="replicaset", short_names=("rs",)),
    APIResourceInfo(group="apps", version="v1", resource="statefulsets", kind="StatefulSet", singular_name="statefulset", short_names=("sts",)),
    APIResourceInfo(group="batch", version="v1", resource="jobs", kind="Job", singular_name="job"),
    APIResourceInfo(group="batch", version="v1", resource="cronjobs", kind="CronJob", singular_name="cronjob", short_names=("cj",)),
    APIResourceInfo(group="networking.k8s.io", version="v1", resource="ingresses", kind="Ingress", singular_name="ingress", short_names=("ing",)),
    APIResourceInfo(group="autoscaling", version="v2", resource="horizontalpodautoscalers", kind="HorizontalPodAutoscaler", singular_name="horizontalpodautoscaler", short_names=("hpa",)),
    APIResourceInfo(group="events.k8s.io", version="v1", resource="events", kind="Event", singular_name="event", short_names=("ev",)),
    APIResourceInfo(group="metrics.k8s.io", version="v1beta1", resource="pods", kind="PodMetrics"),
    APIResourceInfo(group="a.example.com", version="v1", resource="widgets", kind="Widget", singular_name="widget"),
    APIResourceInfo(group="b.example.com", version="v1", resource="widgets", kind="Widget", singular_name="widget"),
]


def _split_requirements(selector: str) -> list[str]:
    # commas inside "in (a,b)" do not separate requirements
    requirements: list[str] = []
    depth = 0
    current = ""
    for char in selector:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
        if char == "," and depth == 0:
            requirements.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        requirements.append(current.strip())
    return requirements


def _parse_set(values: str) -> set[str]:
    return {v.strip() for v in values.strip().strip("()").split(",") if v.strip()}


def matches(labels: dict[str, str] | None, selector: str) -> bool:
    """
    Check whether ``labels`` satisfy a label selector string, the way the
    API server filters a list call. An empty selector matches everything.
    """
    labels = labels or {}
    for requirement in _split_requirements(selector):
        if " notin " in requirement:
            key, values = requirement.split(" notin ", 1)
            if labels.get(key.strip()) in _parse_set(values):
                return False
        elif " in " in requirement:
            key, values = requirement.split(" in ", 1)
            if labels.get(key.strip()) not in _parse_set(values):
                return False
        elif "!=" in requirement:
            key, value = requirement.split("!=", 1)
            if labels.get(key.strip()) == value.strip():
                return False
        elif "=" in requirement:
            key, value = requirement.split("=", 1)
            if labels.get(key.strip().rstrip("=")) != value.strip().lstrip("="):
                return False
        elif requirement.startswith("!"):
            if requirement[1:] in labels:
                return False
        elif requirement not in labels:
            return False
    return True


class FakeClusterClient:
    """In-memory cluster client with failure injection and call tracking."""

    def __init__(self, resources: list[APIResourceInfo] | None = None):
        self.resources = list(DISCOVERY if resources is None else resources)
        self.objects: dict[tuple[str, str, str, str], dict[str, Any]] = {}
        self.default_namespace = "default"

        self.forbidden: set[tuple[str, str, str]] = set()
        self.forbidden_lists: set[str] = set()
        self.delays: dict[tuple[str, str, str], float] = {}
        self.discovery_failure: Exception | None = None

        self._api_call_stats = {"discover_resources": 0, "get": 0, "list": 0, "total": 0}
        self.in_flight = 0
        self.max_in_flight = 0

    def add(self, *objects: dict[str, Any]) -> "FakeClusterClient":
        for obj in objects:
            group, _ = split_api_version(obj.get("apiVersion", "v1"))
            metadata = obj["metadata"]
            key = (group, obj["kind"], metadata.get("namespace", ""), metadata["name"])
            self.objects[key] = obj
        return self

    def forbid(self, kind: str, namespace: str, name: str) -> None:
        self.forbidden.add((kind, namespace, name))

    def delay(self, kind: str, namespace: str, name: str, seconds: float) -> None:
        self.delays[(kind, namespace, name)] = seconds

    async def discover_resources(self) -> list[APIResourceInfo]:
        self._count("discover_resources")
        if self.discovery_failure is not None:
            raise self.discovery_failure
        return list(self.resources)

    async def get(self, gvr: GroupVersionResource, namespace: str, name: str) -> dict[str, Any]:
        self._count("get")
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get((gvr.kind, namespace, name), 0.001))
            if (gvr.kind, namespace, name) in self.forbidden:
                raise AccessError(
                    f"{gvr.resource} \"{name}\" is forbidden: cannot get resource "
                    f"in namespace \"{namespace}\""
                )
            obj = self.objects.get((gvr.group, gvr.kind, namespace, name))
            if obj is None:
                raise NotFoundError(gvr.kind, namespace, name)
            return obj
        finally:
            self.in_flight -= 1

    async def list(
        self,
        gvr: GroupVersionResource,
        namespace: str,
        label_selector: str = "",
    ) -> list[dict[str, Any]]:
        self._count("list")
        if gvr.kind in self.forbidden_lists:
            raise AccessError(f"{gvr.resource} is forbidden: cannot list resource")

        results = []
        for (group, kind, obj_namespace, _), obj in self.objects.items():
            if group != gvr.group or kind != gvr.kind:
                continue
            if namespace and obj_namespace != namespace:
                continue
            if not matches(obj["metadata"].get("labels"), label_selector):
                continue
            results.append(obj)
        return results

    def get_api_call_stats(self) -> dict[str, int]:
        return self._api_call_stats.copy()

    def _count(self, operation: str) -> None:
        self._api_call_stats[operation] += 1
        self._api_call_stats["total"] += 1


def make_pod(name: str, labels: dict[str, str], owner: str | None = None, **spec: Any) -> dict[str, Any]:
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": "default",
        "uid": f"uid-{name}",
        "labels": labels,
    }
    if owner:
        metadata["ownerReferences"] = [
            {
                "apiVersion": "apps/v1",
                "kind": "ReplicaSet",
                "name": owner,
                "uid": f"uid-{owner}",
                "controller": True,
            }
        ]
    return {
        "apiVersion": "v1",
        "kind": "Pod",
        "metadata": metadata,
        "spec": {"containers": [{"name": "app", "image": "nginx:1.25"}], **spec},
        "status": {"phase": "Running"},
    }


@pytest.fixture
def sample_service() -> dict[str, Any]:
    """Service "web" selecting app=web."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": "web", "namespace": "default", "uid": "uid-web-svc"},
        "spec": {
            "type": "ClusterIP",
            "selector": {"app": "web"},
            "ports": [{"port": 80, "targetPort": 8080, "protocol": "TCP"}],
        },
    }


@pytest.fixture
def sample_pods() -> list[dict[str, Any]]:
    """Two pods of ReplicaSet web-7f9c, both mounting ConfigMap web-config."""
    volumes = [{"name": "config", "configMap": {"name": "web-config"}}]
    return [
        make_pod("web-7f9c-a", {"app": "web"}, owner="web-7f9c", volumes=volumes),
        make_pod("web-7f9c-b", {"app": "web"}, owner="web-7f9c", volumes=volumes),
    ]


@pytest.fixture
def sample_replicaset() -> dict[str, Any]:
    return {
        "apiVersion": "apps/v1",
        "kind": "ReplicaSet",
        "metadata": {
            "name": "web-7f9c",
            "namespace": "default",
            "uid": "uid-web-7f9c",
            "ownerReferences": [
                {
                    "apiVersion": "apps/v1",
                    "kind": "Deployment",
                    "name": "web",
                    "uid": "uid-web",
                    "controller": True,
                }
            ],
        },
        "spec": {"replicas": 2},
        "status": {"replicas": 2, "readyReplicas": 2},
    }


@pytest.fixture
def sample_deployment() -> dict[str, Any]:
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": "web", "namespace": "default", "uid": "uid-web"},
        "spec": {"replicas": 2},
        "status": {"replicas": 2, "availableReplicas": 2},
    }


@pytest.fixture
def sample_configmap() -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ConfigMap",
        "metadata": {"name": "web-config", "namespace": "default", "uid": "uid-web-config"},
        "data": {"LOG_LEVEL": "info"},
    }


@pytest.fixture
def web_cluster(
    sample_service,
    sample_pods,
    sample_replicaset,
    sample_deployment,
    sample_configmap,
) -> FakeClusterClient:
    """
    Service web -> 2 pods -> ReplicaSet web-7f9c -> Deployment web,
    both pods mounting ConfigMap web-config.
    """
    client = FakeClusterClient()
    client.add(sample_service, *sample_pods, sample_replicaset, sample_deployment, sample_configmap)
    return client
