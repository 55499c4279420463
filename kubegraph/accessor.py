from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar

from kubegraph.errors import (
    AccessTimeoutError,
    AmbiguousKindError,
    KindNotFoundError,
    KubeGraphError,
)
from kubegraph.models import APIResourceInfo, GroupVersionResource, ResourceRef, split_api_version
from kubegraph.protocols import ClusterClientProtocol

logger = logging.getLogger(__name__)

T = TypeVar("T")

# match ranks, best first
_RANK_KIND = 0
_RANK_NAME = 1
_RANK_SHORT_NAME = 2


class ResourceAccessor:
    """
    Per-run view of the cluster used by the graph builder and relation rules.

    Wraps a ``ClusterClientProtocol`` with:
    - kind resolution backed by a discovery table loaded at most once
    - a deadline on every call (``AccessTimeoutError`` when exceeded)
    - API call statistics

    A new accessor is created for every build so resolved kinds never leak
    between runs or between concurrent builds.

    Example:
        >>> accessor = ResourceAccessor(client, request_timeout=5.0)
        >>> gvr = await accessor.resolve_kind("deploy")
        >>> obj = await accessor.get(gvr, "default", "web")
    """

    def __init__(self, client: ClusterClientProtocol, request_timeout: float = 10.0):
        self.client = client
        self.request_timeout = request_timeout

        self._resources: list[APIResourceInfo] | None = None
        self._discovery_lock = asyncio.Lock()
        self._resolved: dict[str, GroupVersionResource] = {}
        self._api_call_stats = {"discovery": 0, "get": 0, "list": 0, "total": 0}

    async def resolve_kind(self, name: str) -> GroupVersionResource:
        """
        Resolve a kind, plural, singular or short name to a resource type.

        Accepts ``resource.group`` qualification (``deployments.apps``).

        Raises:
            KindNotFoundError: nothing matches
            AmbiguousKindError: several API groups serve a matching type
        """
        key = name.lower()
        if key in self._resolved:
            return self._resolved[key]

        resources = await self._discover()

        wanted, _, group = key.partition(".")
        if group:
            resources = [r for r in resources if r.group.lower() == group]

        best_rank: int | None = None
        matches: list[APIResourceInfo] = []
        for info in resources:
            rank = self._match_rank(info, wanted)
            if rank is None:
                continue
            if best_rank is None or rank < best_rank:
                best_rank = rank
                matches = [info]
            elif rank == best_rank:
                matches.append(info)

        gvr = self._pick(name, matches)
        self._resolved[key] = gvr
        logger.debug(f"Resolved kind '{name}' to {gvr}")
        return gvr

    async def resolve_ref(self, ref: ResourceRef) -> GroupVersionResource:
        """Resolve the resource type of a reference by API group and kind."""
        if not ref.api_version:
            return await self.resolve_kind(ref.kind)

        group, _ = split_api_version(ref.api_version)
        cache_key = f"{ref.kind}.{group}/"
        if cache_key in self._resolved:
            return self._resolved[cache_key]

        resources = await self._discover()
        matches = [r for r in resources if r.group == group and r.kind == ref.kind]
        if not matches:
            raise KindNotFoundError(f"{ref.kind}.{group}" if group else ref.kind)

        gvr = matches[0].to_gvr()
        self._resolved[cache_key] = gvr
        return gvr

    async def canonicalize(self, ref: ResourceRef) -> ResourceRef:
        """
        Normalise a reference so equal objects share one identity.

        Fills in the served kind and API version, and drops the namespace of
        cluster-scoped types. A reference that cannot be resolved is returned
        unchanged; resolving it again while fetching records the failure.
        """
        try:
            gvr = await self.resolve_ref(ref)
        except KubeGraphError as e:
            logger.debug(f"Cannot canonicalize {ref}: {e}")
            return ref

        return ref.model_copy(
            update={
                "kind": gvr.kind,
                "api_version": gvr.api_version,
                "namespace": ref.namespace if gvr.namespaced else "",
            }
        )

    async def get(self, gvr: GroupVersionResource, namespace: str, name: str) -> dict[str, Any]:
        namespace = namespace if gvr.namespaced else ""
        return await self._call(
            "get",
            f"{gvr.kind}/{name}",
            self.client.get(gvr, namespace, name),
        )

    async def list(
        self,
        gvr: GroupVersionResource,
        namespace: str,
        label_selector: str = "",
    ) -> list[dict[str, Any]]:
        """List objects of a type; an empty selector lists the whole namespace."""
        namespace = namespace if gvr.namespaced else ""
        return await self._call(
            "list",
            f"{gvr.resource} [{label_selector}]",
            self.client.list(gvr, namespace, label_selector),
        )

    def get_api_call_stats(self) -> dict[str, int]:
        return self._api_call_stats.copy()

    async def _discover(self) -> list[APIResourceInfo]:
        async with self._discovery_lock:
            if self._resources is None:
                self._resources = await self._call(
                    "discovery", "server resources", self.client.discover_resources()
                )
                logger.debug(f"Discovered {len(self._resources)} resource types")
        return self._resources

    async def _call(self, operation: str, description: str, call: Awaitable[T]) -> T:
        self._api_call_stats[operation] += 1
        self._api_call_stats["total"] += 1
        try:
            return await asyncio.wait_for(call, timeout=self.request_timeout)
        except asyncio.TimeoutError as e:
            raise AccessTimeoutError(
                f"{operation} {description} timed out after {self.request_timeout}s"
            ) from e

    @staticmethod
    def _match_rank(info: APIResourceInfo, wanted: str) -> int | None:
        if info.kind.lower() == wanted:
            return _RANK_KIND
        if wanted in (info.resource.lower(), info.singular_name.lower()):
            return _RANK_NAME
        if wanted in (s.lower() for s in info.short_names):
            return _RANK_SHORT_NAME
        return None

    @staticmethod
    def _pick(name: str, matches: list[APIResourceInfo]) -> GroupVersionResource:
        by_group: dict[str, APIResourceInfo] = {}
        for info in matches:
            by_group.setdefault(info.group, info)

        if not by_group:
            raise KindNotFoundError(name)
        if len(by_group) == 1:
            return next(iter(by_group.values())).to_gvr()
        if "" in by_group:
            return by_group[""].to_gvr()

        candidates = sorted(f"{i.resource}.{i.group}" for i in by_group.values())
        raise AmbiguousKindError(name, candidates)
