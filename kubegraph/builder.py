import asyncio
import logging
from collections.abc import Coroutine, Sequence
from typing import Any, TypeVar

from kubegraph.accessor import ResourceAccessor
from kubegraph.errors import BuildCancelledError, KubeGraphError, NotFoundError, RootNotFoundError
from kubegraph.models import (
    BuildOptions,
    Graph,
    Node,
    Relation,
    RelationCandidate,
    RelationKind,
    ResourceRef,
)
from kubegraph.protocols import ClusterClientProtocol, RelationRuleProtocol
from kubegraph.rules import default_rules

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GraphBuilder:
    """
    Builds relationship graphs starting from one cluster object.

    The builder orchestrates the whole process:
    - Resolving and fetching the root object
    - Breadth-first expansion through the registered relation rules
    - Deduplicating objects by identity
    - Recording unreadable objects as stub nodes instead of failing
    - Enforcing the node cap

    Fetches and rule evaluations for one BFS level run concurrently, bounded
    by ``options.concurrency``. Results are applied in frontier order, so
    identical cluster state always yields an identical graph.

    Example:
        >>> from kubegraph import GraphBuilder, KubernetesAdapter
        >>> builder = GraphBuilder(KubernetesAdapter())
        >>> graph = await builder.build("service", "default", "web")
    """

    def __init__(
        self,
        client: ClusterClientProtocol,
        rules: Sequence[RelationRuleProtocol] | None = None,
        options: BuildOptions | None = None,
    ):
        """
        Initialize the graph builder.

        Args:
            client: Cluster client implementation
            rules: Relation rules in evaluation order (built-in rules if None)
            options: Build options (defaults if None)
        """
        self.client = client
        self.rules = list(rules) if rules is not None else default_rules()
        self.options = options or BuildOptions()
        self._last_api_call_stats: dict[str, int] = {}

    async def build(
        self,
        kind: str,
        namespace: str,
        name: str,
        node_cap: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> Graph:
        """
        Build the graph of everything reachable from one object.

        Args:
            kind: Kind, plural, singular or short name of the root object
            namespace: Namespace of the root (ignored for cluster-scoped kinds)
            name: Name of the root object
            node_cap: Maximum number of nodes (``options.node_cap`` if None)
            cancel_event: Setting this event aborts the build

        Returns:
            The completed graph, marked ``truncated`` if the cap was hit

        Raises:
            KindNotFoundError: the root kind is unknown
            AmbiguousKindError: the root kind matches several resource types
            RootNotFoundError: the root object does not exist
            AccessError: the root object could not be read
            BuildCancelledError: ``cancel_event`` was set
        """
        cap = self.options.node_cap if node_cap is None else node_cap
        if cap < 1:
            raise ValueError(f"node_cap must be at least 1, got {cap}")

        run = _BuildRun(
            accessor=ResourceAccessor(self.client, self.options.request_timeout),
            rules=self.rules,
            node_cap=cap,
            concurrency=self.options.concurrency,
            cancel_event=cancel_event or asyncio.Event(),
        )
        try:
            return await run.execute(kind, namespace, name)
        finally:
            self._last_api_call_stats = run.accessor.get_api_call_stats()

    def get_api_call_stats(self) -> dict[str, int]:
        """
        Get API call statistics of the most recent build.

        Returns:
            Dictionary with ``discovery``, ``get``, ``list`` and ``total`` counts
        """
        return self._last_api_call_stats.copy()


class _BuildRun:
    """State of a single build. Discarded once the graph is returned."""

    def __init__(
        self,
        accessor: ResourceAccessor,
        rules: list[RelationRuleProtocol],
        node_cap: int,
        concurrency: int,
        cancel_event: asyncio.Event,
    ):
        self.accessor = accessor
        self.rules = rules
        self.node_cap = node_cap
        self.cancel_event = cancel_event

        self._semaphore = asyncio.Semaphore(concurrency)
        # every graph mutation happens under this lock
        self._lock = asyncio.Lock()

        self._refs: dict[str, ResourceRef] = {}
        self._contents: dict[str, dict[str, Any] | None] = {}
        self._errors: dict[str, str | None] = {}
        self._relations: dict[str, list[Relation]] = {}
        self._relation_keys: dict[str, set[tuple[str, RelationKind]]] = {}
        self._next_order = 0
        self._truncated = False

    async def execute(self, kind: str, namespace: str, name: str) -> Graph:
        [(root, content)] = await self._gather([self._resolve_root(kind, namespace, name)])

        async with self._lock:
            self._insert(root, content, None)

        expand = [root]
        level = 0
        while expand and not self._truncated:
            level += 1
            inspected = await self._gather([self._inspect(ref) for ref in expand])

            pending: list[tuple[ResourceRef, str | None]] = []
            queued: set[str] = set()
            async with self._lock:
                for source, candidates in zip(expand, inspected):
                    for target, candidate in candidates:
                        self._add_relation(source, target, candidate)
                        node_id = target.node_id
                        if node_id not in self._refs and node_id not in queued:
                            queued.add(node_id)
                            pending.append((target, candidate.error))

            fetched = await self._gather([self._fetch(ref, error) for ref, error in pending])

            expand = []
            async with self._lock:
                for index, ((ref, _), (content, error)) in enumerate(zip(pending, fetched)):
                    if len(self._refs) >= self.node_cap:
                        self._truncated = True
                        logger.warning(
                            f"Reached node cap of {self.node_cap}, "
                            f"{len(pending) - index} objects at depth {level} not added"
                        )
                        break
                    self._insert(ref, content, error)
                    if content is not None:
                        expand.append(ref)

        if self.cancel_event.is_set():
            raise BuildCancelledError("build cancelled")

        graph = self._finalize(root)
        logger.info(
            f"Built graph from {root} with {len(graph.nodes)} nodes "
            f"and {graph.relation_count} relations"
        )
        return graph

    async def _resolve_root(
        self, kind: str, namespace: str, name: str
    ) -> tuple[ResourceRef, dict[str, Any]]:
        gvr = await self.accessor.resolve_kind(kind)
        namespace = namespace if gvr.namespaced else ""
        try:
            content = await self.accessor.get(gvr, namespace, name)
        except NotFoundError as e:
            raise RootNotFoundError(gvr.kind, namespace, name) from e

        metadata = content.get("metadata") or {}
        root = ResourceRef(
            kind=gvr.kind,
            api_version=gvr.api_version,
            namespace=namespace,
            name=name,
            uid=metadata.get("uid"),
        )
        return root, content

    async def _inspect(self, ref: ResourceRef) -> list[tuple[ResourceRef, RelationCandidate]]:
        """Apply every rule to one node, in registration order."""
        content = self._contents[ref.node_id] or {}
        results: list[tuple[ResourceRef, RelationCandidate]] = []

        async with self._semaphore:
            for rule in self.rules:
                try:
                    candidates = await rule.inspect(content, self.accessor)
                except Exception as e:
                    logger.error(f"Error in {rule.name}.inspect() for {ref}: {e}", exc_info=True)
                    continue

                for candidate in candidates:
                    target = await self.accessor.canonicalize(candidate.target)
                    results.append((target, candidate))

        return results

    async def _fetch(
        self, ref: ResourceRef, error: str | None
    ) -> tuple[dict[str, Any] | None, str | None]:
        if error is not None:
            return None, error

        async with self._semaphore:
            try:
                gvr = await self.accessor.resolve_ref(ref)
                content = await self.accessor.get(gvr, ref.namespace, ref.name)
            except KubeGraphError as e:
                logger.debug(f"Cannot read {ref}: {e}")
                return None, str(e)

        uid = (content.get("metadata") or {}).get("uid")
        if ref.uid and uid and uid != ref.uid:
            return None, f"{ref.kind} \"{ref.name}\" was replaced (uid {ref.uid} is now {uid})"
        return content, None

    async def _gather(self, calls: Sequence[Coroutine[Any, Any, T]]) -> list[T]:
        """
        Await ``calls`` concurrently unless the build is cancelled first.

        The first failing call aborts the rest and its error propagates.

        Raises:
            BuildCancelledError: the cancel event was set; outstanding calls
                are cancelled before raising
        """
        if self.cancel_event.is_set():
            for call in calls:
                call.close()
            raise BuildCancelledError("build cancelled")
        if not calls:
            return []

        tasks = [asyncio.ensure_future(call) for call in calls]
        waiter = asyncio.ensure_future(self.cancel_event.wait())
        try:
            pending: set[asyncio.Future[Any]] = set(tasks)
            while pending:
                done, pending = await asyncio.wait(
                    pending | {waiter}, return_when=asyncio.FIRST_COMPLETED
                )
                if waiter in done:
                    logger.info("Build cancelled, outstanding API calls aborted")
                    raise BuildCancelledError("build cancelled")
                pending.discard(waiter)
                for task in done:
                    error = task.exception()
                    if error is not None:
                        raise error
        finally:
            waiter.cancel()
            for task in tasks:
                task.cancel()
            await asyncio.gather(waiter, *tasks, return_exceptions=True)

        return [task.result() for task in tasks]

    def _insert(self, ref: ResourceRef, content: dict[str, Any] | None, error: str | None) -> None:
        node_id = ref.node_id
        self._refs[node_id] = ref
        self._contents[node_id] = content
        self._errors[node_id] = error
        self._relations[node_id] = []
        self._relation_keys[node_id] = set()

        if content is None:
            logger.debug(f"Added stub node: {ref} ({error})")
        else:
            logger.debug(f"Added node: {ref}")

    def _add_relation(
        self, source: ResourceRef, target: ResourceRef, candidate: RelationCandidate
    ) -> None:
        key = (target.node_id, candidate.kind)
        if key in self._relation_keys[source.node_id]:
            return

        self._relation_keys[source.node_id].add(key)
        self._relations[source.node_id].append(
            Relation(
                source=source,
                target=target,
                kind=candidate.kind,
                order=self._next_order,
                details=candidate.details,
            )
        )
        self._next_order += 1
        logger.debug(f"Added relation: {source.node_id} --[{candidate.kind.value}]--> {target.node_id}")

    def _finalize(self, root: ResourceRef) -> Graph:
        nodes: dict[str, Node] = {}
        dropped = 0
        for node_id, ref in self._refs.items():
            relations = [rel for rel in self._relations[node_id] if rel.target.node_id in self._refs]
            dropped += len(self._relations[node_id]) - len(relations)
            nodes[node_id] = Node(
                ref=ref,
                content=self._contents[node_id],
                error=self._errors[node_id],
                relations=tuple(relations),
            )

        if dropped:
            logger.debug(f"Dropped {dropped} relations to objects beyond the node cap")

        return Graph(root=root, nodes=nodes, truncated=self._truncated, node_cap=self.node_cap)
