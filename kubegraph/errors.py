"""Exception hierarchy for kubegraph.

Only failures on the root object, cancellation and output errors are fatal.
Everything else raised below the root is absorbed into stub nodes.
"""


class KubeGraphError(Exception):
    """Base class for all kubegraph errors."""


class KindNotFoundError(KubeGraphError):
    def __init__(self, name: str):
        super().__init__(f"the server doesn't have a resource type \"{name}\"")
        self.name = name


class AmbiguousKindError(KubeGraphError):
    def __init__(self, name: str, candidates: list[str]):
        super().__init__(
            f"resource type \"{name}\" is ambiguous, matches: {', '.join(candidates)}"
        )
        self.name = name
        self.candidates = candidates


class NotFoundError(KubeGraphError):
    def __init__(self, kind: str, namespace: str, name: str):
        location = f" in namespace \"{namespace}\"" if namespace else ""
        super().__init__(f"{kind} \"{name}\" not found{location}")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class RootNotFoundError(NotFoundError):
    """The object the graph starts from does not exist."""


class AccessError(KubeGraphError):
    """Permission, transport or server failure while reading an object."""


class AccessTimeoutError(AccessError):
    """A single API call exceeded its deadline."""


class BuildCancelledError(KubeGraphError):
    """The build was cancelled before it completed."""


class RenderError(KubeGraphError):
    """Writing rendered output failed."""
