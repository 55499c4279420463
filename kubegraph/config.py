"""Build options loaded from environment variables."""

import os

from kubegraph.models import BuildOptions

ENV_PREFIX = "KUBEGRAPH_"


def _env(key: str) -> str | None:
    value = os.environ.get(f"{ENV_PREFIX}{key}")
    return value if value else None


def load_options(**overrides: object) -> BuildOptions:
    """
    Load ``BuildOptions`` from ``KUBEGRAPH_*`` environment variables.

    Recognised variables: ``KUBEGRAPH_NODE_CAP``, ``KUBEGRAPH_CONCURRENCY`` and
    ``KUBEGRAPH_REQUEST_TIMEOUT``. Keyword overrides that are not None win over
    the environment. Values are validated by the model, so a bad value raises
    ``pydantic.ValidationError``.
    """
    values: dict[str, object] = {}
    for field, key in (
        ("node_cap", "NODE_CAP"),
        ("concurrency", "CONCURRENCY"),
        ("request_timeout", "REQUEST_TIMEOUT"),
    ):
        env_value = _env(key)
        if env_value is not None:
            values[field] = env_value

    values.update({k: v for k, v in overrides.items() if v is not None})
    return BuildOptions(**values)
