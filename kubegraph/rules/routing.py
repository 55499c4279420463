import logging
from typing import Any

from kubegraph.models import RelationCandidate, RelationKind
from kubegraph.paths import lookup_dicts, lookup_str
from kubegraph.rules.base import BaseRelationRule

logger = logging.getLogger(__name__)


class RoutingRule(BaseRelationRule):
    """
    Emit ``Routes`` edges from route-shaped objects to backend Services.

    Supported shapes:
    - Ingress ``networking.k8s.io/v1`` (``defaultBackend``, ``rules[].http.paths[]``)
    - Ingress ``v1beta1`` (``backend.serviceName``)
    - OpenShift Route (``spec.to``, ``spec.alternateBackends``)
    - Gateway API routes (``spec.rules[].backendRefs[]``)

    Pods behind each Service are found on the next traversal step by the
    Service's own selector. Ingress TLS secrets are ``References``.
    """

    async def inspect(self, resource: dict[str, Any], accessor: Any) -> list[RelationCandidate]:
        namespace = self._namespace(resource)
        backends: list[tuple[str, str]] = []

        if resource.get("kind") == "Ingress":
            backends.extend(self._ingress_backends(resource))
        elif resource.get("kind") == "Route" and lookup_str(resource, "spec", "to", "name"):
            backends.extend(self._openshift_backends(resource))
        else:
            backends.extend(self._gateway_backends(resource))

        candidates: list[RelationCandidate] = []
        for service_name, details in backends:
            candidates.append(
                self._candidate(
                    "Service",
                    service_name,
                    namespace,
                    RelationKind.ROUTES,
                    details=details,
                )
            )

        if resource.get("kind") == "Ingress":
            for tls in lookup_dicts(resource, "spec", "tls"):
                secret_name = lookup_str(tls, "secretName")
                if secret_name:
                    candidates.append(
                        self._candidate(
                            "Secret",
                            secret_name,
                            namespace,
                            RelationKind.REFERENCES,
                            details="TLS certificate",
                        )
                    )

        return candidates

    def _ingress_backends(self, resource: dict[str, Any]) -> list[tuple[str, str]]:
        backends: list[tuple[str, str]] = []

        default_name = lookup_str(resource, "spec", "defaultBackend", "service", "name") or lookup_str(
            resource, "spec", "backend", "serviceName"
        )
        if default_name:
            backends.append((default_name, "default backend"))

        for rule in lookup_dicts(resource, "spec", "rules"):
            host = lookup_str(rule, "host") or "*"
            for path in lookup_dicts(rule, "http", "paths"):
                service_name = lookup_str(path, "backend", "service", "name") or lookup_str(
                    path, "backend", "serviceName"
                )
                if service_name:
                    path_value = lookup_str(path, "path") or "/"
                    backends.append((service_name, f"{host}{path_value}"))

        return backends

    def _openshift_backends(self, resource: dict[str, Any]) -> list[tuple[str, str]]:
        backends: list[tuple[str, str]] = []
        targets = [resource["spec"]["to"], *lookup_dicts(resource, "spec", "alternateBackends")]

        for target in targets:
            if (lookup_str(target, "kind") or "Service") != "Service":
                continue
            service_name = lookup_str(target, "name")
            if service_name:
                backends.append((service_name, f"weight {target.get('weight', 100)}"))

        return backends

    def _gateway_backends(self, resource: dict[str, Any]) -> list[tuple[str, str]]:
        backends: list[tuple[str, str]] = []

        for rule in lookup_dicts(resource, "spec", "rules"):
            for backend_ref in lookup_dicts(rule, "backendRefs"):
                if (lookup_str(backend_ref, "kind") or "Service") != "Service":
                    continue
                if lookup_str(backend_ref, "group"):
                    continue
                service_name = lookup_str(backend_ref, "name")
                if service_name:
                    backends.append((service_name, "backend ref"))

        return backends
