import logging
from typing import Any

from kubegraph.models import RelationCandidate, RelationKind
from kubegraph.paths import lookup_dicts, lookup_str
from kubegraph.rules.base import BaseRelationRule

logger = logging.getLogger(__name__)


class VolumeReferenceRule(BaseRelationRule):
    """
    Emit edges for config and storage an object's pods consume.

    - volumes (``configMap``, ``secret``, ``persistentVolumeClaim`` and
      projected sources) become ``Mounts``
    - ``envFrom``, ``env[].valueFrom`` key refs and ``imagePullSecrets``
      become ``References``
    - a PersistentVolumeClaim ``Mounts`` the PersistentVolume it is bound to
    """

    async def inspect(self, resource: dict[str, Any], accessor: Any) -> list[RelationCandidate]:
        namespace = self._namespace(resource)
        candidates: list[RelationCandidate] = []

        if resource.get("kind") == "PersistentVolumeClaim":
            volume_name = lookup_str(resource, "spec", "volumeName")
            if volume_name:
                candidates.append(
                    self._candidate(
                        "PersistentVolume",
                        volume_name,
                        "",
                        RelationKind.MOUNTS,
                        details="bound to PersistentVolume",
                    )
                )
            return candidates

        pod_spec = self._pod_spec(resource)
        if not pod_spec:
            return candidates

        candidates.extend(self._volumes(pod_spec, namespace))
        candidates.extend(self._env(pod_spec, namespace))

        for pull_secret in lookup_dicts(pod_spec, "imagePullSecrets"):
            secret_name = lookup_str(pull_secret, "name")
            if secret_name:
                candidates.append(
                    self._candidate(
                        "Secret",
                        secret_name,
                        namespace,
                        RelationKind.REFERENCES,
                        details="image pull secret",
                    )
                )

        return candidates

    def _volumes(self, pod_spec: dict[str, Any], namespace: str) -> list[RelationCandidate]:
        candidates: list[RelationCandidate] = []

        for volume in lookup_dicts(pod_spec, "volumes"):
            volume_name = lookup_str(volume, "name") or ""
            details = f"volume '{volume_name}'"

            cm_name = lookup_str(volume, "configMap", "name")
            if cm_name:
                candidates.append(
                    self._candidate("ConfigMap", cm_name, namespace, RelationKind.MOUNTS, details=details)
                )

            secret_name = lookup_str(volume, "secret", "secretName")
            if secret_name:
                candidates.append(
                    self._candidate("Secret", secret_name, namespace, RelationKind.MOUNTS, details=details)
                )

            claim_name = lookup_str(volume, "persistentVolumeClaim", "claimName")
            if claim_name:
                candidates.append(
                    self._candidate(
                        "PersistentVolumeClaim",
                        claim_name,
                        namespace,
                        RelationKind.MOUNTS,
                        details=details,
                    )
                )

            for source in lookup_dicts(volume, "projected", "sources"):
                projected_cm = lookup_str(source, "configMap", "name")
                if projected_cm:
                    candidates.append(
                        self._candidate(
                            "ConfigMap", projected_cm, namespace, RelationKind.MOUNTS, details=details
                        )
                    )
                projected_secret = lookup_str(source, "secret", "name")
                if projected_secret:
                    candidates.append(
                        self._candidate(
                            "Secret", projected_secret, namespace, RelationKind.MOUNTS, details=details
                        )
                    )

        return candidates

    def _env(self, pod_spec: dict[str, Any], namespace: str) -> list[RelationCandidate]:
        candidates: list[RelationCandidate] = []
        containers = lookup_dicts(pod_spec, "initContainers") + lookup_dicts(pod_spec, "containers")

        for container in containers:
            container_name = lookup_str(container, "name") or ""

            for env_from in lookup_dicts(container, "envFrom"):
                cm_name = lookup_str(env_from, "configMapRef", "name")
                if cm_name:
                    candidates.append(
                        self._candidate(
                            "ConfigMap",
                            cm_name,
                            namespace,
                            RelationKind.REFERENCES,
                            details=f"container '{container_name}' env",
                        )
                    )
                secret_name = lookup_str(env_from, "secretRef", "name")
                if secret_name:
                    candidates.append(
                        self._candidate(
                            "Secret",
                            secret_name,
                            namespace,
                            RelationKind.REFERENCES,
                            details=f"container '{container_name}' env",
                        )
                    )

            for env_var in lookup_dicts(container, "env"):
                cm_name = lookup_str(env_var, "valueFrom", "configMapKeyRef", "name")
                if cm_name:
                    candidates.append(
                        self._candidate(
                            "ConfigMap",
                            cm_name,
                            namespace,
                            RelationKind.REFERENCES,
                            details=f"container '{container_name}' env var",
                        )
                    )
                secret_name = lookup_str(env_var, "valueFrom", "secretKeyRef", "name")
                if secret_name:
                    candidates.append(
                        self._candidate(
                            "Secret",
                            secret_name,
                            namespace,
                            RelationKind.REFERENCES,
                            details=f"container '{container_name}' env var",
                        )
                    )

        return candidates
