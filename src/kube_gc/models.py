"""
Plain records passed between the pipeline stages.

Resource types are discovered at run time, so ResourceType is data rather
than an enum. All records are immutable and live for one run only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .config import DRY_RUN_PREFIX, RESULT_OK


@dataclass(frozen=True)
class ResourceType:
    """
    One listable/deletable resource type, as reported by discovery.

    Attributes:
        group: API group ("" for the legacy core group).
        version: API version within the group (e.g. "v1").
        kind: Type name, e.g. "Namespace".
        plural: Path segment used to address the type, e.g. "namespaces".
        namespaced: Whether the server reports the type as namespaced.
    """

    group: str
    version: str
    kind: str
    plural: str
    namespaced: bool = False

    @property
    def api_path(self) -> str:
        """URL prefix of the group/version: /api/v1 or /apis/<group>/<version>."""
        if not self.group:
            return f"/api/{self.version}"
        return f"/apis/{self.group}/{self.version}"


@dataclass(frozen=True)
class OrphanCandidate:
    """A resource instance selected for deletion. namespace "" means cluster-scoped."""

    resource_type: ResourceType
    namespace: str
    name: str

    @property
    def kind(self) -> str:
        return self.resource_type.kind

    @property
    def cluster_scoped(self) -> bool:
        return not self.namespace


@dataclass(frozen=True)
class DeleteResult:
    """
    Outcome of deleting one candidate.

    Attributes:
        candidate: The candidate the delete was issued for.
        dry_run: Whether the delete was sent as a dry run.
        error: Error text on failure, None on success.
    """

    candidate: OrphanCandidate
    dry_run: bool
    error: Optional[str] = None

    @property
    def result(self) -> str:
        return RESULT_OK if self.error is None else self.error

    @property
    def line(self) -> str:
        """Report line, e.g. "(dry-run) delete configmaps/bar in namespace ns1... OK"."""
        c = self.candidate
        prefix = DRY_RUN_PREFIX if self.dry_run else ""
        target = f"{c.resource_type.plural}/{c.name}"
        if c.namespace:
            target += f" in namespace {c.namespace}"
        return f"{prefix}delete {target}... {self.result}"
