"""
Orphan detection and cleanup.

The pipeline runs strictly forward: discover_types() builds the catalog of
resource types the server exposes, scan() collects orphan candidates from
every type, order() puts them into a safe deletion order, and execute()
deletes them one by one. KubeGC ties the stages together.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Protocol, Sequence

from .config import NAMESPACE_KIND
from .errors import DiscoveryError, KubectlError
from .models import DeleteResult, OrphanCandidate, ResourceType
from .selector import Selector, build_filter, parse_selector

logger = logging.getLogger(__name__)


class Client(Protocol):
    """What the pipeline needs from a cluster client (see kubectl.Kubectl)."""

    def get_raw(self, path: str) -> dict: ...

    def list_resources(self, resource_type: ResourceType, label_selector: str) -> list[dict]: ...

    def delete_resource(
        self, resource_type: ResourceType, namespace: str, name: str, dry_run: bool
    ) -> None: ...


def discover_groups(client: Client) -> list[tuple[str, str]]:
    """
    Return (group, preferred version) for every API group on the server.

    The legacy core group is reported under /api with group "".

    Raises:
        DiscoveryError: the group list could not be fetched.
    """
    try:
        core = client.get_raw("/api")
        named = client.get_raw("/apis")
    except KubectlError as e:
        raise DiscoveryError(f"unable to retrieve the list of API groups: {e}") from e

    groups: list[tuple[str, str]] = []
    core_versions = core.get("versions") or []
    if core_versions:
        groups.append(("", core_versions[0]))
    for group in named.get("groups") or []:
        name = group.get("name", "")
        preferred = (group.get("preferredVersion") or {}).get("version")
        if not preferred:
            versions = group.get("versions") or []
            if not versions:
                continue
            preferred = versions[0].get("version")
        if name and preferred:
            groups.append((name, preferred))
    return groups


def discover_types(client: Client) -> list[ResourceType]:
    """
    List every resource type under each group's preferred version.

    A group/version whose resource list cannot be fetched is logged and
    skipped; only failure to list the groups themselves is fatal.
    """
    types: list[ResourceType] = []
    for group, version in discover_groups(client):
        path = f"/apis/{group}/{version}" if group else f"/api/{version}"
        try:
            resource_list = client.get_raw(path)
        except KubectlError as e:
            logger.warning("unable to retrieve resources for %s: %s", path, e)
            continue
        for res in resource_list.get("resources") or []:
            types.append(
                ResourceType(
                    group=group,
                    version=version,
                    kind=res.get("kind", ""),
                    plural=res.get("name", ""),
                    namespaced=bool(res.get("namespaced", False)),
                )
            )
    return types


def is_orphan(item: dict, annotation_filter: Selector) -> bool:
    """True if item has no owner references and its annotations satisfy the filter."""
    meta = item.get("metadata") or {}
    if meta.get("ownerReferences"):
        return False
    return annotation_filter.matches(meta.get("annotations"))


def scan(
    client: Client,
    types: Iterable[ResourceType],
    label_selector: str,
    annotation_filter: Selector,
) -> list[OrphanCandidate]:
    """
    Collect orphan candidates from every resource type.

    Types that cannot be listed (subresources, types without the list verb,
    transient errors) are skipped without aborting the scan.
    """
    candidates: list[OrphanCandidate] = []
    for resource_type in types:
        try:
            items = client.list_resources(resource_type, label_selector)
        except KubectlError as e:
            logger.debug("skipping %s: %s", resource_type.plural, e)
            continue
        for item in items:
            if not is_orphan(item, annotation_filter):
                continue
            meta = item.get("metadata") or {}
            candidates.append(
                OrphanCandidate(
                    resource_type=resource_type,
                    namespace=meta.get("namespace") or "",
                    name=meta.get("name", ""),
                )
            )
    return candidates


def order(candidates: Iterable[OrphanCandidate]) -> tuple[OrphanCandidate, ...]:
    """
    Stable partition into deletion order.

    Cluster-scoped resources first, then namespaced resources, then
    namespaces. Relative order inside each bucket is kept.
    """
    cluster_scoped: list[OrphanCandidate] = []
    namespaced: list[OrphanCandidate] = []
    namespaces: list[OrphanCandidate] = []
    for c in candidates:
        if c.kind == NAMESPACE_KIND:
            namespaces.append(c)
        elif c.cluster_scoped:
            cluster_scoped.append(c)
        else:
            namespaced.append(c)
    return tuple(cluster_scoped + namespaced + namespaces)


def delete_one(client: Client, candidate: OrphanCandidate, dry_run: bool) -> DeleteResult:
    """Delete a single candidate, returning the outcome instead of raising."""
    try:
        client.delete_resource(candidate.resource_type, candidate.namespace, candidate.name, dry_run)
    except KubectlError as e:
        return DeleteResult(candidate, dry_run, error=e.message)
    return DeleteResult(candidate, dry_run)


def execute(
    client: Client,
    plan: Sequence[OrphanCandidate],
    dry_run: bool,
) -> list[DeleteResult]:
    """
    Delete every candidate in plan order and log one line per result.

    A failed delete is recorded and the run moves on to the next candidate.
    """
    results: list[DeleteResult] = []
    for candidate in plan:
        result = delete_one(client, candidate, dry_run)
        logger.info("%s", result.line)
        results.append(result)
    return results


class KubeGC:
    """
    Orphan garbage collector for one cluster.

    Args:
        client: Cluster client (kubectl.Kubectl or anything with the same methods).
        label_selector: Server-side selector applied when listing.
        filter_expr: Selector expression whose keys must all be present as annotations.

    Raises:
        SelectorError: either expression cannot be parsed.
    """

    def __init__(self, client: Client, label_selector: str, filter_expr: str):
        parse_selector(label_selector)
        self.client = client
        self.label_selector = label_selector
        self.annotation_filter = build_filter(filter_expr)
        logger.debug("label selector %r, required annotations %s", label_selector, self.annotation_filter)

    def plan(self, types: Optional[Sequence[ResourceType]] = None) -> tuple[OrphanCandidate, ...]:
        """Discover (unless types is given), scan and order; nothing is deleted."""
        if types is None:
            types = discover_types(self.client)
        logger.debug("discovered %d resource types", len(types))
        candidates = scan(self.client, types, self.label_selector, self.annotation_filter)
        return order(candidates)

    def clean(self, dry_run: bool = True) -> list[DeleteResult]:
        """Run the full pipeline and return one result per deleted candidate."""
        return execute(self.client, self.plan(), dry_run)
