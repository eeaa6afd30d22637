"""Shared fixtures: an in-memory cluster standing in for kubectl."""

from typing import Optional

import pytest

from kube_gc.errors import KubectlError
from kube_gc.models import OrphanCandidate, ResourceType


def make_item(
    name: str,
    namespace: str = "",
    annotations: Optional[dict] = None,
    owners: Optional[list] = None,
) -> dict:
    """Build a minimal object as returned in a list response."""
    meta = {"name": name}
    if namespace:
        meta["namespace"] = namespace
    if annotations is not None:
        meta["annotations"] = annotations
    if owners:
        meta["ownerReferences"] = [{"kind": "Deployment", "name": o, "uid": f"uid-{o}"} for o in owners]
    return {"metadata": meta}


def make_candidate(kind: str, plural: str, name: str, namespace: str = "") -> OrphanCandidate:
    return OrphanCandidate(ResourceType("", "v1", kind, plural, bool(namespace)), namespace, name)


class FakeCluster:
    """
    Records calls and answers them from dicts.

    raw: path -> JSON body for get_raw(); missing paths fail.
    items: plural -> list of objects for list_resources().
    fail_list: plurals whose list call fails.
    fail_delete: (plural, namespace, name) -> error text.
    """

    def __init__(self, raw=None, items=None, fail_list=(), fail_delete=None):
        self.raw = raw or {}
        self.items = items or {}
        self.fail_list = set(fail_list)
        self.fail_delete = fail_delete or {}
        self.list_calls = []
        self.delete_calls = []

    def get_raw(self, path: str) -> dict:
        if path not in self.raw:
            raise KubectlError(["get", "--raw", path], f'Error from server (NotFound): the server could not find the requested resource ({path})')
        return self.raw[path]

    def list_resources(self, resource_type, label_selector):
        self.list_calls.append((resource_type.plural, label_selector))
        if resource_type.plural in self.fail_list:
            raise KubectlError(["get"], f"the server does not allow this method on {resource_type.plural}")
        return list(self.items.get(resource_type.plural, []))

    def delete_resource(self, resource_type, namespace, name, dry_run):
        self.delete_calls.append((resource_type.plural, namespace, name, dry_run))
        key = (resource_type.plural, namespace, name)
        if key in self.fail_delete:
            raise KubectlError(["delete"], self.fail_delete[key])


def discovery_raw(extra=None) -> dict:
    """Discovery documents for a core group plus rbac and apps."""
    raw = {
        "/api": {"kind": "APIVersions", "versions": ["v1"]},
        "/apis": {
            "kind": "APIGroupList",
            "groups": [
                {
                    "name": "rbac.authorization.k8s.io",
                    "versions": [{"groupVersion": "rbac.authorization.k8s.io/v1", "version": "v1"}],
                    "preferredVersion": {"groupVersion": "rbac.authorization.k8s.io/v1", "version": "v1"},
                },
                {
                    "name": "apps",
                    "versions": [
                        {"groupVersion": "apps/v1", "version": "v1"},
                        {"groupVersion": "apps/v1beta1", "version": "v1beta1"},
                    ],
                    "preferredVersion": {"groupVersion": "apps/v1", "version": "v1"},
                },
            ],
        },
        "/api/v1": {
            "kind": "APIResourceList",
            "groupVersion": "v1",
            "resources": [
                {"name": "namespaces", "kind": "Namespace", "namespaced": False},
                {"name": "configmaps", "kind": "ConfigMap", "namespaced": True},
                {"name": "pods/log", "kind": "Pod", "namespaced": True},
            ],
        },
        "/apis/rbac.authorization.k8s.io/v1": {
            "kind": "APIResourceList",
            "groupVersion": "rbac.authorization.k8s.io/v1",
            "resources": [
                {"name": "cluster-roles", "kind": "ClusterRole", "namespaced": False},
            ],
        },
        "/apis/apps/v1": {
            "kind": "APIResourceList",
            "groupVersion": "apps/v1",
            "resources": [
                {"name": "deployments", "kind": "Deployment", "namespaced": True},
            ],
        },
    }
    raw.update(extra or {})
    return raw


@pytest.fixture
def cluster():
    """Cluster with the legacy-app scenario: one orphaned cluster role, one unannotated configmap."""
    return FakeCluster(
        raw=discovery_raw(),
        items={
            "cluster-roles": [make_item("foo", annotations={"owner": "x"})],
            "configmaps": [make_item("bar", namespace="ns1", annotations={"team": "y"})],
        },
        fail_list={"pods/log"},
    )
