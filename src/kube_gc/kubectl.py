"""
Kubectl invocation and raw Kubernetes API helpers.

All cluster access goes through subprocess kubectl calls. Discovery, list
and delete are issued against raw API paths (kubectl get/delete --raw) so
that any resource type the server advertises can be addressed without
knowing it in advance.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
from typing import Optional
from urllib.parse import urlencode

from .config import DRY_RUN_ALL, KUBECTL_BINARY, PROPAGATION_POLICY
from .errors import ClientError, KubectlError
from .models import ResourceType

logger = logging.getLogger(__name__)


def run_kubectl(args: list[str], kubeconfig: Optional[str] = None) -> subprocess.CompletedProcess:
    """
    Run kubectl with the given args.

    Args:
        args: List of arguments (e.g. ["get", "--raw", "/apis"]).
        kubeconfig: Optional kubeconfig path, passed as --kubeconfig.

    Returns:
        CompletedProcess with returncode, stdout, stderr. Blocks until kubectl
        exits; request timeouts are left to kubectl and the kubeconfig.
    """
    cmd = [KUBECTL_BINARY]
    if kubeconfig:
        cmd.append(f"--kubeconfig={kubeconfig}")
    cmd += args
    return subprocess.run(
        cmd,
        capture_output=True,
        text=True,
    )


def collection_path(resource_type: ResourceType, label_selector: str = "") -> str:
    """Path listing a type across all namespaces, filtered by label selector."""
    path = f"{resource_type.api_path}/{resource_type.plural}"
    if label_selector:
        path += "?" + urlencode({"labelSelector": label_selector})
    return path


def object_path(resource_type: ResourceType, namespace: str, name: str) -> str:
    """Path of a single object; namespace "" addresses a cluster-scoped object."""
    if namespace:
        return f"{resource_type.api_path}/namespaces/{namespace}/{resource_type.plural}/{name}"
    return f"{resource_type.api_path}/{resource_type.plural}/{name}"


def delete_query(dry_run: bool) -> str:
    """DeleteOptions as query parameters: foreground propagation, optional dry run."""
    params = {"propagationPolicy": PROPAGATION_POLICY}
    if dry_run:
        params["dryRun"] = DRY_RUN_ALL
    return urlencode(params)


class Kubectl:
    """
    Cluster client backed by the kubectl binary.

    Raises ClientError on construction when kubectl cannot be found, which
    is the only way building the client can fail; authentication and
    connectivity problems surface on the first call.
    """

    def __init__(self, kubeconfig: Optional[str] = None):
        if shutil.which(KUBECTL_BINARY) is None:
            raise ClientError(f"{KUBECTL_BINARY} not found in PATH")
        self.kubeconfig = kubeconfig

    def _run(self, args: list[str]) -> str:
        logger.debug("kubectl %s", " ".join(args))
        result = run_kubectl(args, kubeconfig=self.kubeconfig)
        if result.returncode != 0:
            message = (result.stderr or "").strip() or f"kubectl exited with status {result.returncode}"
            raise KubectlError(args, message)
        return result.stdout or ""

    def get_raw(self, path: str) -> dict:
        """GET a raw API path and return the decoded JSON body."""
        args = ["get", "--raw", path]
        out = self._run(args)
        try:
            return json.loads(out)
        except json.JSONDecodeError as e:
            raise KubectlError(args, f"invalid JSON from {path}: {e}")

    def list_resources(self, resource_type: ResourceType, label_selector: str) -> list[dict]:
        """List instances of a type in all namespaces matching label_selector."""
        obj = self.get_raw(collection_path(resource_type, label_selector))
        return obj.get("items") or []

    def delete_resource(
        self,
        resource_type: ResourceType,
        namespace: str,
        name: str,
        dry_run: bool,
    ) -> None:
        """Delete one object with foreground propagation; dry_run asks the server not to persist."""
        path = object_path(resource_type, namespace, name) + "?" + delete_query(dry_run)
        self._run(["delete", "--raw", path])
