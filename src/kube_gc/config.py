"""
Constants and configuration defaults for kube-gc.

Defines the kind treated as the cluster-scoped container, the delete
options sent with every cleanup request, and how the kubeconfig path is
resolved when --kubeconfig is not given.
"""

from __future__ import annotations

import os
from typing import Optional

# Cluster-scoped container kind; candidates of this kind are deleted last.
NAMESPACE_KIND = "Namespace"

# Delete options (sent as query parameters on the DELETE request).
PROPAGATION_POLICY = "Foreground"
DRY_RUN_ALL = "All"

# Prepended to every report line when running with --dry-run.
DRY_RUN_PREFIX = "(dry-run) "

RESULT_OK = "OK"

KUBECONFIG_ENV = "KUBECONFIG"
DEFAULT_KUBECONFIG = os.path.join("~", ".kube", "config")

KUBECTL_BINARY = "kubectl"

LOG_FORMAT = "%(asctime)s %(message)s"
LOG_DATE_FORMAT = "%Y/%m/%d %H:%M:%S"


def resolve_kubeconfig(kubeconfig: Optional[str]) -> Optional[str]:
    """
    Resolve the kubeconfig path.

    Order: explicit value, then $KUBECONFIG, then ~/.kube/config if that
    file exists. Returns None when nothing applies, leaving kubectl to its
    own defaults (e.g. in-cluster service account).
    """
    if kubeconfig:
        return kubeconfig
    from_env = os.environ.get(KUBECONFIG_ENV)
    if from_env:
        return from_env
    default_path = os.path.expanduser(DEFAULT_KUBECONFIG)
    if os.path.isfile(default_path):
        return default_path
    return None
