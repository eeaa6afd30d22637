"""
Exception types raised by kube-gc.

SelectorError, ClientError and DiscoveryError are fatal and end the run.
KubectlError marks one failed kubectl call: the pipeline catches it per
group/version, per resource type and per deleted object, and carries on.
"""


class KubeGCError(Exception):
    """Base class for kube-gc errors."""


class SelectorError(KubeGCError):
    """A label selector or filter expression could not be parsed."""


class ClientError(KubeGCError):
    """The cluster client could not be built (e.g. kubectl not installed)."""


class KubectlError(KubeGCError):
    """A single kubectl call failed.

    Attributes:
        kubectl_args: Arguments passed to kubectl (without the binary).
        message: Error text reported by kubectl, usually its stderr.
    """

    def __init__(self, args: list, message: str):
        super().__init__(message)
        self.kubectl_args = list(args)
        self.message = message


class DiscoveryError(KubeGCError):
    """The list of API groups could not be fetched from the server."""
