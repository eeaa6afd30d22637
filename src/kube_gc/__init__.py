"""
kube_gc: Find and delete orphaned Kubernetes resources.

Scans every resource type the API server exposes for objects that match a
label selector, have no owner references and carry a required set of
annotation keys, then deletes them (namespaces last), by default as a
server-side dry run.
"""

__version__ = "0.1.0"
