"""
CLI entry point for kube-gc.

Parses options, builds the kubectl-backed client and runs KubeGC.clean(),
or KubeGC.plan() with -l/--list. Dry run is the default; pass
--dry-run=false to actually delete.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import click

from .cleanup import KubeGC
from .config import LOG_DATE_FORMAT, LOG_FORMAT, resolve_kubeconfig
from .errors import KubeGCError
from .kubectl import Kubectl

# Shown at the bottom of kube-gc --help / kube-gc -h
EPILOG = """
Examples:

  kube-gc -h                                              # Show help
  kube-gc --label-selector app=legacy --filter owner      # Dry run (default)
  kube-gc --label-selector app=legacy --filter owner -l   # Only list what would be deleted
  kube-gc --label-selector app=legacy --filter owner --dry-run=false   # Delete for real
  kube-gc --kubeconfig ~/.kube/staging --label-selector team=qa --filter 'created-by,ttl'

Only resources without owner references are considered. --filter names
annotation keys that must all be present; values in the expression are ignored.
"""


class ClickEchoHandler(logging.Handler):
    """Logging handler writing through click.echo to the current stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            click.echo(self.format(record), err=True)
        except Exception:
            self.handleError(record)


def setup_logging(verbose: bool) -> None:
    """Send kube_gc log records to stderr, timestamped; DEBUG when verbose."""
    pkg_logger = logging.getLogger("kube_gc")
    for handler in list(pkg_logger.handlers):
        if isinstance(handler, ClickEchoHandler):
            pkg_logger.removeHandler(handler)
    handler = ClickEchoHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


@click.command(
    context_settings={"help_option_names": ["-h", "--help"]},
    epilog=EPILOG,
)
@click.option(
    "--kubeconfig",
    "kubeconfig",
    metavar="PATH",
    default="",
    help="kubeconfig file (default: $KUBECONFIG, then ~/.kube/config)",
)
@click.option(
    "--label-selector",
    "label_selector",
    metavar="EXPR",
    required=True,
    help="Label selector of resources to check (required)",
)
@click.option(
    "--filter",
    "filter_expr",
    metavar="EXPR",
    required=True,
    help="Annotation keys resources must carry to be deleted (required)",
)
@click.option(
    "--dry-run",
    "dry_run",
    type=click.BOOL,
    default=True,
    is_flag=False,
    flag_value=True,
    show_default=True,
    help="Do not perform clean up; the server only validates the deletes (--dry-run=false to delete)",
)
@click.option(
    "-l",
    "--list",
    "list_only",
    is_flag=True,
    help="Only list orphaned resources in deletion order; do not send deletes",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Log kubectl calls and resource types skipped during the scan",
)
def main(
    kubeconfig: Optional[str],
    label_selector: str,
    filter_expr: str,
    dry_run: bool,
    list_only: bool,
    verbose: bool,
) -> int:
    """
    Find and delete orphaned Kubernetes resources.

    A resource is orphaned when it matches --label-selector, has no owner
    references and carries every annotation key named by --filter. All
    resource types known to the server are scanned; namespaces are deleted
    last.
    """
    if not label_selector or not filter_expr:
        raise click.UsageError("--label-selector and --filter must not be empty")

    setup_logging(verbose)

    try:
        client = Kubectl(resolve_kubeconfig(kubeconfig))
        gc = KubeGC(client, label_selector, filter_expr)
        if list_only:
            plan = gc.plan()
            for candidate in plan:
                ns_suffix = f" (ns: {candidate.namespace})" if candidate.namespace else ""
                click.echo(f"{candidate.resource_type.plural}/{candidate.name}{ns_suffix}")
            if not plan:
                click.echo("(none found)")
        else:
            gc.clean(dry_run)
    except KubeGCError as e:
        raise click.ClickException(str(e))

    return 0


if __name__ == "__main__":
    sys.exit(main())
