#!/usr/bin/env python3
"""
Registry Cache Monitoring - Entry Point

Keeps the registry-cache alerting rules, dashboard and scrape config in a
control-plane namespace up to date, migrating from the legacy aggregated
monitoring ConfigMap to the per-object layout.

Usage:
    python run.py --namespace NAMESPACE [--once] [--dry-run] [--in-cluster]
    python run.py --check-target LABEL=VALUE [LABEL=VALUE ...]
"""

import argparse
import logging
import sys

from kubernetes import config

from registry_cache_monitoring.config import RECONCILE_INTERVAL_SECONDS, REQUEST_TIMEOUT_SECONDS
from registry_cache_monitoring.controller import MonitoringController
from registry_cache_monitoring.object_client import ObjectClient
from registry_cache_monitoring.reconciler import MonitoringReconciler
from registry_cache_monitoring.relabel import parse_label_args, relabel
from registry_cache_monitoring.resources import relabelings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Registry Cache Monitoring - Reconcile registry-cache monitoring resources"
    )
    parser.add_argument(
        "--namespace", "-n",
        help="Control-plane namespace holding the monitoring resources"
    )
    parser.add_argument(
        "--once",
        action="store_true",
        help="Run a single reconcile pass and exit"
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=RECONCILE_INTERVAL_SECONDS,
        help=f"Seconds between reconcile passes (default: {RECONCILE_INTERVAL_SECONDS})"
    )
    parser.add_argument(
        "--request-timeout",
        type=float,
        default=REQUEST_TIMEOUT_SECONDS,
        help=f"Timeout for each API request in seconds (default: {REQUEST_TIMEOUT_SECONDS})"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run in dry-run mode (no changes made)"
    )
    parser.add_argument(
        "--in-cluster",
        action="store_true",
        help="Use in-cluster config (for running inside Kubernetes)"
    )
    parser.add_argument(
        "--check-target",
        nargs="+",
        metavar="LABEL=VALUE",
        help="Show how a discovered target with these labels is relabeled, then exit"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose/debug logging"
    )
    return parser


def check_target(pairs) -> int:
    """Relabel a target given on the command line and report the outcome."""
    try:
        labels = parse_label_args(pairs)
    except ValueError as e:
        logger.error(str(e))
        return 2

    result = relabel(labels, relabelings())
    if result is None:
        logger.info("Target would be dropped")
        return 1

    logger.info("Target would be scraped")
    for name in sorted(result):
        logger.info(f"  {name}={result[name]}")
    return 0


def main():
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args()

    # Set log level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if args.check_target:
        sys.exit(check_target(args.check_target))

    if not args.namespace:
        parser.error("--namespace is required")

    # Load Kubernetes configuration
    try:
        if args.in_cluster:
            config.load_incluster_config()
            logger.info("Loaded in-cluster configuration")
        else:
            config.load_kube_config()
            logger.info("Loaded kubeconfig from default location")
    except Exception as e:
        logger.error(f"Failed to load Kubernetes config: {e}")
        sys.exit(1)

    objects = ObjectClient(request_timeout=args.request_timeout)
    reconciler = MonitoringReconciler.from_client(objects, dry_run=args.dry_run)
    controller = MonitoringController(
        namespace=args.namespace,
        reconciler=reconciler,
        interval=args.interval
    )

    if args.once:
        result = controller.reconcile_once()
        sys.exit(0 if result is not None else 1)

    try:
        controller.run()
    except KeyboardInterrupt:
        controller.stop()
        logger.info("Controller stopped")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Controller error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
