"""Outer control loop that re-runs the monitoring reconcile pass."""

import logging
import threading
from typing import Optional

from .config import RECONCILE_INTERVAL_SECONDS
from .errors import MonitoringReconcileError
from .reconciler import MonitoringReconciler, ReconcileResult

logger = logging.getLogger(__name__)


class MonitoringController:
    """
    Periodically reconciles the monitoring config of one namespace.

    Failed passes are logged and retried on the next interval; every step
    of a pass is idempotent, so repeating it is safe.
    """

    def __init__(
        self,
        namespace: str,
        reconciler: MonitoringReconciler,
        interval: float = RECONCILE_INTERVAL_SECONDS,
    ):
        """
        Initialize the controller.

        Args:
            namespace: Namespace holding the monitoring objects
            reconciler: Reconciler used for every pass
            interval: Seconds between passes
        """
        self.namespace = namespace
        self.reconciler = reconciler
        self.interval = interval

        self._stop_event = threading.Event()
        self.last_result: Optional[ReconcileResult] = None
        self.consecutive_failures = 0

    def reconcile_once(self) -> Optional[ReconcileResult]:
        """
        Run a single pass.

        Returns:
            The pass result, or None if the pass failed
        """
        try:
            result = self.reconciler.reconcile(self.namespace)
        except MonitoringReconcileError as e:
            self.consecutive_failures += 1
            logger.error(
                f"Reconcile of {self.namespace} failed "
                f"({self.consecutive_failures} in a row): {e}"
            )
            return None

        self.consecutive_failures = 0
        self.last_result = result

        if result.changed:
            summary = ", ".join(f"{key}: {status}" for key, status in result.resources.items())
            logger.info(f"Reconciled {self.namespace} ({result.schema.value}): {summary}")
        else:
            logger.debug(f"Monitoring config in {self.namespace} already up to date")
        return result

    def run(self) -> None:
        """Run passes until stop() is called or the process is interrupted."""
        logger.info("=" * 60)
        logger.info("Starting Registry Cache Monitoring controller")
        logger.info("=" * 60)
        logger.info(f"Namespace: {self.namespace}")
        logger.info(f"Interval: {self.interval}s")

        try:
            while not self._stop_event.is_set():
                try:
                    self.reconcile_once()
                except Exception as e:
                    self.consecutive_failures += 1
                    logger.error(f"Unexpected error reconciling {self.namespace}: {e}")
                self._stop_event.wait(self.interval)
        except KeyboardInterrupt:
            logger.info("Shutdown requested...")
            self._stop_event.set()

    def stop(self) -> None:
        """Stop the controller."""
        logger.info("Stopping controller...")
        self._stop_event.set()
