"""Exceptions raised while reconciling monitoring resources."""

from typing import Optional


class MonitoringReconcileError(Exception):
    """Base error for a failed reconcile step, tagged with the object it concerns."""

    action = "reconciling"

    def __init__(self, kind: str, name: str, namespace: str, reason: Optional[str] = None):
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.reason = reason
        message = f"failed {self.action} {kind} {namespace}/{name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ResourceRetrievalError(MonitoringReconcileError):
    """Reading an object failed for a reason other than not-found. Retryable."""

    action = "reading"


class ResourceWriteError(MonitoringReconcileError):
    """Creating or patching an object failed. Retryable."""

    action = "writing"


class LegacyCleanupError(MonitoringReconcileError):
    """Deleting the legacy aggregated ConfigMap failed. Aborts the pass."""

    action = "deleting"
