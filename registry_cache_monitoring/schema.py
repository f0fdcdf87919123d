"""Detection of the monitoring schema a cluster expects."""

import abc
import enum
import logging

from .config import SENTINEL_STATEFULSET_NAME
from .errors import ResourceRetrievalError
from .object_client import API_ERRORS, KIND_STATEFULSET, ObjectClient, error_reason

logger = logging.getLogger(__name__)


class SchemaVersion(enum.Enum):
    """Monitoring resource layout used in a namespace."""
    LEGACY = "legacy"
    MODERN = "modern"


class SchemaDetector(abc.ABC):
    """Decides which SchemaVersion a reconcile pass must use."""

    @abc.abstractmethod
    def detect(self, namespace: str) -> SchemaVersion:
        """Return the schema for the namespace, raising MonitoringReconcileError on failure."""


class FixedSchemaDetector(SchemaDetector):
    """Always reports the same schema, for clusters whose layout is known."""

    def __init__(self, version: SchemaVersion):
        self.version = version

    def detect(self, namespace: str) -> SchemaVersion:
        return self.version


class SentinelSchemaDetector(SchemaDetector):
    """
    Probes for the sentinel StatefulSet: present means the namespace still
    runs the legacy monitoring stack, absent means the modern one.

    This is a migration shim. Once every cluster has moved to the modern
    schema, replace it with FixedSchemaDetector(SchemaVersion.MODERN) and
    drop the legacy path.
    """

    def __init__(self, objects: ObjectClient, sentinel_name: str = SENTINEL_STATEFULSET_NAME):
        self.objects = objects
        self.sentinel_name = sentinel_name

    def detect(self, namespace: str) -> SchemaVersion:
        """
        Look up the sentinel in the namespace.

        Raises:
            ResourceRetrievalError: The lookup failed for a reason other than not-found
        """
        try:
            sentinel = self.objects.get(KIND_STATEFULSET, self.sentinel_name, namespace)
        except API_ERRORS as e:
            raise ResourceRetrievalError(
                KIND_STATEFULSET, self.sentinel_name, namespace, error_reason(e)
            ) from e

        version = SchemaVersion.MODERN if sentinel is None else SchemaVersion.LEGACY
        logger.debug(
            f"Sentinel {KIND_STATEFULSET} {namespace}/{self.sentinel_name} "
            f"{'absent' if sentinel is None else 'present'}, using {version.value} schema"
        )
        return version
