"""Removal of the legacy aggregated monitoring ConfigMap."""

import logging

from .config import LEGACY_CONFIGMAP_NAME
from .errors import LegacyCleanupError
from .object_client import API_ERRORS, KIND_CONFIGMAP, ObjectClient, error_reason

logger = logging.getLogger(__name__)


class LegacyCleaner:
    """Deletes the single ConfigMap that held all monitoring config before the migration."""

    def __init__(self, objects: ObjectClient, dry_run: bool = False, name: str = LEGACY_CONFIGMAP_NAME):
        self.objects = objects
        self.dry_run = dry_run
        self.name = name

    def cleanup(self, namespace: str) -> bool:
        """
        Delete the legacy ConfigMap. An already absent ConfigMap is success.

        Returns:
            True if an object was deleted, False if there was nothing to delete

        Raises:
            LegacyCleanupError: The delete failed for a reason other than not-found
        """
        if self.dry_run:
            logger.info(f"[DRY-RUN] Would delete {KIND_CONFIGMAP} {namespace}/{self.name}")
            return False

        try:
            deleted = self.objects.delete(KIND_CONFIGMAP, self.name, namespace)
        except API_ERRORS as e:
            raise LegacyCleanupError(KIND_CONFIGMAP, self.name, namespace, error_reason(e)) from e

        if deleted:
            logger.info(f"Deleted legacy {KIND_CONFIGMAP} {namespace}/{self.name}")
        else:
            logger.debug(f"Legacy {KIND_CONFIGMAP} {namespace}/{self.name} already absent")
        return deleted
