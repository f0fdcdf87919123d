"""Idempotent create-or-merge-patch of a single cluster object."""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict

from .errors import ResourceRetrievalError, ResourceWriteError
from .object_client import API_ERRORS, API_VERSIONS, ObjectClient, error_reason
from .utils import create_merge_patch, serialize_patch

logger = logging.getLogger(__name__)

RESULT_CREATED = "created"
RESULT_PATCHED = "patched"
RESULT_UNCHANGED = "unchanged"
RESULT_DRY_RUN = "dry-run"

Mutator = Callable[[Dict[str, Any]], None]


@dataclass(frozen=True)
class TargetResource:
    """Identity of one managed object."""
    kind: str
    name: str
    namespace: str

    @property
    def key(self) -> str:
        return f"{self.kind} {self.namespace}/{self.name}"

    def new_object(self) -> Dict[str, Any]:
        """Skeleton dict for an object that does not exist yet."""
        return {
            "apiVersion": API_VERSIONS[self.kind],
            "kind": self.kind,
            "metadata": {"name": self.name, "namespace": self.namespace},
        }


class ResourceUpserter:
    """Fetches, mutates and writes back objects using merge patches."""

    def __init__(self, objects: ObjectClient, dry_run: bool = False):
        """
        Initialize the upserter.

        Args:
            objects: Client used for all reads and writes
            dry_run: If True, log writes instead of sending them
        """
        self.objects = objects
        self.dry_run = dry_run

    def upsert(self, target: TargetResource, mutate: Mutator) -> str:
        """
        Create or merge-patch one object so the fields owned by mutate match.

        The stored object is read fresh, copied, passed to mutate, and the
        difference is sent as a merge patch. Fields mutate does not set are
        left to whoever owns them. No write happens when nothing differs.

        Args:
            target: Identity of the object
            mutate: Sets the desired labels and payload on the object dict

        Returns:
            One of created, patched, unchanged or dry-run

        Raises:
            ResourceRetrievalError: Reading the object failed
            ResourceWriteError: Creating or patching the object failed
        """
        try:
            current = self.objects.get(target.kind, target.name, target.namespace)
        except API_ERRORS as e:
            raise ResourceRetrievalError(
                target.kind, target.name, target.namespace, error_reason(e)
            ) from e

        if current is None:
            desired = target.new_object()
            mutate(desired)
            if self.dry_run:
                logger.info(f"[DRY-RUN] Would create {target.key}")
                return RESULT_DRY_RUN
            try:
                self.objects.create(desired)
            except API_ERRORS as e:
                raise ResourceWriteError(
                    target.kind, target.name, target.namespace, error_reason(e)
                ) from e
            logger.info(f"Created {target.key}")
            return RESULT_CREATED

        desired = copy.deepcopy(current)
        mutate(desired)
        patch = create_merge_patch(current, desired)

        if not patch:
            logger.debug(f"{target.key} already up to date")
            return RESULT_UNCHANGED

        if self.dry_run:
            logger.info(f"[DRY-RUN] Would patch {target.key}: {serialize_patch(patch)}")
            return RESULT_DRY_RUN

        try:
            self.objects.patch(target.kind, target.name, target.namespace, patch)
        except API_ERRORS as e:
            raise ResourceWriteError(
                target.kind, target.name, target.namespace, error_reason(e)
            ) from e
        logger.info(f"Patched {target.key}")
        logger.debug(f"Patch for {target.key}: {serialize_patch(patch)}")
        return RESULT_PATCHED
