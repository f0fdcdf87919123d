"""Reconciliation logic for the registry-cache monitoring configuration."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from .cleaner import LegacyCleaner
from .content import StaticContentSource
from .object_client import ObjectClient
from .resources import (
    aggregated_config_map,
    alert_rule_set,
    dashboard_config_map,
    scrape_config_entry,
    mutate_aggregated_config_map,
    mutate_alert_rule_set,
    mutate_dashboard_config_map,
    mutate_scrape_config_entry,
)
from .schema import SchemaDetector, SchemaVersion, SentinelSchemaDetector
from .upserter import RESULT_UNCHANGED, Mutator, ResourceUpserter, TargetResource

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Outcome of one successful reconcile pass."""
    namespace: str
    schema: SchemaVersion
    legacy_deleted: bool = False
    resources: Dict[str, str] = field(default_factory=dict)  # target key -> upsert result
    started_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    finished_at: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.legacy_deleted or any(r != RESULT_UNCHANGED for r in self.resources.values())

    def finish(self) -> "ReconcileResult":
        self.finished_at = datetime.now(timezone.utc).isoformat()
        return self


class MonitoringReconciler:
    """
    Brings the monitoring objects of a namespace in line with the static
    content, migrating from the legacy aggregated ConfigMap if the cluster
    runs the modern schema.
    """

    def __init__(
        self,
        content: StaticContentSource,
        detector: SchemaDetector,
        cleaner: LegacyCleaner,
        upserter: ResourceUpserter,
    ):
        self.content = content
        self.detector = detector
        self.cleaner = cleaner
        self.upserter = upserter

    @classmethod
    def from_client(
        cls,
        objects: ObjectClient,
        content: Optional[StaticContentSource] = None,
        dry_run: bool = False,
    ) -> "MonitoringReconciler":
        """Wire up the default detector, cleaner and upserter around one client."""
        return cls(
            content=content or StaticContentSource.from_package(),
            detector=SentinelSchemaDetector(objects),
            cleaner=LegacyCleaner(objects, dry_run=dry_run),
            upserter=ResourceUpserter(objects, dry_run=dry_run),
        )

    def modern_targets(self, namespace: str) -> List[Tuple[TargetResource, Mutator]]:
        bundle = self.content.bundle()
        return [
            (dashboard_config_map(namespace), mutate_dashboard_config_map(bundle)),
            (alert_rule_set(namespace), mutate_alert_rule_set),
            (scrape_config_entry(namespace), mutate_scrape_config_entry),
        ]

    def reconcile(self, namespace: str) -> ReconcileResult:
        """
        Run one reconcile pass.

        The schema is detected once. Under the legacy schema only the
        aggregated ConfigMap is upserted. Under the modern schema the legacy
        ConfigMap is deleted first, then the three modern objects are
        upserted in order. The first error aborts the pass and propagates;
        nothing is retried or rolled back.

        Raises:
            MonitoringReconcileError: A step failed
        """
        schema = self.detector.detect(namespace)
        result = ReconcileResult(namespace=namespace, schema=schema)
        logger.info(f"Reconciling monitoring config in {namespace} using {schema.value} schema")

        if schema is SchemaVersion.LEGACY:
            target = aggregated_config_map(namespace)
            mutate = mutate_aggregated_config_map(self.content.bundle())
            result.resources[target.key] = self.upserter.upsert(target, mutate)
            return result.finish()

        result.legacy_deleted = self.cleaner.cleanup(namespace)

        for target, mutate in self.modern_targets(namespace):
            result.resources[target.key] = self.upserter.upsert(target, mutate)

        return result.finish()
