"""Change-impact analysis and risk scoring."""

from __future__ import annotations

from typing import List, Optional, Sequence

from .models import (
    NODE_TYPES,
    RISK_LEVELS,
    AffectedEntity,
    GraphData,
    ImpactMetrics,
    ImpactReport,
)
from .query import GraphQuery

FILE_WEIGHT = 10
ENTITY_WEIGHT = 2
DEPTH_WEIGHT = 5

# Upper bounds (exclusive) of each level; anything above is CRITICAL.
RISK_THRESHOLDS = ((20, "LOW"), (50, "MEDIUM"), (100, "HIGH"))


def risk_rank(level: str) -> int:
    """Ordinal of a risk level: LOW=1 … CRITICAL=4."""
    try:
        return RISK_LEVELS.index(level.upper()) + 1
    except ValueError:
        raise ValueError(
            f"Invalid risk level: {level}. Must be one of {', '.join(RISK_LEVELS)}"
        ) from None


class ImpactAnalyzer:
    """Computes which entities a set of file changes may affect.

    Every transitive dependent of every entity in a changed file produces
    one :class:`AffectedEntity` record. An entity reached from several
    changed entities is recorded once per trigger, so counts reflect
    attribution rather than a unique affected set.
    """

    def __init__(self, graph_query: Optional[GraphQuery] = None) -> None:
        self.graph_query = graph_query or GraphQuery()

    def analyze_impact(self, graph: GraphData, changed_files: Sequence[str]) -> ImpactReport:
        if not changed_files:
            return self.empty_report()

        affected: List[AffectedEntity] = []
        affected_files = set()
        by_type = {t: 0 for t in NODE_TYPES}
        max_depth = 0

        for changed_file in changed_files:
            for entity_id in self.graph_query.find_entities_by_file(graph, changed_file):
                for dependent in self.graph_query.get_dependents(graph, entity_id, transitive=True):
                    affected.append(AffectedEntity(
                        entity_id=dependent.entity_id,
                        node=dependent.node,
                        reason=f"Depends on {entity_id} in {changed_file}",
                        depth=dependent.depth,
                        changed_by=changed_file,
                    ))
                    if dependent.node.file:
                        affected_files.add(dependent.node.file)
                    if dependent.node.type in by_type:
                        by_type[dependent.node.type] += 1
                    max_depth = max(max_depth, dependent.depth)

        metrics = ImpactMetrics(
            changed_files_count=len(changed_files),
            affected_entities_count=len(affected),
            affected_files_count=len(affected_files),
            affected_by_type=by_type,
            max_depth=max_depth,
        )
        return ImpactReport(
            changed_files=list(changed_files),
            affected_entities=affected,
            metrics=metrics,
            risk_level=self.calculate_risk_level(metrics),
        )

    @staticmethod
    def calculate_risk_score(metrics: ImpactMetrics) -> int:
        return (
            FILE_WEIGHT * metrics.affected_files_count
            + ENTITY_WEIGHT * metrics.affected_entities_count
            + DEPTH_WEIGHT * metrics.max_depth
        )

    def calculate_risk_level(self, metrics: ImpactMetrics) -> str:
        score = self.calculate_risk_score(metrics)
        for bound, level in RISK_THRESHOLDS:
            if score < bound:
                return level
        return "CRITICAL"

    @staticmethod
    def empty_report() -> ImpactReport:
        return ImpactReport(
            changed_files=[],
            affected_entities=[],
            metrics=ImpactMetrics(),
            risk_level="LOW",
        )

    def filter_by_threshold(self, report: ImpactReport, threshold: str) -> ImpactReport:
        """All-or-nothing: the report if it meets *threshold*, else the empty report."""
        if risk_rank(report.risk_level) < risk_rank(threshold):
            return self.empty_report()
        return report
