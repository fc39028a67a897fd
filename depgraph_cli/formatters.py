"""Human-readable rendering of query, impact, diff and cycle results."""

from __future__ import annotations

from typing import Dict, List

from .models import EntityWithMetadata, GraphDiff, ImpactReport, QueryResult

TOP_AFFECTED = 10
TOP_EDGES = 10

RISK_INDICATORS = {
    "LOW": "🟢 LOW",
    "MEDIUM": "🟡 MEDIUM",
    "HIGH": "🟠 HIGH",
    "CRITICAL": "🔴 CRITICAL",
}

RISK_RECOMMENDATIONS = {
    "LOW": "✓ Low impact. Safe to proceed.",
    "MEDIUM": "⚠ Moderate impact. Review affected entities before committing.",
    "HIGH": "⚠ High impact! Carefully review all affected entities and consider breaking changes.",
    "CRITICAL": (
        "⛔ Critical impact! This change affects a large portion of the codebase. "
        "Proceed with extreme caution."
    ),
}


def _location(entity: EntityWithMetadata, template: str = " ({file}:{line})") -> str:
    if not entity.node.file:
        return ""
    return template.format(file=entity.node.file, line=entity.node.line)


def _group_by_depth(entities: List[EntityWithMetadata]) -> Dict[int, List[EntityWithMetadata]]:
    grouped: Dict[int, List[EntityWithMetadata]] = {}
    for entity in entities:
        grouped.setdefault(entity.depth, []).append(entity)
    return grouped


def format_query_as_tree(result: QueryResult, direction: str) -> str:
    lines = ["", f"Query: {result.entity_id}"]
    header = f"Type: {result.type}"
    if result.file:
        header += f" ({result.file}:{result.line})"
    lines.append(header)
    lines.append("")
    lines.append("Dependencies:" if direction == "dependencies" else "Dependents:")

    if not result.entities:
        lines.append("  (none)")
        return "\n".join(lines)

    by_depth = _group_by_depth(result.entities)
    max_depth = max(by_depth)
    for depth in range(1, max_depth + 1):
        group = by_depth.get(depth, [])
        for index, entity in enumerate(group):
            is_last = depth == max_depth and index == len(group) - 1
            connector = "└─" if is_last else "├─"
            rel = f" [{entity.relationship}]" if entity.relationship else ""
            lines.append(f"{'  ' * (depth - 1)}{connector} {entity.entity_id}{rel}{_location(entity)}")

    lines.append("")
    lines.append(f"Total: {result.total_count} {direction} across {result.file_count} file(s)")
    return "\n".join(lines)


def format_query_as_list(result: QueryResult) -> str:
    lines = ["", f"Entity: {result.entity_id}", f"Type: {result.type}"]
    if result.file:
        lines.append(f"Location: {result.file}:{result.line}")
    lines.append("")
    lines.append("Results:")

    if not result.entities:
        lines.append("  (none)")
        return "\n".join(lines)

    for index, entity in enumerate(result.entities, 1):
        rel = f" [{entity.relationship}]" if entity.relationship else ""
        lines.append(f"  {index}. {entity.entity_id}{rel}{_location(entity, ' - {file}:{line}')}")
    lines.append("")
    lines.append(f"Total: {result.total_count}")
    return "\n".join(lines)


def format_impact_report(report: ImpactReport) -> str:
    metrics = report.metrics
    lines = [
        "",
        "=== Impact Analysis ===",
        "",
        f"Risk Level: {RISK_INDICATORS.get(report.risk_level, report.risk_level)}",
        "",
        f"Changed Files ({len(report.changed_files)}):",
    ]
    lines.extend(f"  • {path}" for path in report.changed_files)
    if not report.changed_files:
        lines.append("  (none)")

    lines += [
        "",
        "Potentially Affected:",
        f"  • Entities: {metrics.affected_entities_count}",
        f"  • Files: {metrics.affected_files_count}",
        f"  • Max Depth: {metrics.max_depth}",
        "",
        "Breakdown by Type:",
    ]
    lines.extend(f"  • {node_type}: {count}" for node_type, count in metrics.affected_by_type.items())

    if report.affected_entities:
        lines.append("")
        lines.append("Top Affected Entities:")
        for entity in report.affected_entities[:TOP_AFFECTED]:
            location = f" ({entity.node.file}:{entity.node.line})" if entity.node.file else ""
            lines.append(f"  • {entity.entity_id}{location}")
            lines.append(f"    Reason: {entity.reason} (depth: {entity.depth})")
        remaining = len(report.affected_entities) - TOP_AFFECTED
        if remaining > 0:
            lines.append(f"  ... and {remaining} more")

    lines.append("")
    lines.append(RISK_RECOMMENDATIONS.get(report.risk_level, ""))
    return "\n".join(lines)


def format_diff_report(diff: GraphDiff, summary_only: bool = False) -> str:
    s = diff.summary
    lines = [
        "",
        "=== Graph Diff ===",
        f"Comparing: {diff.commit1} → {diff.commit2}",
        "",
        "Summary:",
        f"  Nodes:  +{s.total_nodes_added} / -{s.total_nodes_removed} / ~{s.total_nodes_modified}",
        f"  Edges:  +{s.total_edges_added} / -{s.total_edges_removed}",
    ]
    if summary_only:
        return "\n".join(lines)

    if diff.added_nodes:
        lines += ["", f"Added Nodes ({len(diff.added_nodes)}):"]
        lines.extend(f"  + {entity_id}" for entity_id in diff.added_nodes)

    if diff.removed_nodes:
        lines += ["", f"Removed Nodes ({len(diff.removed_nodes)}):"]
        lines.extend(f"  - {entity_id}" for entity_id in diff.removed_nodes)

    if diff.modified_nodes:
        lines += ["", f"Modified Nodes ({len(diff.modified_nodes)}):"]
        for mod in diff.modified_nodes:
            lines.append(f"  ~ {mod.entity_id}")
            lines.append(f"    Changes: {', '.join(mod.changes)}")
            if "line" in mod.changes or "endLine" in mod.changes:
                lines.append(
                    f"    Lines: {mod.before.line}-{mod.before.end_line} → "
                    f"{mod.after.line}-{mod.after.end_line}"
                )

    for title, sign, edges in (
        ("Added Edges", "+", diff.added_edges),
        ("Removed Edges", "-", diff.removed_edges),
    ):
        if not edges:
            continue
        lines += ["", f"{title} ({len(edges)}):"]
        lines.extend(f"  {sign} {e.source} {e.relationship} {e.target}" for e in edges[:TOP_EDGES])
        if len(edges) > TOP_EDGES:
            lines.append(f"  ... and {len(edges) - TOP_EDGES} more")

    return "\n".join(lines)


def format_cycles(cycles: List[List[str]]) -> str:
    if not cycles:
        return "No circular dependencies found."
    lines = [f"Found {len(cycles)} circular dependenc{'y' if len(cycles) == 1 else 'ies'}:"]
    for index, cycle in enumerate(cycles, 1):
        lines.append(f"  {index}. {' → '.join(cycle + cycle[:1])}")
    return "\n".join(lines)
