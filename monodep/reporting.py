"""Rendering helpers that turn an analysis report into terminal or JSON output."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Dict, Iterable, List, Tuple

from .orchestrator import AnalysisReport

_PREFIX = "[monodep]"


def render_compact(report: AnalysisReport) -> str:
    """One header line followed by one ``[type] package: dependency (detail)`` line per issue."""
    stats = report.stats()
    lines = [f"{_PREFIX} scanned={stats['packages_scanned']} issues={report.total_issues}"]
    for kind, package, dependency, detail in _issue_rows(report):
        suffix = f" ({detail})" if detail else ""
        lines.append(f"[{kind}] {package}: {dependency}{suffix}")
    return "\n".join(lines)


def render_text(report: AnalysisReport) -> str:
    """Human readable summary grouped by package."""
    stats = report.stats()
    lines: List[str] = [
        f"Scanned {stats['packages_scanned']} packages in {report.root}",
    ]

    grouped: Dict[str, List[Tuple[str, str, str]]] = {}
    for kind, package, dependency, detail in _issue_rows(report):
        grouped.setdefault(package, []).append((kind, dependency, detail))

    if not grouped and not report.ownership_issues:
        lines.append("No dependency issues found.")
        return "\n".join(lines)

    for package in sorted(grouped):
        lines.append("")
        lines.append(package)
        for kind, dependency, detail in grouped[package]:
            entry = f"  {kind:<16} {dependency}"
            if detail:
                entry += f"  {detail}"
            lines.append(entry)

    if report.ownership_issues:
        lines.append("")
        lines.append(f"Ownership suggestions ({report.settings.ownership_policy})")
        for issue in report.ownership_issues:
            lines.append(f"  {issue.dependency} [{issue.usage}]  {issue.detail}")

    diagnostics = report.installed_peer_diagnostics
    if diagnostics is not None and diagnostics.truncated:
        lines.append("")
        lines.append(
            f"Installed peer check stopped early ({diagnostics.truncation_reason}) "
            f"after {diagnostics.resolved} manifests."
        )

    lines.append("")
    lines.append(
        f"{report.total_issues} issues across {stats['packages_with_issues']} packages"
    )
    return "\n".join(lines)


def render_json(report: AnalysisReport) -> str:
    return json.dumps(report_payload(report), indent=2, sort_keys=False)


def report_payload(report: AnalysisReport) -> Dict[str, Any]:
    """Plain-data view of ``report`` used by the JSON renderer and the service."""
    diagnostics = report.installed_peer_diagnostics
    return {
        "root": report.root,
        "stats": report.stats(),
        "total_issues": report.total_issues,
        "exit_code": report.exit_code,
        "unused": _records(report.unused),
        "missing": _records(report.missing),
        "wrong_type": _records(report.wrong_type),
        "outdated": _records(report.outdated),
        "mismatches": _records(report.mismatches),
        "internal": _records(report.internal_issues),
        "peers": _records(report.peer_issues),
        "installed_peers": _records(report.installed_peer_issues),
        "dynamic_candidates": _records(report.dynamic_candidates),
        "ownership": _records(report.ownership_issues),
        "installed_peer_diagnostics": asdict(diagnostics) if diagnostics is not None else None,
    }


def _records(items: Iterable[Any]) -> List[Dict[str, Any]]:
    return [asdict(item) for item in items]


def _issue_rows(report: AnalysisReport) -> List[Tuple[str, str, str, str]]:
    rows: List[Tuple[str, str, str, str]] = []
    for issue in report.unused:
        rows.append(("unused", issue.package, issue.dependency, issue.detail))
    for issue in report.missing:
        rows.append(("missing", issue.package, issue.dependency, issue.detail))
    for issue in report.wrong_type:
        rows.append(
            (
                "wrong-type",
                issue.package,
                issue.dependency,
                f"{issue.actual} -> {issue.expected}",
            )
        )
    for issue in report.outdated:
        rows.append(
            ("outdated", issue.package, issue.dependency, f"{issue.current} -> {issue.latest}")
        )
    for mismatch in report.mismatches:
        rows.append(("mismatch", ", ".join(mismatch.packages), mismatch.dependency, mismatch.detail))
    for issue in report.internal_issues:
        rows.append((issue.type, issue.package, issue.dependency, issue.detail))
    for issue in (*report.peer_issues, *report.installed_peer_issues):
        rows.append((issue.type, issue.package, issue.peer, issue.detail))
    for candidate in report.dynamic_candidates:
        rows.append(
            (
                "dynamic-import",
                candidate.package,
                f"{candidate.file}:{candidate.line}",
                candidate.expression,
            )
        )
    return rows


__all__ = ["render_compact", "render_json", "render_text", "report_payload"]
