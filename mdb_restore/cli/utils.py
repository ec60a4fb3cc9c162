"""
Shared helpers for CLI commands.

This module is part of MDB_RESTORE - MongoDB Dump Restore Engine.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from ..core.namespace import resolve_namespace
from ..core.types import RestoreReport, RestoreUnit

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"


def configure_logging(verbose: int = 0, quiet: bool = False) -> None:
    """Configure root logging once for a CLI run."""
    if quiet:
        level = logging.WARNING
    elif verbose > 0:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # The driver is chatty at DEBUG
    if level == logging.DEBUG and verbose < 2:
        logging.getLogger("pymongo").setLevel(logging.INFO)


def build_plan(
    units: List[RestoreUnit],
    db: Optional[str] = None,
    collection: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Describe each unit with the namespace it would be restored into."""
    plan = []
    for unit in units:
        entry: Dict[str, Any] = {"path": str(unit.path), "kind": unit.kind.value}
        if unit.restorable:
            entry["namespace"] = resolve_namespace(unit, db, collection).full_namespace
        plan.append(entry)
    return plan


def format_plan_output(plan: List[Dict[str, Any]], format: str = "pretty") -> str:
    if format == "json":
        return json.dumps(plan, indent=2, ensure_ascii=False)

    if not plan:
        return "Nothing to restore."
    lines = []
    for entry in plan:
        target = entry.get("namespace")
        if target:
            lines.append(f"{entry['kind']:<10} {entry['path']} -> {target}")
        else:
            lines.append(f"{entry['kind']:<10} {entry['path']} (ignored)")
    return "\n".join(lines)


def format_report(report: RestoreReport) -> str:
    lines = [
        f"Restored {report.units_restored} collection file(s), "
        f"{report.records_loaded} document(s)",
    ]
    if report.units_skipped:
        lines.append(f"Ignored {report.units_skipped} file(s)")
    if report.replay is not None:
        lines.append(
            f"Applied {report.replay.applied} oplog entries out of "
            f"{report.replay.total} ({report.replay.skipped} skipped)"
        )
    return "\n".join(lines)
