"""Read catalog files from disk and assemble a dataset snapshot.

Loading never raises past this module: missing or malformed files yield
empty results (or the built-in sample dataset) with ``meta["error"]`` set.
"""
from __future__ import annotations

import csv
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from talentmatch.config import load_settings
from talentmatch.log import get_logger
from talentmatch.models import CatalogOverview
from talentmatch.normalizer import (
    build_projects,
    build_resources,
    parse_areas,
    parse_directorates,
    parse_employees,
    parse_jobs,
    parse_managers,
)
from talentmatch.sample import sample_snapshot
from talentmatch.scorer import build_affinity_recommendations, build_recommendations
from talentmatch.snapshot import Snapshot

log = get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def read_csv_records(
    path: Path,
    delimiter: str = ",",
    encoding: str = "utf-8-sig",
    skip_prefix: str = "",
) -> list[dict[str, str]]:
    """Rows as dicts keyed by trimmed header; an optional ``SEP=`` line is skipped."""
    with open(path, "r", newline="", encoding=encoding) as f:
        lines = [line for line in f if line.strip()]
    if skip_prefix and lines and lines[0].strip().upper().startswith(skip_prefix.upper()):
        lines = lines[1:]
    rows: list[dict[str, str]] = []
    for row in csv.DictReader(lines, delimiter=delimiter):
        rows.append({k.strip(): (v or "").strip() for k, v in row.items() if k is not None})
    return rows


def read_json(path: Path) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_catalog_overview(data_dir: Path, catalog: dict[str, Any]) -> CatalogOverview:
    try:
        managers = parse_managers(read_json(data_dir / catalog["managers_json"]))
        overview = CatalogOverview(
            areas=parse_areas(read_json(data_dir / catalog["areas_json"])),
            directorates=parse_directorates(read_json(data_dir / catalog["directorates_json"])),
            jobs=parse_jobs(read_json(data_dir / catalog["jobs_json"])),
            managers=managers,
            employees=parse_employees(
                read_json(data_dir / catalog["employees_json"]),
                {m.id for m in managers},
            ),
            meta={"source": "catalog-json", "generatedAt": _now()},
        )
    except (OSError, ValueError, KeyError, TypeError, IndexError) as exc:
        log.error("Failed to load catalog JSON from %s: %s", data_dir, exc)
        return CatalogOverview(meta={"source": "catalog-json", "generatedAt": _now(), "error": str(exc)})
    log.info(
        "Catalog loaded: %d employees, %d managers, %d areas",
        len(overview.employees), len(overview.managers), len(overview.areas),
    )
    return overview


def load_snapshot(settings: dict[str, Any] | None = None) -> Snapshot:
    settings = settings or load_settings()
    catalog = settings["catalog"]
    data_dir = Path(settings["data_dir"])
    overview = load_catalog_overview(data_dir, catalog)

    try:
        project_records = read_csv_records(
            data_dir / catalog["projects_csv"],
            delimiter=catalog["projects_delimiter"],
            encoding=catalog["projects_encoding"],
            skip_prefix=catalog["projects_skip_prefix"],
        )
        resource_records = read_csv_records(data_dir / catalog["resources_csv"])
        affinity_path = data_dir / catalog["affinity_csv"] if catalog.get("affinity_csv") else None
        affinity_records = (
            read_csv_records(affinity_path) if affinity_path and affinity_path.exists() else []
        )
    except (OSError, ValueError, csv.Error) as exc:
        log.error("Failed to load catalog CSVs from %s: %s; falling back to sample data", data_dir, exc)
        snapshot = sample_snapshot(overview)
        snapshot.meta["error"] = str(exc)
        return snapshot

    snapshot = Snapshot(
        resources=build_resources(resource_records, settings["matching"]["reference_hours"]),
        projects=build_projects(project_records, catalog.get("excluded_code_prefixes") or ()),
        overview=overview,
        meta={"source": "catalog-csv", "generatedAt": _now()},
    )
    snapshot.recommendations = build_affinity_recommendations(
        affinity_records, snapshot.projects_by_key, snapshot.resources_by_id
    ) or build_recommendations(snapshot.resources, snapshot.projects)
    if overview.meta.get("error"):
        snapshot.meta["catalogError"] = overview.meta["error"]

    log.info(
        "Snapshot ready: %d resources, %d projects, %d recommendations",
        len(snapshot.resources), len(snapshot.projects), len(snapshot.recommendations),
    )
    return snapshot


class SnapshotLoader:
    """Holds the current snapshot; callers decide when to ``refresh()``."""

    def __init__(self, settings: dict[str, Any] | None = None) -> None:
        self.settings = settings or load_settings()
        self._snapshot: Snapshot | None = None

    @property
    def snapshot(self) -> Snapshot:
        if self._snapshot is None:
            return self.refresh()
        return self._snapshot

    def refresh(self) -> Snapshot:
        self._snapshot = load_snapshot(self.settings)
        return self._snapshot
