"""Generate per-resource insights: heuristics first, LLM output merged on top.

Flow per call: select candidates → heuristic baseline → (provider configured)
one chat request → parse → field-level merge → persist → InsightRun.
Provider and parse failures degrade to the heuristic baseline and are
reported in ``InsightRun.error``; they never raise.
"""
from __future__ import annotations

import json
import re
from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping

from talentmatch.candidates import CANDIDATE_LIMIT, TOP_MATCHES, select_candidates
from talentmatch.heuristics import build_suggestions
from talentmatch.log import get_logger
from talentmatch.models import (
    Candidate,
    InsightPayload,
    InsightRun,
    InsightSuggestion,
    Project,
    ReprocessOutcome,
    ReprocessReport,
    Resource,
    Skill,
    StoredInsight,
)
from talentmatch.normalizer import normalize_label, slugify
from talentmatch.providers import InsightProvider, ProviderError
from talentmatch.snapshot import Snapshot
from talentmatch.store import InsightStore, InsightStoreError

log = get_logger(__name__)

NOT_CONFIGURED_MSG = "LLM provider not configured. Returning local heuristics."
NO_CANDIDATES_MSG = "No eligible candidates to generate insights."
UNPARSEABLE_MSG = "Provider response in unexpected format. Using heuristics."
NO_SELECTION_MSG = "No resources selected for reprocessing."

PROMPT_RESOURCES = 10
PROMPT_PROJECTS = 10

SYSTEM_PROMPT = " ".join([
    "You are a talent allocation analyst.",
    "Reply ONLY with valid JSON, no markdown, no text outside the JSON.",
    'Format: {"insights":[{"resourceId":"string","resourceName":"string",'
    '"summary":"objective sentence","suggestedProjects":[{"projectId":"optional string",'
    '"projectName":"string","rationale":"short text"}],"developmentIdeas":["short text"],'
    '"skillHighlights":["skill"],"skillGaps":["skill"]}]}',
])

_FENCE_START_RE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_FENCE_END_RE = re.compile(r"\s*```$")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Prompt ───────────────────────────────────────────────────────────────

def _pct(value: float | None) -> str:
    return f"{round(value * 100)}%" if value is not None else "n/a"


def format_resources(resources: list[Resource], limit: int = PROMPT_RESOURCES) -> str:
    lines = []
    for r in resources[:limit]:
        skills = ", ".join(s.name for s in r.skills) or "no skills"
        lines.append(
            f"- {r.name} ({r.macro_area or 'no macro-area'}) avail. {_pct(r.availability)} | {skills}"
        )
    return "\n".join(lines)


def format_projects(projects: list[Project], limit: int = PROMPT_PROJECTS) -> str:
    lines = []
    for p in projects[:limit]:
        needs = ", ".join(f"{n.label} ({n.skill_id})" for n in p.needs)
        lines.append(f"- {p.title} ({p.coordination or 'unknown coordination'}) -> {needs}")
    return "\n".join(lines)


def build_context(candidates: list[Candidate]) -> list[dict[str, Any]]:
    return [
        {
            "resourceId": c.resource.id,
            "resourceName": c.resource.name,
            "macroArea": c.resource.macro_area,
            "coordination": c.resource.coordination,
            "availability": c.resource.availability,
            "matches": [
                {
                    "projectId": m.recommendation.project_id,
                    "projectName": m.recommendation.project_name,
                    "score": round(m.recommendation.score * 100),
                    "matchedSkills": m.recommendation.matched_skills,
                    "missingSkills": m.missing_skills,
                }
                for m in c.matches
            ],
        }
        for c in candidates
    ]


def build_messages(
    payload: InsightPayload,
    candidates: list[Candidate],
    resource_limit: int = PROMPT_RESOURCES,
    project_limit: int = PROMPT_PROJECTS,
) -> list[dict[str, str]]:
    user = json.dumps(
        {
            "generatedAt": _now(),
            "context": {
                "resources": format_resources(payload.resources, resource_limit),
                "projects": format_projects(payload.projects, project_limit),
                "topMatches": build_context(candidates),
            },
        },
        ensure_ascii=False,
    )
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": user},
    ]


# ── Parse & merge ────────────────────────────────────────────────────────

def strip_code_fence(raw: str) -> str:
    return _FENCE_END_RE.sub("", _FENCE_START_RE.sub("", raw.strip())).strip()


def parse_insights(raw: str) -> list[Any] | None:
    """Accept a bare JSON array or an object with an ``insights`` array."""
    cleaned = strip_code_fence(raw or "")
    if not cleaned:
        return None
    try:
        data = json.loads(cleaned)
    except ValueError:
        return None
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get("insights"), list):
        return data["insights"]
    return None


def is_present(value: Any, kind: type) -> bool:
    """Non-empty value of the expected type."""
    if not isinstance(value, kind):
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict)):
        return bool(value)
    return True


def merge_fields(
    base: Mapping[str, Any],
    overlay: Mapping[str, Any],
    schema: Mapping[str, type],
    present: Callable[[Any, type], bool] = is_present,
) -> dict[str, Any]:
    """Field-wise overlay: each schema field taken from *overlay* only when present."""
    merged = dict(base)
    for name, kind in schema.items():
        value = overlay.get(name)
        if present(value, kind):
            merged[name] = value
    return merged


SUGGESTION_SCHEMA: dict[str, type] = {
    "resourceName": str,
    "summary": str,
    "suggestedProjects": list,
    "developmentIdeas": list,
    "skillHighlights": list,
    "skillGaps": list,
}

PROJECT_SCHEMA: dict[str, type] = {
    "projectId": str,
    "projectName": str,
    "rationale": str,
}


def _clean_strings(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _merge_projects(base: list[dict[str, Any]], value: Any) -> list[dict[str, Any]] | None:
    if not isinstance(value, list):
        return None
    entries = []
    for entry in value:
        if not isinstance(entry, dict):
            continue
        if isinstance(entry.get("projectId"), (int, float)) and not isinstance(entry["projectId"], bool):
            entry = {**entry, "projectId": str(entry["projectId"])}
        entries.append(entry)
    # A list with no usable project entry counts as the wrong type
    if not any(is_present(e.get(name), kind) for e in entries for name, kind in PROJECT_SCHEMA.items()):
        return None

    merged = []
    for i, entry in enumerate(entries):
        fallback = base[i] if i < len(base) else {
            "projectName": f"Project {i + 1}",
            "rationale": "Rationale not provided by the model.",
        }
        merged.append(merge_fields(fallback, entry, PROJECT_SCHEMA))
    return merged


def merge_suggestion(base: InsightSuggestion, entry: Mapping[str, Any]) -> InsightSuggestion:
    baseline = base.to_dict()
    overlay = {
        "resourceName": entry.get("resourceName"),
        "summary": entry.get("summary"),
        "suggestedProjects": _merge_projects(baseline["suggestedProjects"], entry.get("suggestedProjects")),
        "developmentIdeas": _clean_strings(entry.get("developmentIdeas")),
        "skillHighlights": _clean_strings(entry.get("skillHighlights")),
        "skillGaps": _clean_strings(entry.get("skillGaps")),
    }
    merged = merge_fields(baseline, overlay, SUGGESTION_SCHEMA)
    merged["resourceId"] = base.resource_id
    return InsightSuggestion.from_dict(merged)


def merge_with_heuristics(heuristics: list[InsightSuggestion], parsed: Iterable[Any]) -> list[InsightSuggestion]:
    """Overlay parsed entries on baselines by resourceId; keeps baseline order and size."""
    by_id = {h.resource_id: h for h in heuristics}
    merged: dict[str, InsightSuggestion] = {}
    for entry in parsed:
        if not isinstance(entry, dict) or entry.get("resourceId") is None:
            continue
        resource_id = str(entry["resourceId"])
        base = by_id.get(resource_id)
        if base is None:
            log.debug("Ignoring provider insight for unknown resource %s", resource_id)
            continue
        merged[resource_id] = merge_suggestion(base, entry)
    return [merged.get(h.resource_id, h) for h in heuristics]


# ── Generation ───────────────────────────────────────────────────────────

def _persist(run: InsightRun, store: InsightStore | None, raw: Any = None) -> InsightRun:
    if store is None or not run.insights:
        return run
    records = [
        StoredInsight(
            **{f.name: getattr(s, f.name) for f in fields(InsightSuggestion)},
            generated_at=run.generated_at,
            using_azure=run.using_azure,
            model=run.model,
            latency_ms=run.latency_ms,
            raw_provider_response=raw if raw is not None else run.raw_provider_response,
        )
        for s in run.insights
    ]
    try:
        store.upsert(records)
    except (InsightStoreError, OSError) as exc:
        log.error("Failed to persist insights: %s", exc)
        message = f"Insight store failure: {exc}"
        run.error = f"{run.error} {message}" if run.error else message
    return run


def generate_insights(
    payload: InsightPayload,
    provider: InsightProvider | None = None,
    store: InsightStore | None = None,
    settings: dict[str, Any] | None = None,
) -> InsightRun:
    limits = (settings or {}).get("insights", {})
    candidates = select_candidates(
        payload,
        top_matches=limits.get("top_matches", TOP_MATCHES),
        limit=limits.get("candidate_limit", CANDIDATE_LIMIT),
    )
    heuristics = build_suggestions(candidates)
    generated_at = _now()

    if provider is None:
        run = InsightRun(generated_at=generated_at, using_azure=False, insights=heuristics, error=NOT_CONFIGURED_MSG)
        return _persist(run, store)

    if not candidates:
        return InsightRun(generated_at=generated_at, using_azure=False, insights=[], error=NO_CANDIDATES_MSG)

    messages = build_messages(
        payload,
        candidates,
        limits.get("prompt_resources", PROMPT_RESOURCES),
        limits.get("prompt_projects", PROMPT_PROJECTS),
    )
    try:
        result = provider.chat(messages)
    except Exception as exc:
        log.error("Insight generation via %s failed: %s", provider.name, exc)
        run = InsightRun(
            generated_at=generated_at,
            using_azure=False,
            insights=heuristics,
            error=str(exc) or exc.__class__.__name__,
            raw_provider_response=exc.details() if isinstance(exc, ProviderError) else None,
        )
        return _persist(run, store)

    log.debug("Provider completion (raw): %s", result.completion)
    parsed = parse_insights(result.completion)
    if parsed is None:
        log.warning("Provider reply was not parseable as insights; using heuristics")
        run = InsightRun(
            generated_at=generated_at,
            using_azure=False,
            insights=heuristics,
            model=result.model,
            latency_ms=result.latency_ms,
            error=UNPARSEABLE_MSG,
            raw_provider_response=result.completion,
        )
    else:
        run = InsightRun(
            generated_at=generated_at,
            using_azure=True,
            insights=merge_with_heuristics(heuristics, parsed),
            model=result.model,
            latency_ms=result.latency_ms,
        )
    log.info("Generated %d insight(s) (provider output used: %s)", len(run.insights), run.using_azure)
    return _persist(run, store, raw=result.completion)


# ── Payloads from a snapshot ─────────────────────────────────────────────

def _derived_skills(record: StoredInsight | None) -> list[Skill]:
    if record is None:
        return []
    skills: dict[str, Skill] = {}
    for name in record.skill_highlights:
        skill_id = slugify(name)
        if skill_id and skill_id not in skills:
            skills[skill_id] = Skill(id=skill_id, name=name, level="", source="derived")
    return list(skills.values())


def build_insight_payload(
    snapshot: Snapshot,
    resource_ids: Iterable[Any] | None = None,
    stored: list[StoredInsight] | None = None,
) -> InsightPayload:
    """Insight input for the selected people.

    With a catalog of employees, employees are the insight subjects and are
    joined to scored resources by display name; recommendations are re-keyed
    to employee ids. Otherwise the scored resources are used as-is.
    """
    wanted = {str(i) for i in resource_ids} if resource_ids is not None else None

    if not snapshot.employees:
        resources = [r for r in snapshot.resources if wanted is None or r.id in wanted]
        ids = {r.id for r in resources}
        recs = [rec for rec in snapshot.recommendations if rec.resource_id in ids]
        return InsightPayload(resources=resources, projects=snapshot.projects, recommendations=recs)

    stored_by_id = {r.resource_id: r for r in stored or []}
    to_employee: dict[str, str] = {}
    resources = []
    for employee in snapshot.employees:
        employee_id = str(employee.id)
        if wanted is not None and employee_id not in wanted:
            continue
        matched = snapshot.resources_by_name.get(normalize_label(employee.display_name))
        if matched is not None:
            to_employee[matched.id] = employee_id
            resources.append(replace(matched, id=employee_id, name=employee.display_name,
                                     role=employee.role, manager=employee.manager))
        else:
            resources.append(Resource(
                id=employee_id,
                name=employee.display_name,
                coordination=employee.manager or "",
                department=employee.role or "",
                availability=None,
                skills=_derived_skills(stored_by_id.get(employee_id)),
                role=employee.role,
                manager=employee.manager,
            ))

    recs = [
        replace(rec, resource_id=to_employee[rec.resource_id])
        for rec in snapshot.recommendations
        if rec.resource_id in to_employee
    ]
    return InsightPayload(resources=resources, projects=snapshot.projects, recommendations=recs)


def _load_stored(store: InsightStore) -> list[StoredInsight]:
    try:
        return store.load()
    except (InsightStoreError, OSError) as exc:
        log.warning("Stored insights unavailable, continuing without derived skills: %s", exc)
        return []


def reprocess(
    snapshot: Snapshot,
    resource_ids: Iterable[Any],
    provider: InsightProvider | None,
    store: InsightStore,
    settings: dict[str, Any] | None = None,
) -> ReprocessReport:
    """Regenerate insights one resource at a time; failures stay per item."""
    ids = list(dict.fromkeys(str(i).strip() for i in resource_ids if str(i).strip()))
    report = ReprocessReport(generated_at=_now())
    if not ids:
        report.error = NO_SELECTION_MSG
        return report

    stored = _load_stored(store)
    for resource_id in ids:
        try:
            payload = build_insight_payload(snapshot, [resource_id], stored)
            if not payload.resources:
                report.outcomes.append(
                    ReprocessOutcome(resource_id=resource_id, ok=False, error=f"Unknown resource {resource_id}")
                )
                continue
            run = generate_insights(payload, provider, store, settings)
            report.outcomes.append(
                ReprocessOutcome(resource_id=resource_id, ok=bool(run.insights), error=run.error, run=run)
            )
        except Exception as exc:
            log.error("Reprocessing %s failed: %s", resource_id, exc)
            report.outcomes.append(ReprocessOutcome(resource_id=resource_id, ok=False, error=str(exc)))

    log.info("Reprocessed %d resource(s): %d ok, %d failed", len(ids), report.succeeded, report.failed)
    return report


def latest_insights(
    snapshot: Snapshot,
    store: InsightStore,
    provider: InsightProvider | None,
    settings: dict[str, Any] | None = None,
) -> InsightRun:
    """Stored insights when they cover everyone, otherwise a fresh generation."""
    try:
        stored = store.load()
    except (InsightStoreError, OSError) as exc:
        log.error("Failed to read insight store: %s", exc)
        return InsightRun(generated_at=_now(), using_azure=False, error=f"Insight store failure: {exc}")

    population = (
        [str(e.id) for e in snapshot.employees] if snapshot.employees else [r.id for r in snapshot.resources]
    )
    by_id = {r.resource_id: r for r in stored}
    if population and all(pid in by_id for pid in population):
        latest = max(stored, key=lambda r: r.generated_at)
        log.info("Serving %d stored insight(s) from %s", len(stored), latest.generated_at)
        return InsightRun(
            generated_at=latest.generated_at,
            using_azure=any(r.using_azure for r in stored),
            insights=[r.as_suggestion() for r in stored],
            model=latest.model,
            latency_ms=latest.latency_ms,
            raw_provider_response=latest.raw_provider_response,
        )

    return generate_insights(build_insight_payload(snapshot, stored=stored), provider, store, settings)
