"""Score resources against projects by skill coverage, availability and area fit."""
from __future__ import annotations

import math
import re
from typing import Any, Iterable, Mapping

from talentmatch.log import get_logger
from talentmatch.models import MatchDetail, Project, ProjectNeed, Recommendation, Resource
from talentmatch.normalizer import (
    PROJECT_FIELDS,
    clamp,
    get_field,
    get_raw,
    normalize_label,
    parse_number,
    project_key,
    sanitize_list,
)

log = get_logger(__name__)

WEIGHTS: dict[str, float] = {
    "skill_coverage": 0.5,
    "availability": 0.3,
    "coordination": 0.2,
}


def matched_needs(resource: Resource, project: Project) -> list[ProjectNeed]:
    """Project needs covered by the resource's skills, joined on skill id.

    Skills without an id (derived from free text) fall back to the
    normalized label.
    """
    by_id = {need.skill_id: need for need in project.needs}
    by_label = {normalize_label(need.label): need for need in project.needs}
    matched: list[ProjectNeed] = []
    for skill in resource.skills:
        if skill.id:
            need = by_id.get(skill.id)
        else:
            need = by_label.get(normalize_label(skill.name))
        if need is not None:
            matched.append(need)
    return matched


def _availability(resource: Resource) -> float:
    value = resource.availability
    if value is None or not math.isfinite(value):
        return 0.0
    return clamp(value, 0.0, 1.0)


def same_macro_area(resource: Resource, project: Project) -> bool:
    left, right = normalize_label(resource.macro_area), normalize_label(project.macro_area)
    return bool(left) and left == right


def score_pair(resource: Resource, project: Project) -> tuple[float, MatchDetail, list[str]]:
    matched = matched_needs(resource, project)
    coverage = len(matched) / len(project.needs) if project.needs else 0.0
    availability = _availability(resource)
    coordination = 1.0 if same_macro_area(resource, project) else 0.0

    score = (
        coverage * WEIGHTS["skill_coverage"]
        + availability * WEIGHTS["availability"]
        + coordination * WEIGHTS["coordination"]
    )
    detail = MatchDetail(
        skill_coverage=coverage,
        availability_score=availability,
        coordination_score=coordination,
    )
    return clamp(score, 0.0, 1.0), detail, [need.label for need in matched]


def _recommendation(
    resource: Resource,
    project: Project,
    score: float,
    detail: MatchDetail,
    matched: list[str],
    notes: str = "",
) -> Recommendation:
    return Recommendation(
        project_id=project.id,
        project_name=project.title,
        macro_area=project.macro_area,
        resource_id=resource.id,
        resource_name=resource.name,
        matched_skills=matched,
        coordination_fit=detail.coordination_score == 1.0,
        score=score,
        match_detail=detail,
        notes=notes,
    )


def match(resource: Resource, project: Project) -> Recommendation | None:
    """Score one pairing; None when nothing matches or the resource is unavailable."""
    score, detail, matched = score_pair(resource, project)
    if not matched or _availability(resource) <= 0:
        return None
    return _recommendation(resource, project, score, detail, matched)


def rank(recommendations: Iterable[Recommendation]) -> list[Recommendation]:
    # sorted() is stable, so equal scores keep enumeration order
    return sorted(recommendations, key=lambda r: -r.score)


def build_recommendations(resources: list[Resource], projects: list[Project]) -> list[Recommendation]:
    """Score every project × resource pairing from scratch."""
    found: list[Recommendation] = []
    for project in projects:
        for resource in resources:
            rec = match(resource, project)
            if rec is not None:
                found.append(rec)
    result = rank(found)
    log.info(
        "Scored %d resources × %d projects → %d recommendations",
        len(resources), len(projects), len(result),
    )
    return result


def build_affinity_recommendations(
    records: Iterable[Mapping[str, Any]],
    projects_by_key: Mapping[str, Project],
    resources_by_id: Mapping[str, Resource],
) -> list[Recommendation]:
    """Recommendations from an externally supplied affinity table.

    A positive supplied score is used verbatim (clamped); otherwise the
    computed score applies. Rows pointing at unknown projects or resources
    are skipped.
    """
    found: list[Recommendation] = []
    skipped = 0
    for record in records:
        code = get_field(record, PROJECT_FIELDS["system_code"])
        title = get_field(record, PROJECT_FIELDS["title"])
        project = projects_by_key.get(project_key(code, title))
        if project is None:
            log.debug("Affinity row for unknown project %s / %s", code, title)
            skipped += 1
            continue

        supplied = parse_number(get_raw(record, PROJECT_FIELDS["affinity_score"]))
        notes = get_field(record, PROJECT_FIELDS["ai_note"])
        for raw_id in sanitize_list(get_raw(record, PROJECT_FIELDS["resource_ids"])):
            resource = resources_by_id.get(re.sub(r"\s+", "", raw_id))
            if resource is None:
                log.debug("Affinity row references unknown resource %r", raw_id)
                skipped += 1
                continue
            computed, detail, matched = score_pair(resource, project)
            score = clamp(supplied, 0.0, 1.0) if supplied > 0 else computed
            found.append(_recommendation(resource, project, score, detail, matched, notes))

    if skipped:
        log.warning("Skipped %d unresolved affinity reference(s)", skipped)
    return rank(found)
