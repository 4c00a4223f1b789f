"""Pick the resources whose best matches score highest, for insight generation."""
from __future__ import annotations

from collections import defaultdict

from talentmatch.log import get_logger
from talentmatch.models import Candidate, CandidateMatch, InsightPayload, Project, Recommendation
from talentmatch.normalizer import normalize_label

log = get_logger(__name__)

TOP_MATCHES = 3
CANDIDATE_LIMIT = 5


def missing_skills(recommendation: Recommendation, project: Project | None) -> list[str]:
    if project is None:
        return []
    covered = {normalize_label(s) for s in recommendation.matched_skills}
    return [need.label for need in project.needs if normalize_label(need.label) not in covered]


def select_candidates(
    payload: InsightPayload,
    top_matches: int = TOP_MATCHES,
    limit: int = CANDIDATE_LIMIT,
) -> list[Candidate]:
    """Rank resources by the average score of their top matches.

    Resources without recommendations are kept with an average of 0 so a
    baseline suggestion can still be produced for them; they sort last.
    """
    projects_by_id = {p.id: p for p in payload.projects}
    projects_by_name = {normalize_label(p.title): p for p in payload.projects}

    grouped: dict[str, list[Recommendation]] = defaultdict(list)
    for rec in payload.recommendations:
        grouped[rec.resource_id].append(rec)

    candidates: list[Candidate] = []
    seen: set[str] = set()
    for resource in payload.resources:
        if resource.id in seen:
            continue
        seen.add(resource.id)

        top = sorted(grouped.get(resource.id, []), key=lambda r: -r.score)[:top_matches]
        matches = [
            CandidateMatch(
                recommendation=rec,
                missing_skills=missing_skills(
                    rec,
                    projects_by_id.get(rec.project_id)
                    or projects_by_name.get(normalize_label(rec.project_name)),
                ),
            )
            for rec in top
        ]
        average = sum(r.score for r in top) / len(top) if top else 0.0
        candidates.append(Candidate(resource=resource, matches=matches, average_score=average))

    ranked = sorted(candidates, key=lambda c: -c.average_score)[:limit]
    log.debug("Selected %d of %d resources as insight candidates", len(ranked), len(candidates))
    return ranked
