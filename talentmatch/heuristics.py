"""Deterministic insight suggestions built from a candidate's best matches."""
from __future__ import annotations

from talentmatch.models import Candidate, InsightSuggestion, SuggestedProject
from talentmatch.normalizer import normalize_label

NO_MATCH_FOCUS = "evaluate an initial allocation (no mapped matches)"
FALLBACK_IDEA = "Map complementary skills and align the next allocation with the responsible manager."


def _pct(value: float) -> str:
    return f"{round(value * 100)}%"


def add_unique(target: list[str], value: str | None) -> None:
    """Append *value* unless an entry equal to it (case/whitespace-insensitive) exists."""
    if not value:
        return
    trimmed = value.strip()
    key = normalize_label(trimmed)
    if not key or any(normalize_label(entry) == key for entry in target):
        return
    target.append(trimmed)


def _summary(candidate: Candidate) -> str:
    resource = candidate.resource
    focus = ", ".join(
        f"{m.recommendation.project_name or m.recommendation.project_id or 'Unnamed project'}"
        f" ({_pct(m.recommendation.score)})"
        for m in candidate.matches
    ) or NO_MATCH_FOCUS
    availability = (
        _pct(resource.availability) if resource.availability is not None else "availability not mapped"
    )
    segments = [
        f"Prioritize {resource.name} ({resource.macro_area or 'undefined macro-area'})",
        f"focus on {focus}",
        f"Availability {availability}",
        f"Average score {_pct(candidate.average_score)}",
    ]
    return ". ".join(segments) + "."


def _rationale(score: float, matched: list[str], missing: list[str]) -> str:
    parts = [
        f"Score {_pct(score)}",
        f"Covered skills: {', '.join(matched)}" if matched else "No skill mapped",
    ]
    if missing:
        parts.append(f"Improve: {', '.join(missing)}")
    return " • ".join(parts)


def build_suggestion(candidate: Candidate) -> InsightSuggestion:
    """Never raises and performs no I/O."""
    resource = candidate.resource

    suggested = [
        SuggestedProject(
            project_id=m.recommendation.project_id,
            project_name=m.recommendation.project_name,
            rationale=_rationale(m.recommendation.score, m.recommendation.matched_skills, m.missing_skills),
        )
        for m in candidate.matches
    ]

    highlights: list[str] = []
    for skill in resource.skills:
        add_unique(highlights, skill.name)
    for tech in resource.preferred_techs:
        add_unique(highlights, tech)
    for m in candidate.matches:
        for skill in m.recommendation.matched_skills:
            add_unique(highlights, skill)

    covered = {normalize_label(h) for h in highlights}
    gaps: list[str] = []
    for m in candidate.matches:
        for skill in m.missing_skills:
            if normalize_label(skill) not in covered:
                add_unique(gaps, skill)

    ideas = [f"Plan development in {', '.join(gaps)}."] if gaps else [FALLBACK_IDEA]

    return InsightSuggestion(
        resource_id=resource.id,
        resource_name=resource.name,
        summary=_summary(candidate),
        suggested_projects=suggested,
        development_ideas=ideas,
        skill_highlights=highlights,
        skill_gaps=gaps,
    )


def build_suggestions(candidates: list[Candidate]) -> list[InsightSuggestion]:
    return [build_suggestion(c) for c in candidates]
