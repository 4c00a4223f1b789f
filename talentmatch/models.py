"""Data models for resources, projects, recommendations and insights."""
from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def to_wire(obj: Any) -> Any:
    """Dataclass → JSON-ready value with camelCase keys.

    Only dataclass attribute names are renamed; plain dicts (provider
    payloads, nested catalog entries) pass through untouched.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        out: dict[str, Any] = {}
        for f in fields(obj):
            value = getattr(obj, f.name)
            if value is None and f.metadata.get("omit_none"):
                continue
            out[_camel(f.name)] = to_wire(value)
        return out
    if isinstance(obj, (list, tuple)):
        return [to_wire(v) for v in obj]
    return obj


def _optional() -> Any:
    return field(default=None, metadata={"omit_none": True})


@dataclass
class Skill:
    id: str
    name: str
    level: str = "mid"
    source: str = "competency"


@dataclass
class Resource:
    id: str
    name: str
    macro_area: str = ""
    coordination: str = ""
    management: str = ""
    department: str = ""
    seniority: str = "mid"
    availability_hours: float = 0.0
    availability: float | None = 0.0
    skills: list[Skill] = field(default_factory=list)
    preferred_techs: list[str] = field(default_factory=list)
    notes: str = ""
    role: str | None = _optional()
    manager: str | None = _optional()


@dataclass
class ProjectNeed:
    skill_id: str
    label: str
    priority: str = "medium"


@dataclass
class Project:
    id: str
    title: str
    macro_area: str = ""
    technology_category: str = ""
    complexity: str = "undefined"
    ideal_team: str = ""
    ai_note: str = ""
    coordination: str = ""
    needs: list[ProjectNeed] = field(default_factory=list)
    system_code: str = ""
    system_name: str = ""


@dataclass
class MatchDetail:
    skill_coverage: float
    availability_score: float
    coordination_score: float


@dataclass
class Recommendation:
    project_id: str
    project_name: str
    macro_area: str
    resource_id: str
    resource_name: str
    matched_skills: list[str]
    coordination_fit: bool
    score: float
    match_detail: MatchDetail
    notes: str = ""

    def to_dict(self) -> dict[str, Any]:
        return to_wire(self)


def _pick(data: dict[str, Any], name: str, default: Any = None) -> Any:
    for key in (_camel(name), name):
        if key in data:
            return data[key]
    return default


def _suggestion_fields(data: dict[str, Any]) -> dict[str, Any]:
    projects = [
        SuggestedProject(
            project_name=str(p.get("projectName") or p.get("project_name") or ""),
            rationale=str(p.get("rationale") or ""),
            project_id=p.get("projectId", p.get("project_id")),
        )
        for p in _pick(data, "suggested_projects") or []
        if isinstance(p, dict)
    ]
    return {
        "resource_id": str(_pick(data, "resource_id", "")),
        "resource_name": str(_pick(data, "resource_name", "")),
        "summary": str(_pick(data, "summary", "")),
        "suggested_projects": projects,
        "development_ideas": list(_pick(data, "development_ideas") or []),
        "skill_highlights": list(_pick(data, "skill_highlights") or []),
        "skill_gaps": list(_pick(data, "skill_gaps") or []),
    }


@dataclass
class SuggestedProject:
    project_name: str
    rationale: str
    project_id: str | None = _optional()


@dataclass
class InsightSuggestion:
    resource_id: str
    resource_name: str
    summary: str
    suggested_projects: list[SuggestedProject] = field(default_factory=list)
    development_ideas: list[str] = field(default_factory=list)
    skill_highlights: list[str] = field(default_factory=list)
    skill_gaps: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return to_wire(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InsightSuggestion":
        return cls(**_suggestion_fields(data))


@dataclass
class StoredInsight(InsightSuggestion):
    generated_at: str = ""
    using_azure: bool = False
    model: str | None = _optional()
    latency_ms: int | None = _optional()
    raw_provider_response: Any = _optional()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoredInsight":
        raw = _pick(data, "raw_provider_response")
        if raw is None:
            raw = data.get("rawAzureResponse")
        return cls(
            **_suggestion_fields(data),
            generated_at=str(_pick(data, "generated_at", "")),
            using_azure=bool(_pick(data, "using_azure", False)),
            model=_pick(data, "model"),
            latency_ms=_pick(data, "latency_ms"),
            raw_provider_response=raw,
        )

    def as_suggestion(self) -> InsightSuggestion:
        return InsightSuggestion(
            **{f.name: getattr(self, f.name) for f in fields(InsightSuggestion)}
        )


@dataclass
class InsightRun:
    """Result of one insight-generation call; check ``error`` for degraded runs."""

    generated_at: str
    using_azure: bool
    insights: list[InsightSuggestion] = field(default_factory=list)
    model: str | None = _optional()
    latency_ms: int | None = _optional()
    error: str | None = _optional()
    raw_provider_response: Any = _optional()

    def to_dict(self) -> dict[str, Any]:
        return to_wire(self)


@dataclass
class CatalogArea:
    id: int
    name: str
    display_name: str
    slug: str
    code: str | None = None


@dataclass
class CatalogJob:
    id: int
    name: str
    display_name: str
    family: str
    slug: str
    level: str | None = None


@dataclass
class CatalogManager:
    id: int
    name: str
    display_name: str
    initials: str
    slug: str


@dataclass
class CatalogEmployee:
    id: int | str
    name: str
    display_name: str
    initials: str
    registration: str
    is_manager: bool = False
    role: str | None = _optional()
    email: str | None = _optional()
    phone: str | None = _optional()
    birth_date: str | None = _optional()
    manager: str | None = _optional()
    formations: list[dict[str, Any]] = field(default_factory=list)
    experiences: list[dict[str, Any]] = field(default_factory=list)
    languages: list[dict[str, Any]] = field(default_factory=list)
    source_url: str | None = _optional()
    scraped_at: str | None = _optional()


@dataclass
class CatalogOverview:
    areas: list[CatalogArea] = field(default_factory=list)
    directorates: list[CatalogArea] = field(default_factory=list)
    jobs: list[CatalogJob] = field(default_factory=list)
    managers: list[CatalogManager] = field(default_factory=list)
    employees: list[CatalogEmployee] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return to_wire(self)


@dataclass
class InsightPayload:
    """Snapshot slice handed to insight generation."""

    resources: list[Resource] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)


@dataclass
class CandidateMatch:
    recommendation: Recommendation
    missing_skills: list[str] = field(default_factory=list)


@dataclass
class Candidate:
    resource: Resource
    matches: list[CandidateMatch] = field(default_factory=list)
    average_score: float = 0.0


@dataclass
class ReprocessOutcome:
    resource_id: str
    ok: bool
    error: str | None = _optional()
    run: InsightRun | None = _optional()


@dataclass
class ReprocessReport:
    generated_at: str
    outcomes: list[ReprocessOutcome] = field(default_factory=list)
    error: str | None = _optional()

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return len(self.outcomes) - self.succeeded

    def to_dict(self) -> dict[str, Any]:
        return to_wire(self)
