"""Caller-owned dataset snapshot with lookup indices."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from talentmatch.models import CatalogEmployee, CatalogOverview, Project, Recommendation, Resource
from talentmatch.normalizer import normalize_label, project_key


@dataclass
class Snapshot:
    resources: list[Resource] = field(default_factory=list)
    projects: list[Project] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    overview: CatalogOverview = field(default_factory=CatalogOverview)
    meta: dict[str, Any] = field(default_factory=dict)

    resources_by_id: dict[str, Resource] = field(init=False, repr=False)
    resources_by_name: dict[str, Resource] = field(init=False, repr=False)
    projects_by_id: dict[str, Project] = field(init=False, repr=False)
    projects_by_key: dict[str, Project] = field(init=False, repr=False)
    employees_by_id: dict[str, CatalogEmployee] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.reindex()

    def reindex(self) -> None:
        self.resources_by_id = {r.id: r for r in self.resources}
        self.resources_by_name = {normalize_label(r.name): r for r in self.resources}
        self.projects_by_id = {p.id: p for p in self.projects}
        self.projects_by_key = {project_key(p.system_code, p.title): p for p in self.projects}
        self.employees_by_id = {str(e.id): e for e in self.employees}

    @property
    def employees(self) -> list[CatalogEmployee]:
        return self.overview.employees
