"""Normalize raw catalog records into canonical resources, projects and employees.

Every function here is total: malformed values degrade to a safe default
(zero, empty string, empty list) instead of raising. Whole records that
cannot be interpreted are skipped with a warning.
"""
from __future__ import annotations

import math
import re
import unicodedata
from collections.abc import Mapping
from typing import Any, Iterable

from talentmatch.config import DEFAULT_REFERENCE_HOURS
from talentmatch.log import get_logger
from talentmatch.models import (
    CatalogArea,
    CatalogEmployee,
    CatalogJob,
    CatalogManager,
    Project,
    ProjectNeed,
    Resource,
    Skill,
)

log = get_logger(__name__)

# Canonical field → accepted keys, legacy export headers first.
RESOURCE_FIELDS: dict[str, tuple[str, ...]] = {
    "id": ("FuncionarioID", "id"),
    "name": ("Nome", "name"),
    "macro_area": ("MacroAreaEspecialidade", "macro_area"),
    "seniority": ("NivelSenioridade", "seniority"),
    "availability_hours": ("CargaDisponivelHoras", "availability_hours"),
    "competencies": ("CompetenciasChave", "competencies"),
    "technologies": ("TecnologiasPreferenciais", "technologies"),
    "notes": ("Observacao", "notes"),
}

PROJECT_FIELDS: dict[str, tuple[str, ...]] = {
    "system_code": ("SiglaSistema", "system_code"),
    "system_name": ("NomeSistema", "system_name"),
    "title": ("TituloDemanda", "title"),
    "macro_area": ("MacroAreaNegocio", "macro_area"),
    "technology_category": ("CategoriaTecnologica", "technology_category"),
    "complexity": ("ComplexidadeEstimativa", "complexity"),
    "ideal_team": ("EstimativaEquipeIdeal", "ideal_team"),
    "ai_note": ("ObservacaoIA", "ai_note"),
    "profiles": ("PerfisHumanosIndicados", "profiles"),
    "management": ("Gerencia", "management"),
    "directorate": ("Diretoria", "directorate"),
    "affinity_score": ("ScoreAfinidade", "affinity_score"),
    "resource_ids": ("FuncionariosIndicadosIDs", "resource_ids"),
}

DEFAULT_MACRO_AREA = "Other"
DEFAULT_TECH_CATEGORY = "Corporate Technology"

_COMPLEXITY_ALIASES: dict[str, str] = {
    "alta": "high",
    "high": "high",
    "media": "medium",
    "medium": "medium",
    "baixa": "low",
    "low": "low",
}

_LOWER_ARTICLES = {"da", "de", "do", "das", "dos", "e"}
_LOCALE_THOUSANDS_RE = re.compile(r"^[+-]?\d{1,3}(?:\.\d{3})+(?:,\d+)?$")
_CODE_RE = re.compile(r"#(\d+)#")
_CODE_SUFFIX_RE = re.compile(r"\s*-\s*#\d+#\s*$")
_ROMAN_RE = re.compile(r"^[IVX]+$", re.IGNORECASE)


# ── Scalar helpers ───────────────────────────────────────────────────────

def slugify(value: Any) -> str:
    """Stable slug: strip diacritics, lowercase, hyphenate non-alphanumerics."""
    if value is None:
        return ""
    text = unicodedata.normalize("NFD", str(value))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", "-", text.lower())
    return text.strip("-")


def normalize_label(value: Any) -> str:
    return ("" if value is None else str(value)).strip().lower()


def sanitize_list(value: Any, delimiter: str = "|") -> list[str]:
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(v) for v in value if v is not None]
    else:
        items = str(value).split(delimiter)
    return [item.strip() for item in items if item and item.strip()]


def parse_number(value: Any) -> float:
    """Parse plain or pt-BR formatted numbers ("1.234,5"); garbage → 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    text = str(value).strip().replace(" ", "")
    if not text:
        return 0.0
    if "," in text or _LOCALE_THOUSANDS_RE.match(text):
        text = text.replace(".", "").replace(",", ".", 1)
    try:
        number = float(text)
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def clamp(value: float, low: float, high: float) -> float:
    return min(high, max(low, value))


def to_availability_fraction(hours: float, base: float = DEFAULT_REFERENCE_HOURS) -> float:
    if base <= 0:
        return 0.0
    return clamp(hours / base, 0.0, 1.0)


def to_seniority(value: Any) -> str:
    key = slugify(value)
    if key in ("junior", "senior"):
        return key
    return "mid"


def to_priority(value: Any) -> str:
    return _COMPLEXITY_ALIASES.get(slugify(value), "medium")


def normalize_complexity(value: Any) -> str:
    return _COMPLEXITY_ALIASES.get(slugify(value), "undefined")


def complexity_priority(complexity: str) -> str:
    return complexity if complexity in ("high", "low") else "medium"


def project_key(code: Any, title: Any) -> str:
    return f"{normalize_label(code).upper()}::{normalize_label(title).upper()}"


def to_title_case(value: str) -> str:
    words = value.strip().lower().split()
    return " ".join(
        word if i and word in _LOWER_ARTICLES else word[:1].upper() + word[1:]
        for i, word in enumerate(words)
    )


def initials(name: str) -> str:
    return "".join(word[0].upper() for word in name.split() if word)


def extract_code(raw: str) -> str | None:
    m = _CODE_RE.search(raw)
    return m.group(1) if m else None


def clean_label(raw: str) -> str:
    return _CODE_SUFFIX_RE.sub("", raw).strip()


def get_raw(record: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    """First non-blank value among *aliases*, untouched."""
    for alias in aliases:
        value = record.get(alias)
        if value is not None and str(value).strip():
            return value
    return None


def get_field(record: Mapping[str, Any], aliases: Iterable[str]) -> str:
    value = get_raw(record, aliases)
    return "" if value is None else str(value).strip()


# ── Resources and projects ───────────────────────────────────────────────

def unique_skills(skills: Iterable[Skill]) -> list[Skill]:
    seen: dict[str, Skill] = {}
    for skill in skills:
        if skill.id and skill.id not in seen:
            seen[skill.id] = skill
    return list(seen.values())


def build_resource(
    record: Mapping[str, Any], reference_hours: float = DEFAULT_REFERENCE_HOURS
) -> Resource:
    def f(key: str) -> str:
        return get_field(record, RESOURCE_FIELDS[key])

    seniority = to_seniority(f("seniority"))
    hours = parse_number(get_raw(record, RESOURCE_FIELDS["availability_hours"]))
    macro_area = f("macro_area") or DEFAULT_MACRO_AREA
    competencies = sanitize_list(get_raw(record, RESOURCE_FIELDS["competencies"]))
    technologies = sanitize_list(get_raw(record, RESOURCE_FIELDS["technologies"]))

    skills = unique_skills(
        [Skill(slugify(name), name, seniority, "competency") for name in competencies]
        + [Skill(slugify(name), name, seniority, "technology") for name in technologies]
    )
    return Resource(
        id=f("id"),
        name=f("name"),
        macro_area=macro_area,
        coordination=macro_area,
        management=f"Management {macro_area}",
        department=f"Directorate {macro_area}",
        seniority=seniority,
        availability_hours=hours,
        availability=to_availability_fraction(hours, reference_hours),
        skills=skills,
        preferred_techs=technologies,
        notes=f("notes"),
    )


def build_project(record: Mapping[str, Any]) -> Project:
    def f(key: str) -> str:
        return get_field(record, PROJECT_FIELDS[key])

    code, system_name, raw_title = f("system_code"), f("system_name"), f("title")
    macro_area = f("macro_area") or DEFAULT_MACRO_AREA
    complexity = normalize_complexity(f("complexity"))
    priority = complexity_priority(complexity)
    needs = [
        ProjectNeed(skill_id=slugify(label), label=label, priority=priority)
        for label in sanitize_list(get_raw(record, PROJECT_FIELDS["profiles"]))
        if slugify(label)
    ]
    return Project(
        id=slugify(f"{code}-{raw_title or system_name}"),
        title=raw_title or system_name or code,
        macro_area=macro_area,
        technology_category=f("technology_category") or DEFAULT_TECH_CATEGORY,
        complexity=complexity,
        ideal_team=f("ideal_team"),
        ai_note=f("ai_note"),
        coordination=f("management") or f("directorate") or macro_area,
        needs=needs,
        system_code=code,
        system_name=system_name,
    )


def build_resources(
    records: Iterable[Mapping[str, Any]], reference_hours: float = DEFAULT_REFERENCE_HOURS
) -> list[Resource]:
    resources: list[Resource] = []
    for record in records:
        resource = build_resource(record, reference_hours)
        if not resource.id:
            log.warning("Skipping resource record without id: %r", dict(record))
            continue
        resources.append(resource)
    return resources


def build_projects(
    records: Iterable[Mapping[str, Any]], excluded_prefixes: Iterable[str] = ()
) -> list[Project]:
    prefixes = tuple(p.upper() for p in excluded_prefixes if p)
    projects: list[Project] = []
    for record in records:
        code = get_field(record, PROJECT_FIELDS["system_code"]).upper()
        if prefixes and code.startswith(prefixes):
            continue
        project = build_project(record)
        if not project.id:
            log.warning("Skipping project record without code or title")
            continue
        projects.append(project)
    return projects


# ── Organisational catalog ───────────────────────────────────────────────

def is_enriched_employee(entry: Any) -> bool:
    """Enriched scraper objects carry a ``registration`` key; legacy rows are tuples."""
    return isinstance(entry, Mapping) and "registration" in entry


def parse_employee(entry: Any, manager_ids: set[int] | None = None) -> CatalogEmployee | None:
    manager_ids = manager_ids or set()
    if is_enriched_employee(entry):
        name = str(entry.get("name") or "").strip()
        emp_id = entry.get("id")
        return CatalogEmployee(
            id=emp_id,
            name=name,
            display_name=entry.get("displayName") or to_title_case(name),
            initials=entry.get("initials") or initials(name),
            registration=str(entry.get("registration") or "").strip(),
            is_manager=bool(entry.get("isManager", emp_id in manager_ids)),
            role=entry.get("role"),
            email=entry.get("email"),
            phone=entry.get("phone"),
            birth_date=entry.get("birthDate"),
            manager=entry.get("manager"),
            formations=list(entry.get("formations") or []),
            experiences=list(entry.get("experiences") or []),
            languages=list(entry.get("languages") or []),
            source_url=entry.get("sourceUrl"),
            scraped_at=entry.get("scrapedAt"),
        )

    if isinstance(entry, (list, tuple)) and len(entry) >= 2:
        emp_id, raw_name = entry[0], str(entry[1] or "")
        registration = str(entry[2] or "") if len(entry) > 2 else ""
        name = raw_name.strip()
        return CatalogEmployee(
            id=emp_id,
            name=name,
            display_name=to_title_case(name),
            initials=initials(name),
            registration=registration.strip(),
            is_manager=emp_id in manager_ids,
        )

    log.warning("Skipping unrecognised employee entry: %r", entry)
    return None


def parse_employees(entries: Iterable[Any], manager_ids: set[int] | None = None) -> list[CatalogEmployee]:
    employees = (parse_employee(entry, manager_ids) for entry in entries)
    return [e for e in employees if e is not None]


def _labelled_entry(entry_id: int, raw: str, fallback: str) -> CatalogArea:
    name = raw.strip()
    display = to_title_case(clean_label(name))
    return CatalogArea(
        id=entry_id,
        name=name,
        display_name=display,
        code=extract_code(name),
        slug=slugify(display or f"{fallback}-{entry_id}"),
    )


def parse_areas(entries: Iterable[Any]) -> list[CatalogArea]:
    return [_labelled_entry(e[0], str(e[1]), "area") for e in entries]


def parse_directorates(entries: Iterable[Mapping[str, Any]]) -> list[CatalogArea]:
    return [_labelled_entry(e["id"], str(e["name"]), "directorate") for e in entries]


def parse_jobs(entries: Iterable[Any]) -> list[CatalogJob]:
    jobs: list[CatalogJob] = []
    for job_id, raw in entries:
        name = str(raw).strip()
        parts = [p.strip() for p in name.split(" - ") if p.strip()]
        level = None
        if len(parts) > 1 and _ROMAN_RE.match(parts[-1]):
            level = parts.pop()
        display = to_title_case(" - ".join(parts))
        jobs.append(
            CatalogJob(
                id=job_id,
                name=name,
                display_name=display,
                family=to_title_case(parts[0]) if parts else display,
                level=level,
                slug=slugify(f"{job_id}-{display}"),
            )
        )
    return jobs


def parse_managers(entries: Iterable[Mapping[str, Any]]) -> list[CatalogManager]:
    managers: list[CatalogManager] = []
    for entry in entries:
        name = str(entry["name"]).strip()
        display = to_title_case(name)
        managers.append(
            CatalogManager(
                id=entry["id"],
                name=name,
                display_name=display,
                initials=initials(name),
                slug=slugify(f"{entry['id']}-{display}"),
            )
        )
    return managers
