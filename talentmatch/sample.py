"""Built-in sample dataset, used when the catalog files cannot be loaded."""
from __future__ import annotations

from datetime import datetime, timezone

from talentmatch.log import get_logger
from talentmatch.models import CatalogOverview, Project, ProjectNeed, Resource, Skill
from talentmatch.scorer import build_recommendations
from talentmatch.snapshot import Snapshot

log = get_logger(__name__)


def sample_resources() -> list[Resource]:
    return [
        Resource(
            id="f-001",
            name="Ana Souza",
            macro_area="Digital Innovation",
            coordination="Digital Innovation",
            management="Solutions",
            department="Technology Directorate",
            seniority="senior",
            availability_hours=64,
            availability=0.4,
            skills=[
                Skill("applied-ai", "Applied AI", "senior", "competency"),
                Skill("data-engineering", "Data engineering", "senior", "competency"),
            ],
            preferred_techs=["Applied AI", "Data engineering"],
        ),
        Resource(
            id="f-002",
            name="Bruno Lima",
            macro_area="Infrastructure",
            coordination="Infrastructure",
            management="Operations",
            department="Technology Directorate",
            seniority="mid",
            availability_hours=32,
            availability=0.2,
            skills=[
                Skill("azure-cloud", "Azure cloud", "mid", "competency"),
                Skill("devops", "DevOps", "mid", "competency"),
            ],
            preferred_techs=["Azure", "DevOps"],
        ),
        Resource(
            id="f-003",
            name="Carla Nunes",
            macro_area="Customer Service",
            coordination="Customer Service",
            management="Customers",
            department="Services Directorate",
            seniority="mid",
            availability_hours=96,
            availability=0.6,
            skills=[Skill("devops", "DevOps", "mid", "competency")],
            preferred_techs=["DevOps", "Service Desk"],
        ),
    ]


def sample_projects() -> list[Project]:
    return [
        Project(
            id="p-analytics",
            title="City Analytics",
            macro_area="Digital Solutions",
            technology_category="Data & Analytics",
            complexity="medium",
            ideal_team="1 PO | 2 Data Eng | 1 Data Scientist",
            ai_note="Generated sample.",
            coordination="Digital Solutions",
            needs=[
                ProjectNeed("data-engineering", "Data engineering", "high"),
                ProjectNeed("applied-ai", "Applied AI", "medium"),
            ],
            system_code="ANALYTICS",
            system_name="City Analytics",
        ),
        Project(
            id="p-datacenter",
            title="Data Center Modernization",
            macro_area="Infrastructure",
            technology_category="Cloud & DevOps",
            complexity="high",
            ideal_team="1 Cloud Architect | 2 DevOps | 1 SRE",
            ai_note="Generated sample.",
            coordination="Infrastructure",
            needs=[
                ProjectNeed("azure-cloud", "Azure cloud", "high"),
                ProjectNeed("devops", "DevOps", "medium"),
            ],
            system_code="MOD-DATACENTER",
            system_name="Data Center Modernization",
        ),
    ]


def sample_snapshot(overview: CatalogOverview | None = None) -> Snapshot:
    log.info("Using built-in sample dataset")
    resources, projects = sample_resources(), sample_projects()
    return Snapshot(
        resources=resources,
        projects=projects,
        recommendations=build_recommendations(resources, projects),
        overview=overview or CatalogOverview(),
        meta={"source": "sample", "generatedAt": datetime.now(timezone.utc).isoformat()},
    )
