"""Shared fixtures for talentmatch tests."""
from __future__ import annotations

import pytest

from talentmatch.models import (
    InsightPayload,
    Project,
    ProjectNeed,
    Recommendation,
    Resource,
    Skill,
)
from talentmatch.providers import ChatResult, InsightProvider
from talentmatch.scorer import build_recommendations
from talentmatch.store import InsightStore


class FakeProvider(InsightProvider):
    """Records every call; returns a canned completion or raises ``error``."""

    name = "fake"

    def __init__(self, completion: str = "", error: Exception | None = None, model: str = "gpt-test") -> None:
        self.completion = completion
        self.error = error
        self.model = model
        self.calls: list[list[dict[str, str]]] = []

    def chat(self, messages, reasoning_effort=None) -> ChatResult:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return ChatResult(id="chat-1", completion=self.completion, latency_ms=12, model=self.model)


# ============================================================================
# Domain fixtures
# ============================================================================

@pytest.fixture
def rita() -> Resource:
    return Resource(
        id="r1",
        name="Rita",
        macro_area="Infra",
        coordination="Infra",
        availability_hours=64,
        availability=0.4,
        skills=[Skill("devops", "DevOps")],
        preferred_techs=["devops ", "Terraform"],
    )


@pytest.fixture
def otto() -> Resource:
    return Resource(
        id="r2",
        name="Otto",
        macro_area="Data",
        coordination="Data",
        availability_hours=160,
        availability=1.0,
        skills=[Skill("python", "Python"), Skill("azure", "Azure")],
    )


@pytest.fixture
def cloud_move() -> Project:
    return Project(
        id="p1",
        title="Cloud Move",
        macro_area="Infra",
        needs=[ProjectNeed("devops", "DevOps"), ProjectNeed("azure", "Azure")],
        system_code="CLD",
    )


@pytest.fixture
def lakehouse() -> Project:
    return Project(
        id="p2",
        title="Lakehouse",
        macro_area="Data",
        needs=[ProjectNeed("python", "Python"), ProjectNeed("spark", "Spark")],
        system_code="LAK",
    )


@pytest.fixture
def recommendations(rita, otto, cloud_move, lakehouse) -> list[Recommendation]:
    return build_recommendations([rita, otto], [cloud_move, lakehouse])


@pytest.fixture
def crowd() -> InsightPayload:
    """12 resources × 12 projects, every pairing a match, distinct availabilities."""
    resources = [
        Resource(id=f"c{i:02d}", name=f"Person {i}", macro_area="Core",
                 availability=(i + 1) / 12, skills=[Skill("go", "Go")])
        for i in range(12)
    ]
    projects = [
        Project(id=f"q{j:02d}", title=f"Project {j}", macro_area="Core",
                needs=[ProjectNeed("go", "Go"), ProjectNeed(f"extra-{j}", f"Extra {j}")])
        for j in range(12)
    ]
    return InsightPayload(
        resources=resources,
        projects=projects,
        recommendations=build_recommendations(resources, projects),
    )


@pytest.fixture
def payload(rita, otto, cloud_move, lakehouse, recommendations) -> InsightPayload:
    return InsightPayload(
        resources=[rita, otto],
        projects=[cloud_move, lakehouse],
        recommendations=recommendations,
    )


# ============================================================================
# Infrastructure fixtures
# ============================================================================

@pytest.fixture
def store(tmp_path) -> InsightStore:
    return InsightStore(tmp_path / "insights_store.json")


@pytest.fixture
def make_provider():
    """Factory for fake providers: ``make_provider(completion=..., error=...)``."""
    return FakeProvider
