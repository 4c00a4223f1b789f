"""Tests for weighted scoring and recommendation building."""
import math

import pytest

from talentmatch.models import Project, ProjectNeed, Resource, Skill
from talentmatch.normalizer import project_key
from talentmatch.scorer import (
    WEIGHTS,
    build_affinity_recommendations,
    build_recommendations,
    match,
    score_pair,
)


def test_weights_are_fixed():
    assert WEIGHTS == {"skill_coverage": 0.5, "availability": 0.3, "coordination": 0.2}


def test_worked_example_scores_057(rita, cloud_move):
    score, detail, matched = score_pair(rita, cloud_move)

    assert detail.skill_coverage == pytest.approx(0.5)
    assert detail.availability_score == pytest.approx(0.4)
    assert detail.coordination_score == 1.0
    assert score == pytest.approx(0.57)
    assert matched == ["DevOps"]


def test_project_without_needs_has_zero_coverage(rita):
    empty = Project(id="p0", title="Nothing", macro_area="Infra")

    score, detail, matched = score_pair(rita, empty)

    assert detail.skill_coverage == 0.0
    assert matched == []
    assert score == pytest.approx(0.3 * 0.4 + 0.2)
    assert match(rita, empty) is None


def test_unavailable_resource_is_excluded(rita, cloud_move):
    rita.availability = 0.0
    assert match(rita, cloud_move) is None


def test_nan_availability_never_leaks(rita, cloud_move):
    rita.availability = float("nan")

    score, detail, _ = score_pair(rita, cloud_move)

    assert detail.availability_score == 0.0
    assert not math.isnan(score)


def test_empty_macro_area_is_not_a_fit(cloud_move):
    nobody = Resource(id="x", name="X", availability=1.0, skills=[Skill("devops", "DevOps")])
    cloud_move.macro_area = ""

    _, detail, _ = score_pair(nobody, cloud_move)

    assert detail.coordination_score == 0.0


def test_recommendations_sorted_descending(recommendations):
    scores = [r.score for r in recommendations]

    assert scores == sorted(scores, reverse=True)
    assert [(r.resource_id, r.project_id) for r in recommendations] == [
        ("r2", "p2"),
        ("r1", "p1"),
        ("r2", "p1"),
    ]
    assert all(0.0 <= s <= 1.0 for s in scores)


def test_equal_scores_keep_project_major_order():
    twin_a = Resource(id="a", name="A", macro_area="M", availability=0.5, skills=[Skill("go", "Go")])
    twin_b = Resource(id="b", name="B", macro_area="M", availability=0.5, skills=[Skill("go", "Go")])
    project = Project(id="p", title="P", macro_area="M", needs=[ProjectNeed("go", "Go")])

    result = build_recommendations([twin_a, twin_b], [project])

    assert [r.resource_id for r in result] == ["a", "b"]


def test_recommendation_wire_keys(recommendations):
    data = recommendations[0].to_dict()

    assert {"projectId", "resourceId", "matchedSkills", "coordinationFit", "matchDetail"} <= set(data)
    assert set(data["matchDetail"]) == {"skillCoverage", "availabilityScore", "coordinationScore"}


class TestAffinity:
    def test_supplied_score_wins(self, rita, cloud_move):
        records = [{
            "SiglaSistema": "CLD",
            "TituloDemanda": "Cloud Move",
            "ScoreAfinidade": "0,82",
            "FuncionariosIndicadosIDs": " r 1 | ghost",
            "ObservacaoIA": "Strong DevOps background",
        }]

        result = build_affinity_recommendations(
            records, {project_key("CLD", "Cloud Move"): cloud_move}, {"r1": rita}
        )

        assert len(result) == 1
        assert result[0].score == 0.82
        assert result[0].notes == "Strong DevOps background"
        assert result[0].matched_skills == ["DevOps"]

    def test_supplied_score_is_clamped(self, rita, cloud_move):
        records = [{"system_code": "cld", "title": "cloud move", "affinity_score": 3, "resource_ids": ["r1"]}]

        result = build_affinity_recommendations(
            records, {project_key("CLD", "Cloud Move"): cloud_move}, {"r1": rita}
        )

        assert result[0].score == 1.0

    def test_missing_score_uses_computed(self, rita, cloud_move):
        records = [{"SiglaSistema": "CLD", "TituloDemanda": "Cloud Move", "FuncionariosIndicadosIDs": "r1"}]

        result = build_affinity_recommendations(
            records, {project_key("CLD", "Cloud Move"): cloud_move}, {"r1": rita}
        )

        assert result[0].score == pytest.approx(0.57)

    def test_unknown_project_is_skipped(self, rita):
        records = [{"SiglaSistema": "NOPE", "TituloDemanda": "Gone", "FuncionariosIndicadosIDs": "r1"}]

        assert build_affinity_recommendations(records, {}, {"r1": rita}) == []
