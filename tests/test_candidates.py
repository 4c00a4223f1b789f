"""Tests for candidate selection."""
import pytest

from talentmatch.candidates import missing_skills, select_candidates
from talentmatch.models import InsightPayload, Resource


def test_ranked_by_average_of_top_matches(payload):
    candidates = select_candidates(payload)

    assert [c.resource.id for c in candidates] == ["r2", "r1"]
    assert candidates[0].average_score == pytest.approx((0.75 + 0.55) / 2)
    assert candidates[1].average_score == pytest.approx(0.57)


def test_top_matches_are_limited(payload):
    [otto, _] = select_candidates(payload, top_matches=1)

    assert [m.recommendation.project_id for m in otto.matches] == ["p2"]
    assert otto.average_score == pytest.approx(0.75)


def test_candidate_limit(payload):
    assert [c.resource.id for c in select_candidates(payload, limit=1)] == ["r2"]


def test_missing_skills_per_match(payload):
    [otto, rita] = select_candidates(payload)

    assert [m.missing_skills for m in otto.matches] == [["Spark"], ["DevOps"]]
    assert rita.matches[0].missing_skills == ["Azure"]


def test_project_resolved_by_title_when_id_unknown(rita, recommendations, cloud_move):
    rec = next(r for r in recommendations if r.resource_id == "r1")
    rec.project_id = "stale-id"
    payload = InsightPayload(resources=[rita], projects=[cloud_move], recommendations=[rec])

    [candidate] = select_candidates(payload)

    assert candidate.matches[0].missing_skills == ["Azure"]
    assert missing_skills(rec, None) == []


def test_resources_without_matches_sort_last(payload):
    idle = Resource(id="r3", name="Idle", availability=0.0)
    payload.resources = [idle] + payload.resources + [idle]

    candidates = select_candidates(payload)

    assert [c.resource.id for c in candidates] == ["r2", "r1", "r3"]
    assert candidates[-1].matches == []
    assert candidates[-1].average_score == 0.0


def test_default_caps_at_scale(crowd):
    candidates = select_candidates(crowd)

    assert len(candidates) == 5
    assert [c.resource.id for c in candidates] == ["c11", "c10", "c09", "c08", "c07"]
    assert all(len(c.matches) == 3 for c in candidates)
    assert all(m.missing_skills for c in candidates for m in c.matches)
