"""Tests for the JSON insight store."""
import json

import pytest

from talentmatch.models import StoredInsight, SuggestedProject
from talentmatch.store import InsightStore, InsightStoreError


def _record(resource_id="r1", summary="first", using_azure=False):
    return StoredInsight(
        resource_id=resource_id,
        resource_name="Rita",
        summary=summary,
        suggested_projects=[SuggestedProject(project_name="Cloud Move", rationale="fit", project_id="p1")],
        skill_highlights=["DevOps"],
        generated_at="2026-01-01T00:00:00+00:00",
        using_azure=using_azure,
    )


def test_self_initializes(store):
    assert store.load() == []
    assert json.loads(store.path.read_text(encoding="utf-8")) == []


def test_upsert_is_idempotent(store):
    store.upsert([_record()])
    store.upsert([_record()])

    assert len(store.load()) == 1


def test_upsert_replaces_whole_record(store):
    store.upsert([_record(), _record("r2")])
    store.upsert([_record(summary="second", using_azure=True)])

    records = {r.resource_id: r for r in store.load()}
    assert set(records) == {"r1", "r2"}
    assert records["r1"].summary == "second"
    assert records["r1"].using_azure is True
    assert records["r1"].suggested_projects[0].project_id == "p1"


def test_empty_upsert_is_noop(store):
    store.upsert([])

    assert not store.path.exists()


def test_file_uses_camel_case_keys(store):
    store.upsert([_record()])

    [data] = json.loads(store.path.read_text(encoding="utf-8"))
    assert data["resourceId"] == "r1"
    assert data["usingAzure"] is False
    assert data["suggestedProjects"][0] == {"projectName": "Cloud Move", "rationale": "fit", "projectId": "p1"}
    assert "model" not in data


def test_reads_legacy_raw_response_key(tmp_path):
    path = tmp_path / "legacy.json"
    path.write_text(json.dumps([{
        "resourceId": 42,
        "resourceName": "Old",
        "summary": "s",
        "generatedAt": "2025-01-01",
        "usingAzure": True,
        "rawAzureResponse": {"status": 429},
    }]), encoding="utf-8")

    [record] = InsightStore(path).load()

    assert record.resource_id == "42"
    assert record.raw_provider_response == {"status": 429}


@pytest.mark.parametrize("content", ["{not json", '{"resourceId": "r1"}'])
def test_corrupt_store_raises(tmp_path, content):
    path = tmp_path / "insights_store.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(InsightStoreError):
        InsightStore(path).load()
