#!/usr/bin/env python3
"""Entry point to generate or reprocess resource insights."""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from talentmatch.log import get_logger
from talentmatch.config import ensure_dirs, load_settings

log = get_logger(__name__)


def main(argv: list[str]) -> int:
    from talentmatch.catalog import SnapshotLoader
    from talentmatch.insights import latest_insights, reprocess
    from talentmatch.providers import diagnose, get_provider
    from talentmatch.store import InsightStore

    ensure_dirs()
    settings = load_settings()
    provider = get_provider()

    if "--ping" in argv:
        status = diagnose(provider)
        if status["connected"]:
            log.info("Provider OK: model %s in %d ms", status["model"], status["latencyMs"])
            return 0
        log.error("Provider unavailable: %s", status["error"])
        return 1

    snapshot = SnapshotLoader(settings).snapshot
    if snapshot.meta.get("error"):
        log.warning("Snapshot degraded: %s", snapshot.meta["error"])
    store = InsightStore(settings["store_path"])

    resource_ids = [a for a in argv if not a.startswith("--")]
    if resource_ids:
        report = reprocess(snapshot, resource_ids, provider, store, settings)
        for outcome in report.outcomes:
            if outcome.ok:
                log.info("  %s: ok%s", outcome.resource_id, f" ({outcome.error})" if outcome.error else "")
            else:
                log.warning("  %s: failed (%s)", outcome.resource_id, outcome.error)
        if report.error:
            log.error(report.error)
        return 0 if report.outcomes and not report.failed else 1

    run = latest_insights(snapshot, store, provider, settings)
    log.info("Run complete.")
    log.info("  Insights: %d", len(run.insights))
    log.info("  Provider output used: %s", run.using_azure)
    if run.model:
        log.info("  Model: %s (%s ms)", run.model, run.latency_ms)
    if run.error:
        log.warning("  Note: %s", run.error)
    log.info("  Store: %s", settings["store_path"])
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
