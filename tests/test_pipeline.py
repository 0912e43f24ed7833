"""
Scoring orchestrator and scheduler

Runs whole passes against a file store in a temporary directory and
checks failure handling with mocked collaborators.
"""

import glob
import json
import os
import sys
from unittest.mock import Mock, patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from farm_safety.coreutils.errors import PersistError, PopulationFetchError
from farm_safety.load.local_storage import FarmDocumentStore
from farm_safety.orchestration.pipeline import ScoringOrchestrator, create_orchestrator
from farm_safety.orchestration.scheduler import ScoringScheduler
from farm_safety.orchestration.settings import ScoringSettings
from farm_safety.extract.farms_api import FarmsAPIClient
from farm_factory import farm_document


def write_population(path):
    documents = [
        farm_document(farm_id=1, tvl=25_000_000.0, base_apr=12.0, reward_apr=40.0),
        farm_document(farm_id=2, tvl=400_000.0, base_apr=6.0, reward_apr=10.0),
        farm_document(farm_id=3, tvl=500.0, base_apr=0.0, reward_apr=0.0, rewards=[]),
        farm_document(farm_id=4, alloc_point=0, totalScore=0.77),
    ]
    path.write_text(json.dumps(documents))
    return documents


def test_scoring_pass_writes_scores_to_store(tmp_path):
    store_path = tmp_path / "farms.json"
    write_population(store_path)
    store = FarmDocumentStore(store_path)

    scoring_pass = ScoringOrchestrator(source=store, writer=store).run_scoring_pass()

    saved = {doc["id"]: doc for doc in json.loads(store_path.read_text())}
    assert scoring_pass.report.persisted_count == 3
    assert saved[1]["totalScore"] == max(d["totalScore"] for d in saved.values())
    assert 0.98 < saved[1]["totalScore"] < 1.0
    assert saved[3]["totalScore"] == 0.0
    assert saved[1]["tvlScore"] == 1.0
    # Ineligible farms keep their previous scores
    assert saved[4]["totalScore"] == 0.77


def test_dry_run_leaves_store_untouched(tmp_path):
    store_path = tmp_path / "farms.json"
    write_population(store_path)
    before = store_path.read_text()
    store = FarmDocumentStore(store_path)

    scoring_pass = ScoringOrchestrator(
        source=store, writer=store, dry_run=True
    ).run_scoring_pass()

    assert len(scoring_pass.report.scored) == 3
    assert scoring_pass.report.persisted_count == 0
    assert store_path.read_text() == before


def test_export_writes_scored_farms(tmp_path):
    store_path = tmp_path / "farms.json"
    write_population(store_path)
    store = FarmDocumentStore(store_path)
    export_dir = tmp_path / "export"

    ScoringOrchestrator(
        source=store, writer=store, export_dir=str(export_dir)
    ).run_scoring_pass()

    assert len(glob.glob(str(export_dir / "scored_farms_*.parquet"))) == 1
    assert len(glob.glob(str(export_dir / "scored_farms_*.json"))) == 1


def test_population_fetch_failure_fails_the_pass():
    source = Mock()
    source.fetch_population.side_effect = PopulationFetchError("store offline")
    writer = Mock()

    with pytest.raises(PopulationFetchError):
        ScoringOrchestrator(source=source, writer=writer).run_scoring_pass()
    writer.persist_score.assert_not_called()


def test_scheduler_job_survives_failed_pass():
    orchestrator = Mock()
    orchestrator.run_scoring_pass.side_effect = PopulationFetchError("store offline")
    scheduler = ScoringScheduler(orchestrator, interval_minutes=5)

    assert scheduler.run_scoring_job() is None
    orchestrator.run_scoring_pass.assert_called_once()


def test_scheduler_job_survives_flush_failure():
    orchestrator = Mock()
    orchestrator.run_scoring_pass.side_effect = PersistError("disk full")
    assert ScoringScheduler(orchestrator).run_scoring_job() is None


def test_scheduler_job_survives_unexpected_errors():
    orchestrator = Mock()
    orchestrator.run_scoring_pass.side_effect = RuntimeError("boom")
    assert ScoringScheduler(orchestrator).run_scoring_job() is None


def test_scheduler_registers_job_at_interval():
    orchestrator = Mock()
    scheduler = ScoringScheduler(orchestrator, interval_minutes=15, poll_seconds=0)

    # Stop the loop after its first poll
    with patch.object(scheduler.scheduler, "run_pending", side_effect=scheduler.stop):
        scheduler.start(run_immediately=True)

    orchestrator.run_scoring_pass.assert_called_once()
    assert not scheduler.running


def test_create_orchestrator_uses_store_as_source(tmp_path):
    settings = ScoringSettings(farm_store_path=str(tmp_path / "farms.json"))
    orchestrator = create_orchestrator(settings)

    assert isinstance(orchestrator.source, FarmDocumentStore)
    assert orchestrator.writer is orchestrator.source


def test_create_orchestrator_reads_from_api_when_configured(tmp_path):
    settings = ScoringSettings(
        farm_store_path=str(tmp_path / "farms.json"),
        farms_api_url="https://api.example.org/farms",
        deprecated_farms=[(3, "0xchef")],
    )
    orchestrator = create_orchestrator(settings, dry_run=True)

    assert isinstance(orchestrator.source, FarmsAPIClient)
    assert isinstance(orchestrator.writer, FarmDocumentStore)
    assert orchestrator.engine.rules.deprecated_farms == frozenset({(3, "0xchef")})
    assert orchestrator.get_pipeline_status()["dry_run"] is True


def test_each_pass_scores_the_current_store_contents(tmp_path):
    store_path = tmp_path / "farms.json"
    documents = write_population(store_path)
    store = FarmDocumentStore(store_path)
    orchestrator = ScoringOrchestrator(source=store, writer=store)

    orchestrator.run_scoring_pass()

    # Ingestion refreshes farm 3 and adds farm 5 between passes
    refreshed = json.loads(store_path.read_text())
    refreshed[2]["tvl"] = 50_000_000.0
    refreshed.append(farm_document(farm_id=5, tvl=2_000_000.0))
    store_path.write_text(json.dumps(refreshed))

    second = orchestrator.run_scoring_pass()

    assert [farm.identity.id for farm in second.report.scored] == [1, 2, 3, 5]
    saved = {doc["id"]: doc for doc in json.loads(store_path.read_text())}
    assert len(saved) == len(documents) + 1
    assert saved[3]["tvl"] == 50_000_000.0
    assert saved[3]["tvlScore"] == 1.0
    assert saved[5]["totalScore"] > 0.0
    assert saved[4]["totalScore"] == 0.77
