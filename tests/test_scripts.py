"""
Tests for the operator scripts (demo seeding and engine validation sweep).
"""
from app.schemas.compost_schemas import TaskKind
from app.services.task_service import build_pile_tasks
from scripts.seed_demo_piles import seed_demo_piles
from scripts.validate_eta_engine import generate_report, run_validation


class TestSeedDemoPiles:

    def test_seeds_once(self, store, now):
        assert seed_demo_piles(store, now) == 3
        assert seed_demo_piles(store, now) == 0
        assert sorted(p.name for p in store.list_piles()) == [
            "Backyard Pile",
            "Garden Pile",
            "Hot Pile Express",
        ]

    def test_backyard_pile_needs_turn_and_log(self, store, now):
        seed_demo_piles(store, now)
        backyard = next(s for s in store.snapshots() if s.name == "Backyard Pile")
        kinds = [t.kind for t in build_pile_tasks(backyard, now)]
        assert kinds[:2] == [TaskKind.TURN_PILE, TaskKind.UPDATE_LOG]

    def test_every_demo_pile_has_an_estimate(self, store, now):
        seed_demo_piles(store, now)
        assert all(p.estimated_harvest_at is not None for p in store.list_piles())


class TestValidationSweep:

    def test_no_anomalies(self):
        validation = run_validation(num_tests=100, seed=7)
        assert validation["stats"]["failed"] == 0
        assert validation["anomalies"] == []
        assert "All engine guarantees held." in generate_report(validation)
