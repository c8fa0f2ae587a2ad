import random
from datetime import datetime, timedelta, timezone

import pytest

from src.taskboard.errors import NotFoundError, ValidationError
from src.taskboard.models import normalize
from src.taskboard.ordering import OrderingEngine
from src.taskboard.workflow import CLASSIC, REVIEW

NOW = datetime(2025, 6, 15, 9, 0, 0, tzinfo=timezone.utc)


def make_task(task_id, status="backlog", order=0):
    return normalize(
        {"id": task_id, "title": task_id.upper(), "status": status, "order": order},
        now=NOW - timedelta(days=1),
    )


def ids_in(engine, tasks, status):
    return [t["id"] for t in engine.group(tasks, status)]


def orders_in(engine, tasks, status):
    return [t["order"] for t in engine.group(tasks, status)]


def assert_dense(engine, tasks):
    for status in engine.config.statuses:
        assert orders_in(engine, tasks, status) == list(range(len(engine.group(tasks, status))))


@pytest.fixture
def engine():
    return OrderingEngine(CLASSIC)


class TestInsertAtHead:
    def test_new_task_first_and_others_shifted(self, engine):
        tasks = []
        engine.insert_at_head(tasks, make_task("t1"), "backlog")
        engine.insert_at_head(tasks, make_task("t2"), "backlog")
        assert ids_in(engine, tasks, "backlog") == ["t2", "t1"]
        assert orders_in(engine, tasks, "backlog") == [0, 1]

    def test_other_groups_untouched(self, engine):
        tasks = [make_task("d1", "done", 0), make_task("d2", "done", 1)]
        engine.insert_at_head(tasks, make_task("n"), "backlog")
        assert [t["order"] for t in tasks if t["status"] == "done"] == [0, 1]

    def test_duplicate_id_rejected(self, engine):
        tasks = [make_task("t1")]
        with pytest.raises(ValidationError):
            engine.insert_at_head(tasks, make_task("t1"), "backlog")

    def test_unknown_status_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.insert_at_head([], make_task("t1"), "archived")


class TestReindex:
    def test_closes_gaps_and_keeps_sequence(self, engine):
        tasks = [make_task("a", order=7), make_task("b", order=2), make_task("c", order=40)]
        engine.reindex(tasks, "backlog")
        assert ids_in(engine, tasks, "backlog") == ["b", "a", "c"]
        assert orders_in(engine, tasks, "backlog") == [0, 1, 2]

    def test_ties_keep_collection_position(self, engine):
        tasks = [make_task("a", order=1), make_task("b", order=1), make_task("c", order=0)]
        engine.reindex(tasks, "backlog")
        assert ids_in(engine, tasks, "backlog") == ["c", "a", "b"]

    def test_idempotent(self, engine):
        tasks = [make_task("a", order=5), make_task("b", order=5), make_task("c", order=1)]
        engine.reindex(tasks, "backlog")
        first = [(t["id"], t["order"]) for t in tasks]
        engine.reindex(tasks, "backlog")
        assert [(t["id"], t["order"]) for t in tasks] == first

    def test_reindex_all_heals_every_group(self, engine):
        tasks = [
            make_task("a", "backlog", 3),
            make_task("b", "done", 9),
            make_task("c", "done", 9),
            make_task("d", "blocked", 1),
        ]
        engine.reindex_all(tasks)
        assert_dense(engine, tasks)


class TestMoveTo:
    def three_in_backlog(self, engine):
        tasks = []
        for tid in ("c", "b", "a"):
            engine.insert_at_head(tasks, make_task(tid), "backlog")
        assert ids_in(engine, tasks, "backlog") == ["a", "b", "c"]
        return tasks

    def test_reorder_within_group(self, engine):
        tasks = self.three_in_backlog(engine)
        engine.move_to(tasks, "a", "backlog", 2, NOW)
        assert ids_in(engine, tasks, "backlog") == ["b", "c", "a"]
        assert orders_in(engine, tasks, "backlog") == [0, 1, 2]

    def test_move_to_same_position_keeps_order(self, engine):
        tasks = self.three_in_backlog(engine)
        engine.move_to(tasks, "b", "backlog", 1, NOW)
        assert ids_in(engine, tasks, "backlog") == ["a", "b", "c"]

    @pytest.mark.parametrize(
        "index,expected",
        [(-5, ["c", "a", "b"]), (0, ["c", "a", "b"]), (2, ["a", "b", "c"]), (3, ["a", "b", "c"]), (99, ["a", "b", "c"])],
    )
    def test_index_is_clamped(self, engine, index, expected):
        tasks = self.three_in_backlog(engine)
        engine.move_to(tasks, "c", "backlog", index, NOW)
        assert ids_in(engine, tasks, "backlog") == expected

    def test_cross_group_move_reindexes_both_groups(self, engine):
        tasks = self.three_in_backlog(engine)
        engine.insert_at_head(tasks, make_task("x"), "in-progress")
        moved = engine.move_to(tasks, "b", "in-progress", 1, NOW)
        assert moved["status"] == "in-progress"
        assert moved["updated_at"] == NOW
        assert ids_in(engine, tasks, "backlog") == ["a", "c"]
        assert ids_in(engine, tasks, "in-progress") == ["x", "b"]
        assert_dense(engine, tasks)

    def test_move_into_empty_group(self, engine):
        tasks = self.three_in_backlog(engine)
        engine.move_to(tasks, "a", "done", 10, NOW)
        assert ids_in(engine, tasks, "done") == ["a"]
        assert orders_in(engine, tasks, "done") == [0]
        assert orders_in(engine, tasks, "backlog") == [0, 1]

    def test_unknown_task(self, engine):
        with pytest.raises(NotFoundError):
            engine.move_to([], "missing", "backlog", 0, NOW)

    def test_unknown_status_leaves_state_alone(self, engine):
        tasks = self.three_in_backlog(engine)
        before = [dict(t) for t in tasks]
        with pytest.raises(ValidationError):
            engine.move_to(tasks, "a", "archived", 0, NOW)
        assert tasks == before


class TestAdvanceStatus:
    def test_follows_adjacency(self, engine):
        tasks = [make_task("a", "backlog"), make_task("i", "in-progress"), make_task("k", "blocked")]
        assert engine.advance_status(tasks, "a", NOW)
        assert engine.advance_status(tasks, "k", NOW)
        assert tasks[0]["status"] == "in-progress"
        assert tasks[2]["status"] == "in-progress"
        assert engine.advance_status(tasks, "i", NOW)
        assert tasks[1]["status"] == "done"
        assert_dense(engine, tasks)

    def test_terminal_is_noop(self, engine):
        tasks = [make_task("d", "done")]
        assert engine.advance_status(tasks, "d", NOW) is False
        assert tasks[0]["status"] == "done"
        assert tasks[0]["updated_at"] is None

    def test_review_variant_adjacency(self):
        engine = OrderingEngine(REVIEW)
        tasks = [make_task("t", "in-progress")]
        engine.advance_status(tasks, "t", NOW)
        assert tasks[0]["status"] == "review"
        engine.advance_status(tasks, "t", NOW)
        assert tasks[0]["status"] == "done"


class TestDelete:
    def test_delete_middle_keeps_sequence(self, engine):
        tasks = [make_task("x", "done", 0), make_task("y", "done", 1), make_task("z", "done", 2)]
        removed = engine.delete(tasks, "y")
        assert removed["id"] == "y"
        assert ids_in(engine, tasks, "done") == ["x", "z"]
        assert orders_in(engine, tasks, "done") == [0, 1]

    def test_delete_unknown(self, engine):
        with pytest.raises(NotFoundError):
            engine.delete([make_task("x")], "nope")

    def test_remove_status(self, engine):
        tasks = [make_task("x", "done", 0), make_task("y", "done", 1), make_task("a", "backlog", 0)]
        assert engine.remove_status(tasks, "done") == 2
        assert [t["id"] for t in tasks] == ["a"]
        assert engine.remove_status(tasks, "done") == 0


class TestDensityUnderRandomOperations:
    def test_groups_stay_dense(self, engine):
        rng = random.Random(1234)
        tasks = []
        counter = 0
        for _ in range(400):
            op = rng.choice(["create", "create", "move", "move", "advance", "delete"])
            if op == "create" or not tasks:
                counter += 1
                engine.insert_at_head(tasks, make_task(f"t{counter}"), rng.choice(CLASSIC.statuses))
            elif op == "move":
                target = rng.choice(tasks)
                engine.move_to(tasks, target["id"], rng.choice(CLASSIC.statuses), rng.randint(-3, 12), NOW)
            elif op == "advance":
                engine.advance_status(tasks, rng.choice(tasks)["id"], NOW)
            else:
                engine.delete(tasks, rng.choice(tasks)["id"])
            assert_dense(engine, tasks)
        assert len({t["id"] for t in tasks}) == len(tasks)
