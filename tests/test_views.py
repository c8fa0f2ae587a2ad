import json
from datetime import date, datetime, timedelta, timezone

import pytest

from src.taskboard.errors import ValidationError
from src.taskboard.models import normalize, to_record
from src.taskboard.views import ViewQuery, count, is_due_soon, is_overdue, make_query, project
from src.taskboard.workflow import CLASSIC, URGENT

TODAY = date(2025, 6, 15)
BASE = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def task(task_id, status="backlog", order=0, minutes=0, **fields):
    raw = {
        "id": task_id,
        "title": fields.pop("title", task_id),
        "status": status,
        "order": order,
        "createdAt": (BASE + timedelta(minutes=minutes)).isoformat(),
    }
    raw.update(fields)
    return normalize(raw, config=URGENT)


@pytest.fixture
def tasks():
    return [
        task("rent", "backlog", 1, 1, priority="high", tags=["home", "bills"], dueDate="2025-06-14"),
        task("gym", "backlog", 0, 2, priority="low", tags=["health"], dueDate="2025-06-15"),
        task("report", "in-progress", 0, 3, priority="urgent", description="Quarterly numbers", tags=["work"],
             dueDate="2025-06-22"),
        task("slides", "in-progress", 1, 4, priority="high", tags=["work", "talk"], dueDate="2025-06-23"),
        task("vacation", "blocked", 0, 5, priority="medium"),
        task("taxes", "done", 0, 6, priority="high", tags=["home", "bills"], dueDate="2025-06-01"),
    ]


def ids(view, status):
    return [t["id"] for t in view[status]]


class TestFilters:
    def test_no_filter_groups_every_status_in_manual_order(self, tasks):
        view = project(tasks, ViewQuery(), URGENT, TODAY)
        assert list(view) == list(URGENT.statuses)
        assert ids(view, "backlog") == ["gym", "rent"]
        assert ids(view, "in-progress") == ["report", "slides"]
        assert count(tasks, ViewQuery(), URGENT, TODAY) == {"backlog": 2, "in-progress": 2, "blocked": 1, "done": 1}

    def test_priority(self, tasks):
        view = project(tasks, ViewQuery(priority="high"), URGENT, TODAY)
        assert ids(view, "backlog") == ["rent"]
        assert ids(view, "in-progress") == ["slides"]
        assert ids(view, "done") == ["taxes"]

    def test_global_status_filter_empties_other_columns(self, tasks):
        counts = count(tasks, ViewQuery(status="in-progress"), URGENT, TODAY)
        assert counts == {"backlog": 0, "in-progress": 2, "blocked": 0, "done": 0}

    def test_search_covers_title_description_and_tags(self, tasks):
        assert ids(project(tasks, ViewQuery(search="quarterly"), URGENT, TODAY), "in-progress") == ["report"]
        assert ids(project(tasks, ViewQuery(search="TALK"), URGENT, TODAY), "in-progress") == ["slides"]
        assert ids(project(tasks, ViewQuery(search="gy"), URGENT, TODAY), "backlog") == ["gym"]

    def test_tags_require_every_tag(self, tasks):
        view = project(tasks, ViewQuery(tags=("work", "talk")), URGENT, TODAY)
        assert ids(view, "in-progress") == ["slides"]
        view = project(tasks, ViewQuery(tags=("home", "bills")), URGENT, TODAY)
        assert ids(view, "backlog") == ["rent"]
        assert ids(view, "done") == ["taxes"]

    @pytest.mark.parametrize(
        "bucket,expected",
        [
            ("none", {"vacation"}),
            ("overdue", {"rent"}),
            ("today", {"gym"}),
            ("week", {"gym", "report"}),
        ],
    )
    def test_due_buckets(self, tasks, bucket, expected):
        view = project(tasks, ViewQuery(due=bucket), URGENT, TODAY)
        assert {t["id"] for column in view.values() for t in column} == expected

    def test_clauses_are_and_combined(self, tasks):
        query = ViewQuery(priority="high", tags=("bills",), due="overdue")
        view = project(tasks, query, URGENT, TODAY)
        assert {t["id"] for column in view.values() for t in column} == {"rent"}


class TestSorting:
    def test_priority_descending_then_created(self, tasks):
        view = project(tasks, ViewQuery(sort="priority"), URGENT, TODAY)
        assert ids(view, "in-progress") == ["report", "slides"]
        assert ids(view, "backlog") == ["rent", "gym"]

    def test_due_date_ascending_with_missing_last(self):
        items = [
            task("none1", minutes=1),
            task("late", minutes=2, dueDate="2025-07-01"),
            task("soon", minutes=3, dueDate="2025-06-16"),
            task("none0", minutes=0),
        ]
        view = project(items, ViewQuery(sort="due_date"), URGENT, TODAY)
        assert ids(view, "backlog") == ["soon", "late", "none0", "none1"]

    def test_created_at(self, tasks):
        view = project(tasks, ViewQuery(sort="created_at"), URGENT, TODAY)
        assert ids(view, "backlog") == ["rent", "gym"]

    def test_title_is_case_insensitive(self):
        items = [task("1", title="banana", minutes=0), task("2", title="Apple", minutes=1), task("3", title="cherry")]
        view = project(items, ViewQuery(sort="title"), URGENT, TODAY)
        assert [t["title"] for t in view["backlog"]] == ["Apple", "banana", "cherry"]

    def test_title_sorts_accented_letters_with_their_base_letter(self):
        items = [task("z", title="zebra"), task("e", title="Éclair"), task("a", title="apple"), task("f", title="eclair")]
        view = project(items, ViewQuery(sort="title"), URGENT, TODAY)
        assert [t["title"] for t in view["backlog"]] == ["apple", "eclair", "Éclair", "zebra"]

    def test_manual_ties_break_by_created_at(self):
        items = [task("later", order=0, minutes=5), task("earlier", order=0, minutes=1)]
        view = project(items, ViewQuery(), URGENT, TODAY)
        assert ids(view, "backlog") == ["earlier", "later"]


class TestNonDestructive:
    def test_projection_does_not_touch_collection(self, tasks):
        before = json.dumps([to_record(t) for t in tasks])
        for query in (ViewQuery(sort="title"), ViewQuery(priority="high", due="week"), ViewQuery(sort="priority")):
            view = project(tasks, query, URGENT, TODAY)
            for column in view.values():
                for t in column:
                    t["order"] = 99
                    t["tags"].append("mutated")
        assert json.dumps([to_record(t) for t in tasks]) == before


class TestBadges:
    def test_overdue_ignores_terminal(self, tasks):
        by_id = {t["id"]: t for t in tasks}
        assert is_overdue(by_id["rent"], TODAY, CLASSIC)
        assert not is_overdue(by_id["taxes"], TODAY, CLASSIC)
        assert not is_overdue(by_id["vacation"], TODAY, CLASSIC)

    def test_due_soon_window(self, tasks):
        by_id = {t["id"]: t for t in tasks}
        assert is_due_soon(by_id["gym"], TODAY, CLASSIC)
        assert not is_due_soon(by_id["report"], TODAY, CLASSIC)
        assert not is_due_soon(by_id["rent"], TODAY, CLASSIC)


class TestMakeQuery:
    def test_normalizes_inputs(self):
        query = make_query(search="  Report ", tags="Work, TALK", sort="title")
        assert query == ViewQuery(search="report", tags=("work", "talk"), sort="title")
        assert make_query() == ViewQuery()

    @pytest.mark.parametrize(
        "kwargs",
        [{"due": "tomorrow"}, {"sort": "random"}, {"status": "archived"}, {"priority": "urgent"}],
    )
    def test_rejects_unknown_values(self, kwargs):
        with pytest.raises(ValidationError):
            make_query(config=CLASSIC, **kwargs)
