"""Tests for the task model (task_engine/model.py)."""

from __future__ import annotations

import pytest

from task_tracker.task_engine.model import (
    Task,
    TaskPriority,
    TaskStatus,
    normalize_changes,
)


def _wire(**overrides):
    data = {
        "id": "42",
        "title": "Write docs",
        "description": "README and API reference",
        "status": "in-progress",
        "priority": "low",
        "dueDate": "2025-02-01",
        "createdAt": "2025-01-05T10:00:00.000Z",
        "updatedAt": "2025-01-06T11:30:00.000Z",
        "tags": ["docs", "docs"],
        "sharedWith": ["a@example.com"],
    }
    data.update(overrides)
    return data


class TestTaskCreation:
    def test_default_values(self) -> None:
        t = Task(title="Test task")
        assert t.title == "Test task"
        assert t.description == ""
        assert t.status == TaskStatus.TODO
        assert t.priority == TaskPriority.MEDIUM
        assert t.tags == []
        assert t.shared_with == []
        assert t.id.isdigit()

    def test_status_cycle_order(self) -> None:
        assert TaskStatus.TODO.next() == TaskStatus.IN_PROGRESS
        assert TaskStatus.IN_PROGRESS.next() == TaskStatus.COMPLETED
        assert TaskStatus.COMPLETED.next() == TaskStatus.TODO


class TestTaskSerialization:
    def test_to_dict_uses_wire_keys_and_string_tags(self) -> None:
        t = Task(
            id="7",
            title="Ship",
            status=TaskStatus.COMPLETED,
            priority=TaskPriority.HIGH,
            due_date="2025-03-01",
            tags=["release"],
            shared_with=["x@y.com"],
        )
        d = t.to_dict()
        assert list(d) == [
            "id", "title", "description", "status", "priority",
            "dueDate", "createdAt", "updatedAt", "tags", "sharedWith",
        ]
        assert d["status"] == "completed"
        assert d["priority"] == "high"
        assert d["dueDate"] == "2025-03-01"
        assert d["sharedWith"] == ["x@y.com"]

    def test_from_dict_round_trip(self) -> None:
        data = _wire()
        t = Task.from_dict(data)
        assert t.status == TaskStatus.IN_PROGRESS
        assert t.priority == TaskPriority.LOW
        assert t.tags == ["docs", "docs"]
        assert t.to_dict() == data

    def test_to_dict_does_not_share_lists(self) -> None:
        t = Task(title="x", tags=["a"])
        t.to_dict()["tags"].append("b")
        assert t.tags == ["a"]

    def test_from_dict_rejects_unknown_status(self) -> None:
        with pytest.raises(ValueError, match="status"):
            Task.from_dict(_wire(status="done"))

    def test_from_dict_rejects_missing_field(self) -> None:
        data = _wire()
        del data["sharedWith"]
        with pytest.raises(ValueError, match="sharedWith"):
            Task.from_dict(data)

    def test_validate_dict_collects_every_problem(self) -> None:
        errors = Task.validate_dict(_wire(priority="urgent", tags="docs", title=3))
        assert len(errors) == 3

    def test_validate_dict_rejects_non_object(self) -> None:
        assert Task.validate_dict(["not", "a", "task"]) == ["Expected an object, got list"]

    def test_copy_is_independent(self) -> None:
        t = Task.from_dict(_wire())
        c = t.copy()
        c.shared_with.append("b@example.com")
        assert t.shared_with == ["a@example.com"]
        assert c == Task.from_dict(_wire(sharedWith=["a@example.com", "b@example.com"]))


class TestNormalizeChanges:
    def test_accepts_wire_and_attribute_names(self) -> None:
        changes = normalize_changes({"dueDate": "2025-05-05", "status": "completed"})
        assert changes == {"due_date": "2025-05-05", "status": TaskStatus.COMPLETED}

    def test_drops_immutable_fields(self) -> None:
        changes = normalize_changes({"id": "x", "createdAt": "y", "updated_at": "z", "title": "t"})
        assert changes == {"title": "t"}

    def test_rejects_unknown_field(self) -> None:
        with pytest.raises(ValueError, match="Unknown task field"):
            normalize_changes({"owner": "me"})

    def test_rejects_bad_priority(self) -> None:
        with pytest.raises(ValueError, match="priority"):
            normalize_changes({"priority": "urgent"})

    def test_rejects_bad_due_date(self) -> None:
        with pytest.raises(ValueError, match="dueDate"):
            normalize_changes({"due_date": "next week"})

    def test_none_or_empty_due_date_clears_it(self) -> None:
        assert normalize_changes({"dueDate": None}) == {"due_date": ""}
        assert normalize_changes({"dueDate": ""}) == {"due_date": ""}

    @pytest.mark.parametrize("value", [None, 42, ["x"]])
    def test_rejects_non_string_text_fields(self, value) -> None:
        with pytest.raises(ValueError, match="description"):
            normalize_changes({"description": value})
        with pytest.raises(ValueError, match="title"):
            normalize_changes({"title": value})

    def test_deduplicates_shared_with(self) -> None:
        changes = normalize_changes({"sharedWith": ["a@b.co", "a@b.co", "c@d.co"]})
        assert changes["shared_with"] == ["a@b.co", "c@d.co"]
