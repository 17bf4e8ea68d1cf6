"""Unit tests for Pydantic models and task ids."""

import pytest
from tsk.models import AddPosition, Task, TaskId
from tsk.recovery import MalformedIdError


class TestTaskId:
    """Test TaskId parsing and validation."""

    def test_valid_ids(self):
        """Test parsing ids of several depths."""
        assert TaskId("2").parts == (2,)
        assert TaskId("1.3").parts == (1, 3)
        assert TaskId("2.1.4").parts == (2, 1, 4)
        assert TaskId(" 3 ").parts == (3,)
        assert TaskId(5).parts == (5,)
        assert TaskId((1, 2)).parts == (1, 2)

    def test_invalid_ids(self):
        """Test ids with empty, zero or non-numeric components."""
        for raw in ["", "0", "1.0", "a", "1.b", "1..2", ".1", "1.", "-1", "1.-2"]:
            with pytest.raises(MalformedIdError, match="Invalid task id"):
                TaskId(raw)

        with pytest.raises(MalformedIdError):
            TaskId((1, 0))

    def test_malformed_id_is_value_error(self):
        """Callers catching ValueError still see malformed ids."""
        with pytest.raises(ValueError):
            TaskId("x")

    def test_equality_on_parsed_components(self):
        """Leading zeros name the same slot."""
        assert TaskId("02") == TaskId("2")
        assert TaskId("1.03") == TaskId("1.3")
        assert hash(TaskId("02")) == hash(TaskId("2"))
        assert TaskId("1.2") != TaskId("1.2.1")
        assert str(TaskId("02.01")) == "2.1"

    def test_structure_helpers(self):
        """Test parent, index, depth and ancestry."""
        task_id = TaskId("2.1.4")
        assert task_id.depth == 2
        assert task_id.index == 3
        assert task_id.parent == TaskId("2.1")
        assert TaskId("2").parent is None
        assert task_id.ancestors() == [TaskId("2.1"), TaskId("2")]
        assert TaskId("3").ancestors() == []
        assert TaskId("2").child(5) == TaskId("2.5")

        assert TaskId("2").is_ancestor_of(task_id)
        assert TaskId("2.1").is_ancestor_of(task_id)
        assert not task_id.is_ancestor_of(task_id)
        assert not TaskId("2.2").is_ancestor_of(task_id)
        assert not TaskId("1").is_ancestor_of(TaskId("12"))

    def test_ordering(self):
        """Ids sort by their numeric path."""
        ids = [TaskId("10"), TaskId("2.1"), TaskId("2"), TaskId("1.5")]
        assert [str(i) for i in sorted(ids)] == ["1.5", "2", "2.1", "10"]


class TestTask:
    """Test Task model."""

    def test_valid_task(self):
        """Test creating a leaf task."""
        task = Task(contents="Write report")
        assert task.contents == "Write report"
        assert task.done is False
        assert task.children == []

    def test_task_with_children(self):
        """Test task with nested subtasks."""
        task = Task(
            contents="Parent",
            children=[
                Task(contents="Sub 1", children=[Task(contents="Sub sub")]),
                Task(contents="Sub 2", done=True),
            ]
        )
        assert task.children[0].children[0].contents == "Sub sub"
        assert task.count() == 4

    def test_legacy_subtasks_key(self):
        """Records written with a `subtasks` key load as children."""
        task = Task.model_validate({
            "contents": "one",
            "done": False,
            "subtasks": [{"contents": "a", "done": True}],
        })
        assert task.children[0].contents == "a"
        assert task.children[0].done is True
        assert "children" in task.model_dump()

    def test_missing_contents(self):
        """Test that contents are required."""
        with pytest.raises(ValueError):
            Task.model_validate({"done": True})

    def test_mark_all(self):
        """Test marking a whole subtree."""
        task = Task(contents="p", children=[Task(contents="c", children=[Task(contents="g")])])
        task.mark_all(True)
        assert task.done and task.children[0].done and task.children[0].children[0].done

    def test_roll_up(self):
        """Parent done flag follows its direct children; leaves keep theirs."""
        task = Task(contents="p", children=[Task(contents="a", done=True), Task(contents="b")])
        assert task.roll_up() is False
        task.children[1].done = True
        assert task.roll_up() is True

        leaf = Task(contents="leaf", done=True)
        assert leaf.roll_up() is True


def test_add_position_values():
    """Test the add position enum values."""
    assert AddPosition("top") is AddPosition.TOP
    assert AddPosition("bottom") is AddPosition.BOTTOM
