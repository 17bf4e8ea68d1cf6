"""
TaskTree - the task tree engine.

Owns the ordered root list of tasks, resolves positional ids into tree
locations and implements the structural operations. Every operation resolves
all of its ids before touching the tree, so a rejected operation leaves the
tree exactly as it was.
"""
import json
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import click
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from tsk.logs import get_logger
from tsk.models import AddPosition, Task, TaskId
from tsk.recovery import (
    CorruptionError,
    EmptyTreeError,
    IdOutOfRangeError,
    InvalidOperationError,
)

log = get_logger("tree")

IdLike = Union[TaskId, str, int]

_records = TypeAdapter(List[Task])

class TaskTree(BaseModel):
    """The full task list of one task file."""

    tasks: List[Task] = Field(
        default_factory=list,
        description="Root-level tasks, in priority order"
    )

    # -------------------- load / serialize --------------------

    @classmethod
    def load(cls, data: Union[bytes, str]) -> 'TaskTree':
        """Build a tree from JSON: a list of task records, or an object with a `tasks` list."""
        try:
            records = json.loads(data) if data.strip() else None
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise CorruptionError(f"Task data is not valid UTF-8 JSON: {e}") from e
        return cls.from_records(records)

    def serialize(self) -> bytes:
        return _records.dump_json(self.tasks, indent=2)

    @classmethod
    def from_records(cls, records: Union[List[Dict[str, Any]], Dict[str, Any], None]) -> 'TaskTree':
        if records is None:
            return cls()
        if isinstance(records, dict):
            records = records.get("tasks", [])
        try:
            return cls(tasks=_records.validate_python(records))
        except ValidationError as e:
            raise CorruptionError(f"Task data has an invalid structure: {e}") from e

    def to_records(self) -> List[Dict[str, Any]]:
        return _records.dump_python(self.tasks, mode='json')

    # -------------------- id resolution --------------------

    def __len__(self) -> int:
        return len(self.tasks)

    def _siblings(self, parent_id: Optional[TaskId]) -> List[Task]:
        """The list a task with the given parent lives in."""
        if parent_id is None:
            return self.tasks
        return self.get(parent_id).children

    def get(self, task_id: IdLike) -> Task:
        """Resolve an id to the task it names."""
        task_id = TaskId(task_id)
        if not self.tasks:
            raise EmptyTreeError("The task list is empty")

        siblings = self.tasks
        task = None
        for depth, number in enumerate(task_id.parts):
            if number > len(siblings):
                raise IdOutOfRangeError(
                    task_id,
                    f"Invalid task id: '{task_id}' (level {depth + 1} has {len(siblings)} tasks)"
                )
            task = siblings[number - 1]
            siblings = task.children
        return task

    def _slot(self, task_id: TaskId) -> Tuple[List[Task], int]:
        """Resolve an insertion slot. The last component may be one past the end."""
        if not self.tasks:
            raise EmptyTreeError("The task list is empty")
        siblings = self._siblings(task_id.parent)
        if task_id.index > len(siblings):
            raise IdOutOfRangeError(task_id, f"Invalid task id: '{task_id}'")
        return siblings, task_id.index

    def _locate(self, task_id: TaskId) -> Tuple[List[Task], int]:
        """Resolve an existing task to its sibling list and index."""
        self.get(task_id)
        return self._siblings(task_id.parent), task_id.index

    def _ancestor_tasks(self, task_id: TaskId) -> List[Task]:
        """Tasks above the given id, nearest first."""
        return [self.get(ancestor) for ancestor in task_id.ancestors()]

    def _reopen(self, task_id: Optional[TaskId]):
        """Force a task and all of its ancestors back to not done."""
        while task_id is not None:
            self.get(task_id).done = False
            task_id = task_id.parent

    # -------------------- operations --------------------

    def add(self, content: str, position: AddPosition = AddPosition.TOP,
            parent_id: Optional[IdLike] = None) -> TaskId:
        """Insert a new task at the top or bottom of the root list or a parent's subtasks."""
        parent_id = TaskId(parent_id) if parent_id is not None else None
        siblings = self._siblings(parent_id)
        task = Task(contents=content)

        if position == AddPosition.TOP:
            siblings.insert(0, task)
            number = 1
        else:
            siblings.append(task)
            number = len(siblings)

        self._reopen(parent_id)
        new_id = parent_id.child(number) if parent_id is not None else TaskId(number)
        log.debug(f"Added task {new_id}: {content!r}")
        return new_id

    def mark(self, task_ids: Iterable[IdLike], done: bool = True):
        """
        Set the done flag on every addressed task.

        Marking done cascades to all descendants; marking undone does not.
        Afterwards every ancestor of an addressed task is recomputed from its
        direct children, deepest first.
        """
        if isinstance(task_ids, (str, int, TaskId)):
            task_ids = [task_ids]
        targets = [(TaskId(i), self.get(i)) for i in task_ids]

        for task_id, task in targets:
            if done:
                task.mark_all(True)
            else:
                task.done = False

        ancestors = {a for task_id, _ in targets for a in task_id.ancestors()}
        for ancestor in sorted(ancestors, key=lambda a: a.depth, reverse=True):
            self.get(ancestor).roll_up()

        log.debug(f"Marked {', '.join(str(i) for i, _ in targets)} as {'done' if done else 'not done'}")

    def move(self, from_id: IdLike, to_id: IdLike):
        """
        Move a task, with its subtasks, to the slot named by `to_id`.

        `to_id` is read against the tree as it is before the move; its last
        component may be one past the end of the destination list. Within a
        single parent, moving a task forward lands it before the task that
        currently holds `to_id`.
        """
        from_id, to_id = TaskId(from_id), TaskId(to_id)
        source, from_index = self._locate(from_id)
        if from_id == to_id:
            return
        if from_id.is_ancestor_of(to_id):
            raise InvalidOperationError(f"Cannot move task {from_id} into its own subtasks")
        destination, to_index = self._slot(to_id)
        # Captured before removal, while to_id still names them
        new_ancestors = self._ancestor_tasks(to_id)

        task = source.pop(from_index)
        if from_id.parent == to_id.parent and from_index < to_index:
            to_index -= 1
        destination.insert(to_index, task)
        if not task.done:
            _reopen_tasks(new_ancestors)
        log.debug(f"Moved task {from_id} to {to_id}")

    def swap(self, first_id: IdLike, second_id: IdLike):
        """Exchange the positions of two tasks. Each keeps its own subtasks."""
        first_id, second_id = TaskId(first_id), TaskId(second_id)
        first_list, first_index = self._locate(first_id)
        second_list, second_index = self._locate(second_id)
        if first_id == second_id:
            return
        if first_id.is_ancestor_of(second_id) or second_id.is_ancestor_of(first_id):
            raise InvalidOperationError(f"Cannot swap task {first_id} with {second_id}: one contains the other")
        first_ancestors = self._ancestor_tasks(first_id)
        second_ancestors = self._ancestor_tasks(second_id)

        first, second = first_list[first_index], second_list[second_index]
        first_list[first_index], second_list[second_index] = second, first
        if not second.done:
            _reopen_tasks(first_ancestors)
        if not first.done:
            _reopen_tasks(second_ancestors)
        log.debug(f"Swapped tasks {first_id} and {second_id}")

    def append(self, task_id: IdLike, text: str):
        """Add text to the end of a task's contents."""
        task_id = TaskId(task_id)
        task = self.get(task_id)
        task.contents = f"{task.contents} {text}"
        self._reopen(task_id)
        log.debug(f"Appended to task {task_id}")

    def edit(self, task_id: IdLike, new_content: str):
        """Replace a task's contents."""
        task_id = TaskId(task_id)
        task = self.get(task_id)
        task.contents = new_content
        self._reopen(task_id)
        log.debug(f"Edited task {task_id}")

    def delete(self, task_id: IdLike) -> Task:
        """Remove a task and its subtasks."""
        task_id = TaskId(task_id)
        siblings, index = self._locate(task_id)
        task = siblings.pop(index)
        log.debug(f"Deleted task {task_id} ({task.count()} tasks removed)")
        return task

    def clear_done(self) -> int:
        """Remove every done task at every depth. Returns how many tasks were removed."""
        before = self.count()
        self.tasks = _without_done(self.tasks)
        removed = before - self.count()
        log.debug(f"Cleared {removed} done tasks")
        return removed

    # -------------------- traversal --------------------

    def count(self) -> int:
        """Number of tasks at every depth."""
        return sum(task.count() for task in self.tasks)

    def walk(self) -> Iterator[Tuple[TaskId, Task]]:
        """Yield every task with its id, depth first."""
        stack = [(TaskId(n), task) for n, task in reversed(list(enumerate(self.tasks, start=1)))]
        while stack:
            task_id, task = stack.pop()
            yield task_id, task
            stack.extend(
                (task_id.child(n), child)
                for n, child in reversed(list(enumerate(task.children, start=1)))
            )

    def render(self, colored: bool = True) -> List[str]:
        """One display line per task: indented id, done mark, contents."""
        lines = []
        for task_id, task in self.walk():
            mark = "[X]" if task.done else "[ ]"
            text = f"{mark} {task.contents}"
            if colored:
                text = click.style(text, fg="green" if task.done else "red")
            indent = "\t" * task_id.depth
            lines.append(f"{indent}{task_id}. {text}")
        return lines


def _reopen_tasks(tasks: List[Task]):
    for task in tasks:
        task.done = False


def _without_done(tasks: List[Task]) -> List[Task]:
    kept = [task for task in tasks if not task.done]
    for task in kept:
        task.children = _without_done(task.children)
    return kept
