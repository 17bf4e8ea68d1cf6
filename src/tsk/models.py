from pydantic import AliasChoices, BaseModel, Field
from enum import Enum
from typing import Optional, List, Tuple, Union
import re

from .recovery import MalformedIdError

class AddPosition(Enum):
    TOP = "top"
    BOTTOM = "bottom"

class TaskId:
    """Positional id of a task: a dot-separated path of 1-based indexes ("2", "1.3", "2.1.4")."""

    COMPONENT_PATTERN = re.compile(r'^[0-9]+$')

    def __init__(self, raw: Union[str, int, 'TaskId', Tuple[int, ...], List[int]]):
        if isinstance(raw, TaskId):
            self.raw_id = raw.raw_id
            self.parts = raw.parts
            return
        if isinstance(raw, (tuple, list)):
            self.raw_id = ".".join(str(p) for p in raw)
            self.parts = self._check_parts(tuple(raw))
            return
        self.raw_id = str(raw).strip()
        self.parts = ()
        self._parse()

    def _parse(self):
        """Parse the id into integer components."""
        parts = []
        for component in self.raw_id.split('.'):
            if not self.COMPONENT_PATTERN.match(component):
                raise MalformedIdError(self.raw_id, f"Invalid task id: '{self.raw_id}'")
            parts.append(int(component))
        self.parts = self._check_parts(tuple(parts))

    def _check_parts(self, parts: Tuple[int, ...]) -> Tuple[int, ...]:
        if not parts or any(not isinstance(p, int) or p < 1 for p in parts):
            raise MalformedIdError(self.raw_id, f"Invalid task id: '{self.raw_id}'")
        return parts

    @property
    def depth(self) -> int:
        """Zero for root-level tasks."""
        return len(self.parts) - 1

    @property
    def index(self) -> int:
        """0-based position of the task within its sibling list."""
        return self.parts[-1] - 1

    @property
    def parent(self) -> Optional['TaskId']:
        if len(self.parts) == 1:
            return None
        return TaskId(self.parts[:-1])

    def ancestors(self) -> List['TaskId']:
        """Ids of every ancestor, nearest first."""
        return [TaskId(self.parts[:n]) for n in range(len(self.parts) - 1, 0, -1)]

    def child(self, number: int) -> 'TaskId':
        return TaskId(self.parts + (number,))

    def is_ancestor_of(self, other: 'TaskId') -> bool:
        return len(self.parts) < len(other.parts) and other.parts[:len(self.parts)] == self.parts

    def __eq__(self, other) -> bool:
        if not isinstance(other, TaskId):
            return NotImplemented
        return self.parts == other.parts

    def __hash__(self) -> int:
        return hash(self.parts)

    def __lt__(self, other: 'TaskId') -> bool:
        return self.parts < other.parts

    def __str__(self) -> str:
        return ".".join(str(p) for p in self.parts)

    def __repr__(self) -> str:
        return f"TaskId('{self}')"

class Task(BaseModel):
    """A node of the task tree."""

    contents: str = Field(description="Free-form description of the task")
    done: bool = Field(default=False, description="Whether the task is complete")
    children: List['Task'] = Field(
        default_factory=list,
        validation_alias=AliasChoices('children', 'subtasks'),
        description="Ordered list of subtasks"
    )

    def mark_all(self, done: bool = True):
        """Set the done flag on this task and every descendant."""
        self.done = done
        for child in self.children:
            child.mark_all(done)

    def roll_up(self) -> bool:
        """Recompute the done flag from the direct children. Leaves keep their flag."""
        if self.children:
            self.done = all(child.done for child in self.children)
        return self.done

    def count(self) -> int:
        """Number of tasks in this subtree, this one included."""
        return 1 + sum(child.count() for child in self.children)

Task.model_rebuild()
