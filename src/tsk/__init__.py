"""
tsk - a personal task-list manager.

Tasks form a tree of any depth and are addressed by positional ids such as
`2`, `1.3` or `2.1.4`, recomputed from the current order on every run.
"""

from .version import VERSION
from .models import AddPosition, Task, TaskId
from .tree import TaskTree
from .data import DataCore

__version__ = VERSION

__all__ = [
    "VERSION",
    "AddPosition",
    "Task",
    "TaskId",
    "TaskTree",
    "DataCore",
]
