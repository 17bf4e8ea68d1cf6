"""
DataCore - locating, loading and saving the task file.

The engine never touches storage: a TaskContext loads the tree once, hands it
to the caller for a single operation, and writes it back only when that
operation finished without raising.
"""
import os
from pathlib import Path
from typing import Optional, Union
from tsk.recovery import CorruptionError
from .io import atomic_write, data_type_for, load_records
from tsk.models import Task
from tsk.tree import TaskTree
from tsk.logs import get_logger

log = get_logger("data")

PLACEHOLDER_TASK = "Create a new task file"

class TaskContext:
    """Loaded task file; saves the tree back on a clean exit."""

    def __init__(self, file_path: Path):
        self.file_path = file_path
        self.data_type = data_type_for(file_path)
        self.tree = self._load()

    def _load(self) -> TaskTree:
        records = load_records(self.file_path, self.data_type)
        if records is None:
            log.info(f"No tasks in {self.file_path}, starting a new task file")
            return DataCore.placeholder_tree()

        try:
            return TaskTree.from_records(records)
        except CorruptionError as e:
            raise CorruptionError(f"Invalid task file {self.file_path}: {e}") from e

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - save only if the operation succeeded."""
        if exc_type is None:
            self.save_all()
        else:
            log.debug(f"Not saving {self.file_path}: {exc_type.__name__}")

    def save_all(self):
        """Save the tree back to its file."""
        atomic_write(self.data_type, self.file_path, self.tree.to_records(), create_dirs=True)

class DataCore:
    DATA_DIR = Path.home() / ".local" / "share" / "tsk"
    TASK_FILE_NAME = "tasks.json"
    FILE_ENV_VAR = "TSK_FILE"

    @classmethod
    def get_task_file_path(cls, file_path: Optional[Union[Path, str]] = None) -> Path:
        """Explicit path first, then $TSK_FILE, then the default data directory."""
        if file_path:
            return Path(file_path).expanduser()
        env_path = os.getenv(cls.FILE_ENV_VAR)
        if env_path:
            return Path(env_path).expanduser()
        return cls.DATA_DIR / cls.TASK_FILE_NAME

    @classmethod
    def get_context(cls, file_path: Optional[Union[Path, str]] = None) -> TaskContext:
        path = cls.get_task_file_path(file_path)
        log.debug(f"Using task file {path}")
        return TaskContext(path)

    @staticmethod
    def placeholder_tree() -> TaskTree:
        return TaskTree(tasks=[Task(contents=PLACEHOLDER_TASK, done=True)])
