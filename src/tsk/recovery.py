class TskError(Exception):
    """Base exception for all tsk errors."""
    pass

class RecoverableError(TskError):
    """An error that can be recovered from without data loss."""
    pass

class FatalError(TskError):
    """An error that requires application termination or major intervention."""
    pass

class CorruptionError(FatalError):
    """Corrupted Data Error - from syntax errors in data formats, to just unknown data"""
    pass

class FileOperationError(RecoverableError):
    """File operation failed but can be retried."""
    pass

class TaskTreeError(RecoverableError):
    """An operation on the task tree was rejected. The tree is left untouched."""
    pass

class TaskIdError(TaskTreeError):
    """A task id could not be resolved."""

    def __init__(self, task_id, message: str):
        super().__init__(message)
        self.task_id = task_id

class MalformedIdError(TaskIdError, ValueError):
    """A task id has an empty, zero or non-numeric component."""
    pass

class IdOutOfRangeError(TaskIdError, IndexError):
    """A task id component points past the end of its sibling list."""
    pass

class EmptyTreeError(TaskTreeError):
    """An id was addressed on a tree with no tasks."""
    pass

class InvalidOperationError(TaskTreeError):
    """ The ids resolve, but the operation would break the tree (e.g. moving a task into itself) """
    pass
