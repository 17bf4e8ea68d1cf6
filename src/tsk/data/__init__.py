"""
Data management submodule: task file storage.
"""

from .core import DataCore, TaskContext
from .io import DATA_JSON, DATA_TEXT, DATA_YAML, atomic_write, load_records

__all__ = [
    'DataCore',
    'TaskContext',
    'DATA_JSON',
    'DATA_TEXT',
    'DATA_YAML',
    'atomic_write',
    'load_records',
]
