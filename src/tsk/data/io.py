import tempfile, yaml, json, os, re
from typing import Union, Dict, Any, List, Optional
from pathlib import Path
from tsk.recovery import FileOperationError, FatalError, CorruptionError
from tsk.logs import get_logger

log = get_logger("data.io")

DATA_YAML = 0
DATA_JSON = 1
DATA_TEXT = 2

SUFFIX_FORMATS = {
    ".json": DATA_JSON,
    ".yml": DATA_YAML,
    ".yaml": DATA_YAML,
    ".txt": DATA_TEXT,
    ".md": DATA_TEXT,
}

Records = List[Dict[str, Any]]

TEXT_LINE_PATTERN = re.compile(r'^(?P<indent>\t*)\[(?P<mark>[ xX])\] ?(?P<contents>.*)$')

# Contents are kept on one line: backslash, newline and carriage return are escaped
TEXT_ESCAPES = {"\\": "\\\\", "\n": "\\n", "\r": "\\r"}
TEXT_UNESCAPES = {"\\": "\\", "n": "\n", "r": "\r"}
TEXT_ESCAPE_PATTERN = re.compile(r'\\(.)')

def data_type_for(file_path: Union[Path, str]) -> int:
    """Pick the storage format from a file suffix. Unknown suffixes are stored as JSON."""
    return SUFFIX_FORMATS.get(Path(file_path).suffix.lower(), DATA_JSON)

def escape_text(contents: str) -> str:
    return "".join(TEXT_ESCAPES.get(char, char) for char in contents)

def unescape_text(contents: str) -> str:
    """Undo `escape_text`. Unknown escapes are left as written."""
    return TEXT_ESCAPE_PATTERN.sub(lambda m: TEXT_UNESCAPES.get(m.group(1), m.group(0)), contents)

def dump_text(records: Records) -> str:
    """Render task records as `[ ] text` lines, one tab of indent per depth level."""
    lines = []

    def _dump(tasks: Records, depth: int):
        for task in tasks:
            mark = "X" if task.get("done") else " "
            lines.append("\t" * depth + f"[{mark}] {escape_text(task['contents'])}")
            _dump(task.get("children", []), depth + 1)

    _dump(records, 0)
    return "".join(f"{line}\n" for line in lines)

def load_text(text: str) -> Records:
    """Parse `[ ] text` lines back into nested task records."""
    records: Records = []
    # stack[d] is the list new tasks at depth d are appended to
    stack: List[Records] = [records]

    for number, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue
        match = TEXT_LINE_PATTERN.match(line.rstrip("\r"))
        if not match:
            raise CorruptionError(f"Line {number} is not a task line: {line!r}")

        depth = len(match.group("indent"))
        if depth > len(stack) - 1:
            raise CorruptionError(f"Line {number} is indented past its parent task: {line!r}")
        del stack[depth + 1:]

        task = {
            "contents": unescape_text(match.group("contents")),
            "done": match.group("mark") != " ",
            "children": [],
        }
        stack[depth].append(task)
        stack.append(task["children"])

    return records

def encode(data_type: int, records: Records) -> str:
    if data_type == DATA_YAML:
        return yaml.safe_dump(records, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True)
    elif data_type == DATA_JSON:
        return json.dumps(records, indent=2, ensure_ascii=False)
    elif data_type == DATA_TEXT:
        return dump_text(records)
    raise FatalError("Unsupported Data Format")

def decode(data_type: int, text: str) -> Optional[Records]:
    """Parse file contents into task records. Blank contents decode to None."""
    if not text.strip():
        return None
    if data_type == DATA_YAML:
        return yaml.safe_load(text)
    elif data_type == DATA_JSON:
        return json.loads(text)
    elif data_type == DATA_TEXT:
        return load_text(text)
    raise FatalError("Unsupported Data Format")

def _cleanup(temp_path: Optional[str]):
    if temp_path is not None and os.path.exists(temp_path):
        try:
            os.unlink(temp_path)
            log.debug(f"Cleaned up temporary file: {temp_path}")
        except OSError as cleanup_error:
            # Don't raise while handling another error, just log
            log.warning(f"Could not clean up temp file {temp_path}: {cleanup_error}")

def _create_dirs(file_path : Path):
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, PermissionError) as e:
        error_msg = f"Cannot create directory {file_path.parent}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def atomic_write(data_type : int, file_path : Union[Path, str], data : Records, create_dirs : bool = False):
    """
    Serialize and save task records using atomic updates.
    """
    file_path = Path(file_path)
    temp_path = None

    try:
        if create_dirs:
            _create_dirs(file_path)

        # Serialize first so a bad tree never truncates the file
        contents = encode(data_type, data)

        # Create temporary file in the same directory as target for atomicity
        with tempfile.NamedTemporaryFile(mode='w', encoding='utf-8', dir=file_path.parent, prefix=f".{file_path.name}.", suffix='.tmp', delete=False) as temp_file:
            temp_path = temp_file.name
            temp_file.write(contents)
            temp_file.flush()
            os.fsync(temp_file.fileno())

        # Atomic replace - this either completely succeeds or completely fails
        os.replace(temp_path, file_path)
        log.debug(f"Successfully saved task file: {file_path}")
        return True

    except (yaml.YAMLError, TypeError, ValueError, KeyError) as e:
        _cleanup(temp_path)
        # FATAL ERROR: Data cannot be serialized
        error_msg = (f"Data serialization failed for {file_path}. "
                    f"In-memory data may be corrupt or contain non-serializable types: {e}")
        log.critical(error_msg)
        raise FatalError(error_msg) from e

    except (IOError, OSError, PermissionError) as e:
        _cleanup(temp_path)
        # RECOVERABLE ERROR: I/O issues
        error_msg = f"I/O error saving task file {file_path}: {e}"
        log.error(error_msg)
        raise FileOperationError(error_msg) from e

def load_records(file_path : Union[Path, str], data_type : Optional[int] = None) -> Optional[Records]:
    """
    Load and parse a task file.

    Args:
        file_path: Path to the task file
        data_type: Storage format; picked from the suffix when omitted

    Returns:
        Parsed records, or None if the file doesn't exist or is empty
    """
    file_path = Path(file_path)
    if data_type is None:
        data_type = data_type_for(file_path)
    if not file_path.exists():
        return None

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = decode(data_type, f.read())

    except (json.JSONDecodeError, yaml.YAMLError) as e:
        # Syntax errors are fatal (corrupted file)
        raise CorruptionError(f"Syntax error in {file_path}: {e}") from e
    except UnicodeDecodeError as e:
        raise CorruptionError(f"{file_path} is not a UTF-8 text file: {e}") from e
    except (IOError, OSError, PermissionError) as e:
        # I/O errors are recoverable
        raise FileOperationError(f"Failed to read file {file_path}: {e}") from e

    # Basic sanity check for data corruption
    if not isinstance(data, (list, dict, type(None))):
        raise CorruptionError(f"File {file_path} contains invalid data structure")

    log.debug(f"Loaded task file: {file_path}")
    return data
