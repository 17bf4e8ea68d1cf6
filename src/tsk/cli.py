"""
Command Line Interface for tsk.
"""

import click
import logging
from pathlib import Path
from typing import Callable, List, Optional
from .version import VERSION
from .data import DataCore
from .models import AddPosition, TaskId
from .recovery import (
    EmptyTreeError,
    InvalidOperationError,
    MalformedIdError,
    TaskIdError,
    TskError,
)
from .tree import TaskTree
from .logs import get_logger, set_console_level

log = get_logger("cli")


class TaskIdType(click.ParamType):
    """A single positional task id such as `2` or `1.3`."""

    name = "id"

    def convert(self, value, param, ctx):
        if isinstance(value, TaskId):
            return value
        try:
            return TaskId(value)
        except MalformedIdError:
            self.fail(f"Invalid task id: '{value}'", param, ctx)


TASK_ID = TaskIdType()


def expand_ids(arg: str) -> List[TaskId]:
    """
    Expand one id argument into task ids.

    Accepts a single id (`1.2`), a comma list (`1,3` or `1.2,4` where a bare
    number after a subtask id names a sibling of that subtask) and a range
    (`1.2..4`, the end being the last sibling number).
    """
    ids = []
    first = None
    for piece in arg.split(','):
        piece = piece.strip()
        if '..' in piece:
            start, _, end = piece.partition('..')
            start_id = TaskId(start)
            if not TaskId.COMPONENT_PATTERN.match(end) or int(end) < start_id.parts[-1]:
                raise MalformedIdError(piece, f"Invalid id range: '{piece}'")
            prefix = start_id.parts[:-1]
            ids.extend(TaskId(prefix + (n,)) for n in range(start_id.parts[-1], int(end) + 1))
        elif first is not None and '.' not in piece:
            sibling = TaskId(piece)
            ids.append(TaskId(first.parts[:-1] + sibling.parts))
        else:
            ids.append(TaskId(piece))
        if first is None:
            first = ids[0]

    # Keep the first occurrence of each id
    return list(dict.fromkeys(ids))


def _echo_tree(tree: TaskTree, colored: bool):
    lines = tree.render(colored)
    if not lines:
        click.echo("📭 No tasks to print")
        return
    for line in lines:
        click.echo(line)


def _run(ctx: click.Context, message: str, operation: Callable[[TaskTree], Optional[str]],
         check_ids: Optional[List[TaskId]] = None):
    """Load the task file, check ids, run one operation, print and save the tree."""
    try:
        with DataCore.get_context(ctx.obj['file_path']) as context:
            for task_id in check_ids or []:
                context.tree.get(task_id)
            result = operation(context.tree)
            tree = context.tree
    except EmptyTreeError:
        click.echo("❌ The task list is empty", err=True)
        ctx.exit(1)
    except TaskIdError as e:
        click.echo(f"❌ Invalid task id: '{e.task_id}'", err=True)
        ctx.exit(1)
    except InvalidOperationError as e:
        click.echo(f"❌ {e}", err=True)
        ctx.exit(1)
    except TskError as e:
        log.error(f"{message} failed: {e}")
        click.echo(f"❌ Error: {e}", err=True)
        ctx.exit(1)

    click.echo(result or message)
    click.echo("")
    _echo_tree(tree, ctx.obj['colored'])


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="tsk")
@click.option('--no-color', is_flag=True, help="Don't color the task list")
@click.option('-v', '--verbose', is_flag=True, help='Show debug logging on stderr')
@click.option('-f', '--file', 'file_path', envvar=DataCore.FILE_ENV_VAR,
              type=click.Path(dir_okay=False, path_type=Path),
              help='Task file to use (default: ~/.local/share/tsk/tasks.json)')
@click.pass_context
def main(ctx, no_color, verbose, file_path):
    """
    tsk - manage a list of tasks and nested subtasks.

    Tasks are addressed by their position: `2` is the second task, `2.1` its
    first subtask. Prints the task list when no command is given.
    """
    if verbose:
        set_console_level(logging.DEBUG)
    ctx.ensure_object(dict)
    ctx.obj['colored'] = not no_color
    ctx.obj['file_path'] = file_path
    if ctx.invoked_subcommand is None:
        ctx.invoke(print_tasks)


@main.command('print')
@click.pass_context
def print_tasks(ctx):
    """Print the task list."""
    try:
        context = DataCore.get_context(ctx.obj['file_path'])
    except TskError as e:
        click.echo(f"❌ Error: {e}", err=True)
        ctx.exit(1)
    _echo_tree(context.tree, ctx.obj['colored'])


@main.command()
@click.option('--top/--bot', 'top', default=True, help='Add to the top (default) or the bottom of the list')
@click.option('-s', '--sub', 'parent_id', type=TASK_ID, help='Add as a subtask of this task')
@click.argument('text', nargs=-1, required=True)
@click.pass_context
def add(ctx, top, parent_id, text):
    """Add a new task."""
    content = " ".join(text)
    position = AddPosition.TOP if top else AddPosition.BOTTOM
    check = [parent_id] if parent_id is not None else []
    _run(ctx, "➕ Task added",
         lambda tree: f"➕ Added task {tree.add(content, position, parent_id)}",
         check)


def _mark(ctx, ids, mark_all, done):
    if mark_all and ids:
        raise click.UsageError("Pass either task ids or --all, not both")
    if not mark_all and not ids:
        raise click.UsageError("Missing task ids")

    if mark_all:
        check = []
        def operation(tree: TaskTree):
            if not len(tree):
                raise EmptyTreeError("The task list is empty")
            tree.mark([TaskId(n) for n in range(1, len(tree) + 1)], done)
    else:
        try:
            check = [task_id for arg in ids for task_id in expand_ids(arg)]
        except MalformedIdError as e:
            raise click.BadParameter(str(e), param_hint="IDS")
        def operation(tree: TaskTree):
            tree.mark(check, done)

    _run(ctx, "✅ Marked as done" if done else "🔄 Marked as not done", operation, check)


@main.command('do')
@click.option('-a', '--all', 'mark_all', is_flag=True, help='Mark every task')
@click.argument('ids', nargs=-1)
@click.pass_context
def do(ctx, mark_all, ids):
    """Mark one or more tasks as done (e.g. `2`, `1.3`, `1,4`, `2.1..3`)."""
    _mark(ctx, ids, mark_all, True)


@main.command('undo')
@click.option('-a', '--all', 'mark_all', is_flag=True, help='Unmark every task')
@click.argument('ids', nargs=-1)
@click.pass_context
def undo(ctx, mark_all, ids):
    """Mark one or more tasks as not done."""
    _mark(ctx, ids, mark_all, False)


@main.command()
@click.argument('from_id', type=TASK_ID)
@click.argument('to_id', type=TASK_ID)
@click.pass_context
def move(ctx, from_id, to_id):
    """Move a task (and its subtasks) to a new position."""
    _run(ctx, f"🔀 Moved task {from_id} to {to_id}",
         lambda tree: tree.move(from_id, to_id),
         [from_id])


@main.command()
@click.argument('first_id', type=TASK_ID)
@click.argument('second_id', type=TASK_ID)
@click.pass_context
def swap(ctx, first_id, second_id):
    """Swap the places of two tasks."""
    _run(ctx, f"🔁 Swapped tasks {first_id} and {second_id}",
         lambda tree: tree.swap(first_id, second_id),
         [first_id, second_id])


@main.command()
@click.argument('task_id', type=TASK_ID)
@click.argument('text', nargs=-1, required=True)
@click.pass_context
def append(ctx, task_id, text):
    """Append text to an existing task."""
    _run(ctx, f"📝 Appended to task {task_id}",
         lambda tree: tree.append(task_id, " ".join(text)),
         [task_id])


@main.command()
@click.argument('task_id', type=TASK_ID)
@click.argument('text', nargs=-1, required=True)
@click.pass_context
def edit(ctx, task_id, text):
    """Replace the contents of a task."""
    _run(ctx, f"📝 Edited task {task_id}",
         lambda tree: tree.edit(task_id, " ".join(text)),
         [task_id])


@main.command()
@click.argument('task_id', type=TASK_ID)
@click.pass_context
def delete(ctx, task_id):
    """Delete a task and its subtasks."""
    def operation(tree: TaskTree):
        removed = tree.delete(task_id)
        return f"🗑️  Deleted task {task_id}: {removed.contents}"

    _run(ctx, f"🗑️  Deleted task {task_id}", operation, [task_id])


@main.command()
@click.pass_context
def clear(ctx):
    """Delete every task marked as done."""
    _run(ctx, "🧹 Cleared done tasks",
         lambda tree: f"🧹 Cleared {tree.clear_done()} done task(s)")


if __name__ == "__main__":
    main()
