# src/takahashi/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
import time
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..core.state import AppState, NoSelection, Selected
from ..tasks.task_models import LeadTime, Subtask, Task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

DEADLINE_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d")
_RELATIVE_RE = re.compile(r"^\+(\d+)\s*([mh])$")


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Caller mistakes (bad index, empty title, unknown lead time) come back
        as a reply instead of an exception.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except (ValueError, LookupError) as e:
            logger.debug("Command /%s rejected: %s", name, e)
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- parsing helpers ----


def split_fields(args: list[str]) -> list[str]:
    """Re-join whitespace-split args and split on '|' (titles may contain spaces)."""
    return [f.strip() for f in " ".join(args).split("|")]


def parse_deadline(raw: str, *, now: float | None = None) -> float | None:
    """
    Parse a local-time deadline.

    Accepts "YYYY-MM-DD HH:MM", "YYYY-MM-DD", "+<n>m", "+<n>h"; "" or "-" means no deadline.
    """
    text = (raw or "").strip()
    if text in ("", "-"):
        return None

    m = _RELATIVE_RE.match(text)
    if m:
        base = time.time() if now is None else now
        amount = int(m.group(1))
        return base + amount * (60 if m.group(2) == "m" else 3600)

    for fmt in DEADLINE_FORMATS:
        try:
            return datetime.strptime(text, fmt).timestamp()
        except ValueError:
            continue
    raise ValueError(f"cannot parse deadline {text!r}; use YYYY-MM-DD HH:MM or +30m / +2h")


def format_deadline(ts: float | None) -> str:
    if ts is None:
        return "-"
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M")


def _default_lead(state: AppState) -> LeadTime:
    raw = getattr(state.settings, "default_lead_minutes", int(LeadTime.MIN_5))
    try:
        return LeadTime.parse(raw)
    except ValueError:
        return LeadTime.MIN_5


def _parse_lead(state: AppState, raw: str) -> LeadTime:
    return _default_lead(state) if not raw else LeadTime.parse(raw)


def _field(fields: list[str], i: int) -> str:
    return fields[i] if i < len(fields) else ""


def _task_at(state: AppState, ref: str) -> Task:
    tasks = state.task_store.tasks
    try:
        idx = int(ref) - 1
    except ValueError:
        raise ValueError(f"expected a task number, got {ref!r}") from None
    if not 0 <= idx < len(tasks):
        raise LookupError(f"no task #{ref}; see /list")
    return tasks[idx]


def _subtask_at(state: AppState, ref: str) -> tuple[Task, Subtask]:
    task_ref, sep, sub_ref = ref.partition(".")
    if not sep:
        raise ValueError(f"expected <task>.<subtask> like 1.2, got {ref!r}")
    task = _task_at(state, task_ref)
    try:
        sidx = int(sub_ref) - 1
    except ValueError:
        raise ValueError(f"expected a subtask number, got {sub_ref!r}") from None
    if not 0 <= sidx < len(task.subtasks):
        raise LookupError(f"task #{task_ref} has no subtask #{sub_ref}")
    return task, task.subtasks[sidx]


# ---- handlers ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    store = state.task_store
    n_sub = sum(len(t.subtasks) for t in store.tasks)
    task_id = state.selected_task_id()
    if task_id is None:
        selection = "new task"
    else:
        selection = store.get_task(task_id).title
    notif = "ON" if state.notifications_authorized else "OFF (set TAKAHASHI_NOTIFICATIONS_ENABLED=true)"
    return (
        "Status:\n"
        f"  Tasks: {len(store.tasks)} ({n_sub} subtasks)\n"
        f"  Pending reminders: {len(store.scheduler.reminders())}\n"
        f"  Notifications: {notif}\n"
        f"  /add target: {selection}"
    )


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = state.task_store.tasks
    if not tasks:
        return "No tasks. Use /add to create one."
    selected = state.selected_task_id()
    lines: list[str] = []
    for i, task in enumerate(tasks, start=1):
        mark = " *" if task.id == selected else ""
        lines.append(f"{i}. {task.title}{mark}")
        for j, st in enumerate(task.subtasks, start=1):
            memo = " [memo]" if st.memo else ""
            lines.append(f"   {i}.{j} {st.title}  (due {format_deadline(st.deadline)}){memo}")
    return "\n".join(lines)


def cmd_leads(state: AppState, args: list[str]) -> str:
    default = _default_lead(state)
    lines = ["Reminder lead times (minutes):"]
    for lead in LeadTime:
        suffix = " (default)" if lead == default else ""
        lines.append(f"  {int(lead):>3} - {lead.label}{suffix}")
    return "\n".join(lines)


def cmd_select(state: AppState, args: list[str]) -> str:
    """
    /select        -> show current target
    /select new    -> next /add creates a new task
    /select <n>    -> next /add appends a subtask to task #n
    """
    if not args:
        task_id = state.selected_task_id()
        if task_id is None:
            return "No task selected: /add creates a new task."
        return f"Selected: {state.task_store.get_task(task_id).title}"

    if args[0].lower() in ("new", "none", "-"):
        state.selection = NoSelection()
        return "Selection cleared: /add creates a new task."

    task = _task_at(state, args[0])
    state.selection = Selected(task.id)
    return f"Selected: {task.title}. /add now appends subtasks to it."


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    No selection:  /add <task> | <subtask> | [deadline] | [lead] | [memo]
    Selected task: /add <subtask> | [deadline] | [lead] | [memo]
    """
    fields = split_fields(args)
    store = state.task_store
    state.clear_selection_if_gone()

    match state.selection:
        case Selected(task_id=task_id):
            subtask = store.new_subtask(
                _field(fields, 0),
                deadline=parse_deadline(_field(fields, 1)),
                memo=_field(fields, 3) or None,
            )
            lead = _parse_lead(state, _field(fields, 2))
            store.add_subtask(task_id, subtask, lead)
            task = store.get_task(task_id)
            reply = f"Added subtask {subtask.title!r} to {task.title!r}."
        case _:
            subtask = store.new_subtask(
                _field(fields, 1),
                deadline=parse_deadline(_field(fields, 2)),
                memo=_field(fields, 4) or None,
            )
            lead = _parse_lead(state, _field(fields, 3))
            task = store.add_task(_field(fields, 0), subtask, lead)
            reply = f"Added task {task.title!r} with subtask {subtask.title!r}."

    if subtask.deadline is not None:
        if state.notifications_authorized:
            reply += f" Reminder {lead.label} the deadline ({format_deadline(subtask.deadline)})."
        elif emit is not None:
            emit("Notifications are disabled; no reminder will be shown.")
    return reply


def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit <t.s> | <title> | [memo]"""
    fields = split_fields(args)
    task, subtask = _subtask_at(state, _field(fields, 0))
    updated = state.task_store.update_subtask(task.id, subtask.id, _field(fields, 1), _field(fields, 2) or None)
    return f"Updated subtask {updated.title!r}."


def cmd_deadline(state: AppState, args: list[str]) -> str:
    """/deadline <t.s> | <deadline or -> | [lead]"""
    fields = split_fields(args)
    task, subtask = _subtask_at(state, _field(fields, 0))
    deadline = parse_deadline(_field(fields, 1))
    lead = _parse_lead(state, _field(fields, 2))
    updated = state.task_store.update_deadline(task.id, subtask.id, deadline, lead)
    if updated.deadline is None:
        return f"Cleared deadline of {updated.title!r}; its reminders were cancelled."
    return f"Deadline of {updated.title!r} set to {format_deadline(updated.deadline)}."


def cmd_del(state: AppState, args: list[str]) -> str:
    """/del <t.s>"""
    if not args:
        return "Usage: /del <task>.<subtask>"
    task, subtask = _subtask_at(state, args[0])
    task_removed = state.task_store.delete_subtask(task.id, subtask.id)
    state.clear_selection_if_gone()
    if task_removed:
        return f"Deleted {subtask.title!r}; task {task.title!r} had no subtasks left and was removed."
    return f"Deleted {subtask.title!r}."


def cmd_deltask(state: AppState, args: list[str]) -> str:
    """/deltask <t>"""
    if not args:
        return "Usage: /deltask <task>"
    task = _task_at(state, args[0])
    state.task_store.delete_task(task.id)
    state.clear_selection_if_gone()
    return f"Deleted task {task.title!r} ({len(task.subtasks)} subtasks)."


def cmd_validate(state: AppState, args: list[str]) -> str:
    report = state.task_store.validate()
    lines: list[str] = []
    if report.ok:
        lines.append("No inconsistencies found.")
    else:
        lines.append(f"{len(report.issues)} inconsistencies found:")
        lines.extend(f"  - {issue.describe()}" for issue in report.issues)
    if report.overdue:
        lines.append(f"{len(report.overdue)} overdue subtasks (notifications sent).")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show task/reminder counts and notification state.")
registry.register("list", cmd_list, help_text="List tasks and subtasks.", aliases=["ls"])
registry.register("leads", cmd_leads, help_text="Show reminder lead times.")
registry.register("select", cmd_select, help_text="Pick the /add target: /select <n> | /select new.")
registry.register(
    "add",
    cmd_add,
    help_text="Add: /add <task> | <subtask> | [deadline] | [lead] | [memo] (selected task: drop <task>).",
)
registry.register("edit", cmd_edit, help_text="Edit subtask: /edit <t.s> | <title> | [memo].")
registry.register("deadline", cmd_deadline, help_text="Change deadline: /deadline <t.s> | <when or -> | [lead].")
registry.register("del", cmd_del, help_text="Delete subtask: /del <t.s>.", aliases=["rm"])
registry.register("deltask", cmd_deltask, help_text="Delete task with all subtasks: /deltask <t>.")
registry.register("validate", cmd_validate, help_text="Check task/subtask consistency and overdue items.")
