# src/bini_calendar/cli/commands.py

from __future__ import annotations

import inspect
import logging
import re
from collections.abc import Awaitable, Callable
from typing import cast

from ..calendar.cursor import MonthCursor
from ..calendar.swipe import SwipeDirection
from ..connectors.render import render_day, render_month
from ..core.ports import TaskSourceError
from ..core.state import AppState
from ..tasks import task_api

CommandEmitter = Callable[[str], None]
CommandResult = str | Awaitable[str]
CommandHandler2 = Callable[[AppState, list[str]], CommandResult]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], CommandResult]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_MONTH_ARG = re.compile(r"^(\d{4})-(\d{1,2})$")
_TIME_ARG = re.compile(r"^\d{1,2}:\d{2}$")


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /next, ...)."""

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

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        Handlers may be plain or async functions.
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
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            result = cast(CommandHandler3, handler)(state, args, emit)
        else:
            result = cast(CommandHandler2, handler)(state, args)

        if inspect.isawaitable(result):
            result = await result
        return cast(str, result)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


async def _refresh_and_render(state: AppState, emit: CommandEmitter | None = None) -> str:
    if emit:
        emit(f"Loading {state.calendar.cursor.label}...")
    await state.calendar.refresh()
    return render_month(state.calendar.render())


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_show(state: AppState, args: list[str]) -> str:
    return render_month(state.calendar.render())


async def cmd_refresh(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return await _refresh_and_render(state, emit)


async def cmd_next(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    state.calendar.go_next()
    return await _refresh_and_render(state, emit)


async def cmd_prev(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    state.calendar.go_previous()
    return await _refresh_and_render(state, emit)


async def cmd_today(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    state.calendar.go_today()
    return await _refresh_and_render(state, emit)


async def cmd_goto(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/goto YYYY-MM (month is 1-based on the command line)."""
    m = _MONTH_ARG.match(args[0]) if args else None
    if not m or not 1 <= int(m.group(2)) <= 12:
        return "Usage: /goto YYYY-MM"
    state.calendar.go_to(MonthCursor(year=int(m.group(1)), month=int(m.group(2)) - 1))
    return await _refresh_and_render(state, emit)


async def cmd_swipe(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """/swipe VELOCITY TRANSLATION"""
    try:
        velocity, translation = float(args[0]), float(args[1])
    except (IndexError, ValueError):
        return "Usage: /swipe VELOCITY TRANSLATION (e.g. /swipe -600 -150)"
    direction = state.calendar.on_swipe(velocity, translation)
    if direction is SwipeDirection.NONE:
        return f"Swipe ignored. Still on {state.calendar.cursor.label}."
    return await _refresh_and_render(state, emit)


def cmd_tap(state: AppState, args: list[str]) -> str:
    """/tap N (grid position 0..41) or /tap YYYY-MM-DD"""
    if not args:
        return "Usage: /tap N | /tap YYYY-MM-DD"
    try:
        target: int | str = int(args[0]) if args[0].isdecimal() else args[0]
        date_iso = state.calendar.on_day_tapped(target)
    except (IndexError, ValueError) as e:
        return f"Cannot tap {args[0]}: {e}"
    state.selected_date = date_iso
    return render_day(date_iso, task_api.tasks_for_day(state, date_iso))


def cmd_day(state: AppState, args: list[str]) -> str:
    date_iso = args[0] if args else state.selected_date
    if not date_iso:
        return "Usage: /day YYYY-MM-DD (or /tap a day first)"
    return render_day(date_iso, task_api.tasks_for_day(state, date_iso))


async def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done TASK_ID"
    try:
        task = await task_api.toggle_task(state, args[0])
    except TaskSourceError as e:
        return f"Could not update task: {e}"
    if task is None:
        return "Task updated, but the backend returned it without a date."
    return f"{task.title}: {'done' if task.is_completed else 'not done'}."


async def cmd_step(state: AppState, args: list[str]) -> str:
    """/step TASK_ID STEP_ID [on|off]"""
    if len(args) < 2:
        return "Usage: /step TASK_ID STEP_ID [on|off]"
    completed = not (len(args) > 2 and args[2].lower() in ("off", "0", "false", "no"))
    try:
        task = await task_api.set_step_completed(state, args[0], args[1], completed)
    except KeyError as e:
        return f"Unknown task or step: {e.args[0]}"
    except TaskSourceError as e:
        return f"Could not update steps: {e}"
    if task is None:
        return "Steps updated."
    done = sum(1 for s in task.steps if s.completed)
    return f"{task.title}: {done}/{len(task.steps)} steps done."


async def cmd_add(state: AppState, args: list[str]) -> str:
    """/add YYYY-MM-DD [HH:MM] title..."""
    if len(args) < 2:
        return "Usage: /add YYYY-MM-DD [HH:MM] title"
    date_iso, rest = args[0], args[1:]
    start_time = None
    if _TIME_ARG.match(rest[0]):
        start_time, rest = rest[0], rest[1:]
    try:
        task_id = await task_api.add_task(
            state, date_iso=date_iso, title=" ".join(rest), start_time=start_time
        )
    except ValueError as e:
        return f"Cannot add task: {e}"
    except TaskSourceError as e:
        return f"Could not create task: {e}"
    return f"Task created: {task_id}"


async def cmd_delete(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /delete TASK_ID"
    try:
        await state.calendar.delete_task(args[0])
    except TaskSourceError as e:
        return f"Could not delete task: {e}"
    return f"Task deleted: {args[0]}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("show", cmd_show, help_text="Render the focused month.", aliases=["month"])
registry.register("refresh", cmd_refresh, help_text="Reload tasks for the focused month.")
registry.register("next", cmd_next, help_text="Go to the next month.", aliases=["n"])
registry.register("prev", cmd_prev, help_text="Go to the previous month.", aliases=["p"])
registry.register("today", cmd_today, help_text="Go back to the current month.")
registry.register("goto", cmd_goto, help_text="Jump to a month: /goto YYYY-MM.")
registry.register("swipe", cmd_swipe, help_text="Simulate a swipe: /swipe VELOCITY TRANSLATION.")
registry.register("tap", cmd_tap, help_text="Tap a day: /tap N | /tap YYYY-MM-DD.")
registry.register("day", cmd_day, help_text="List tasks for a day: /day YYYY-MM-DD.")
registry.register("done", cmd_done, help_text="Toggle completion: /done TASK_ID.")
registry.register("step", cmd_step, help_text="Mark a step: /step TASK_ID STEP_ID [on|off].")
registry.register("add", cmd_add, help_text="Create a task: /add YYYY-MM-DD [HH:MM] title.")
registry.register("delete", cmd_delete, help_text="Delete a task: /delete TASK_ID.")
