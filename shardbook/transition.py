"""Vanish-then-navigate transition between choice pages."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Optional, Protocol

from typing_extensions import Final

from .layout import ChoiceElement
from .narrative_state import NarrativeStateRepository


LOGGER = logging.getLogger(__name__)

ENTRY_DELAY_MS: Final[int] = 800
PASSAGE_DELAY_MS: Final[int] = 1000

VANISH_CLASS: Final[str] = "vanish"
CHOSEN_CLASS: Final[str] = "chosen"
PASSAGE_CHOSEN_STYLE: Final[Mapping[str, str]] = {"opacity": "1", "transform": "scale(1.03)"}


class ScheduledTask(Protocol):
    def cancel(self) -> None: ...

    @property
    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask: ...


class _TimerTask:
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ThreadingScheduler:
    """Run callbacks after a wall-clock delay on a daemon timer thread."""

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        timer = threading.Timer(delay_ms / 1000.0, callback)
        timer.daemon = True
        timer.start()
        return _TimerTask(timer)


@dataclass
class ManualTask:
    due_ms: int
    callback: Callable[[], None]
    cancelled: bool = False
    done: bool = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Virtual clock that only moves when ``advance`` is called."""

    def __init__(self) -> None:
        self.now_ms = 0
        self.tasks: list[ManualTask] = []

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ManualTask:
        task = ManualTask(self.now_ms + delay_ms, callback)
        self.tasks.append(task)
        return task

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward and run every task now due; return how many ran."""
        self.now_ms += delta_ms
        ran = 0
        for task in sorted(self.tasks, key=lambda item: item.due_ms):
            if task.done or task.cancelled or task.due_ms > self.now_ms:
                continue
            task.done = True
            task.callback()
            ran += 1
        return ran

    def pending(self) -> list[ManualTask]:
        return [task for task in self.tasks if not (task.done or task.cancelled)]


@dataclass
class Transition:
    """A committed selection awaiting its delayed navigation."""

    target: str
    delay_ms: int
    chosen: ChoiceElement
    group: list[ChoiceElement] = field(default_factory=list)
    task: Optional[ScheduledTask] = None


class TransitionController:
    """Lock a choice group, eliminate the unselected choices, then navigate.

    When no scheduler is given the caller is responsible for delivering the
    delayed navigation, e.g. through an HTTP ``Refresh`` header.
    """

    def __init__(
        self,
        delay_ms: int,
        tracker: Optional[NarrativeStateRepository] = None,
        scheduler: Optional[Scheduler] = None,
        navigator: Optional[Callable[[str], None]] = None,
        chosen_style: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.delay_ms = delay_ms
        self._tracker = tracker
        self._scheduler = scheduler
        self._navigator = navigator
        self._chosen_style = dict(chosen_style or {})

    def select(
        self,
        group: Sequence[ChoiceElement],
        chosen: ChoiceElement,
    ) -> Optional[Transition]:
        """Apply the selection to ``group`` and schedule navigation to the target."""
        if not chosen.target:
            LOGGER.debug("Choice %r has no target; selection ignored.", chosen.label)
            return None
        if chosen.disabled:
            LOGGER.debug("Choice %r already locked; selection ignored.", chosen.label)
            return None
        for element in group:
            element.disabled = True
            element.style["pointer-events"] = "none"
        for element in group:
            if element is not chosen:
                element.classes.add(VANISH_CLASS)
        chosen.disabled = True
        if self._chosen_style:
            chosen.style.update(self._chosen_style)
        else:
            chosen.classes.add(CHOSEN_CLASS)
        if chosen.code and self._tracker is not None:
            self._tracker.mark_visited(chosen.code)
        transition = Transition(chosen.target, self.delay_ms, chosen, list(group))
        if self._scheduler is not None and self._navigator is not None:
            navigate = self._navigator
            target = chosen.target
            transition.task = self._scheduler.call_later(
                self.delay_ms, lambda: navigate(target)
            )
        LOGGER.debug("Navigating to %s in %d ms.", chosen.target, self.delay_ms)
        return transition


def entry_controller(
    tracker: NarrativeStateRepository,
    scheduler: Optional[Scheduler] = None,
    navigator: Optional[Callable[[str], None]] = None,
) -> TransitionController:
    """Build the controller used by the entry page choice cloud."""
    return TransitionController(ENTRY_DELAY_MS, tracker, scheduler, navigator)


def passage_controller(
    scheduler: Optional[Scheduler] = None,
    navigator: Optional[Callable[[str], None]] = None,
) -> TransitionController:
    """Build the simpler controller used by side passage pages."""
    return TransitionController(
        PASSAGE_DELAY_MS,
        scheduler=scheduler,
        navigator=navigator,
        chosen_style=PASSAGE_CHOSEN_STYLE,
    )


__all__ = [
    "ENTRY_DELAY_MS",
    "ManualScheduler",
    "PASSAGE_DELAY_MS",
    "Scheduler",
    "ThreadingScheduler",
    "Transition",
    "TransitionController",
    "entry_controller",
    "passage_controller",
]
