# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Capability protocols for components and the host boundaries they reach.

Components opt into lifecycle behaviour by implementing these protocols.
The lifecycle manager checks for them with ``isinstance``; no base class is
required.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Protocol, runtime_checkable


@runtime_checkable
class Startable(Protocol):
    """Components with ``on_start()`` are started before they are registered.

    Example::

        class Cache:
            def on_start(self) -> None:
                self._entries = {}
    """

    def on_start(self) -> None:
        """Called once, after construction and before registration."""
        ...


@runtime_checkable
class Stoppable(Protocol):
    """Components with ``on_stop()`` are stopped when removed.

    ``on_stop()`` runs before the component is unregistered from the event
    registrar and before its scheduled task is cancelled, so it can still
    observe its own registrations.
    """

    def on_stop(self) -> None:
        """Called once, when the component is removed from the container."""
        ...


@runtime_checkable
class Conditional(Protocol):
    """Components that decide after construction whether they are active.

    A disabled component is never started or registered. Dependents that
    require it fail with ``UnsatisfiedConditionalDependencyError``.

    Example::

        class MetricsExporter:
            def __init__(self, settings: Settings) -> None:
                self._settings = settings

            def is_enabled(self) -> bool:
                return self._settings.metrics_enabled
    """

    def is_enabled(self) -> bool:
        """Return ``False`` to keep this instance out of the container."""
        ...


@runtime_checkable
class EventListener(Protocol):
    """Components that receive events from the host's event registrar."""

    def subscriptions(self) -> Mapping[type[object], Callable[[object], None]]:
        """Return the event handlers to register, keyed by event type."""
        ...


@runtime_checkable
class ScheduledTask(Protocol):
    """Components that run periodically on the host's scheduler.

    ``delay`` and ``period`` use the scheduler's time unit.
    ``off_main_context`` asks the scheduler to run the task outside the
    host's main execution context.
    """

    delay: float
    period: float
    off_main_context: bool

    def run(self) -> None:
        """Execute one iteration of the task."""
        ...


class TaskHandle(Protocol):
    """Opaque handle returned by :class:`Scheduler.schedule`."""


@runtime_checkable
class EventRegistrar(Protocol):
    """Host-side event bus boundary."""

    def register(self, listener: EventListener) -> None:
        """Start delivering events to ``listener``."""
        ...

    def unregister_all(self, listener: EventListener) -> None:
        """Stop delivering any event to ``listener``."""
        ...


@runtime_checkable
class Scheduler(Protocol):
    """Host-side periodic task scheduler boundary."""

    def schedule(
        self,
        task: ScheduledTask,
        *,
        delay: float,
        period: float,
        off_main_context: bool,
    ) -> TaskHandle:
        """Run ``task`` every ``period`` after an initial ``delay``."""
        ...

    def cancel(self, handle: TaskHandle) -> None:
        """Cancel a task previously returned by :meth:`schedule`."""
        ...


__all__ = [
    "Conditional",
    "EventListener",
    "EventRegistrar",
    "ScheduledTask",
    "Scheduler",
    "Startable",
    "Stoppable",
    "TaskHandle",
]
