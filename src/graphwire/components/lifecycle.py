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

"""Start/stop hooks and host registration for components."""

from __future__ import annotations

from ..runtime.logging import StructuredLogger, get_logger, qualified_name
from .errors import ComponentConstructionError, LifecycleError
from .instance import ComponentInstance, LifecycleState
from .protocols import (
    EventListener,
    EventRegistrar,
    ScheduledTask,
    Scheduler,
    Startable,
    Stoppable,
)

logger: StructuredLogger = get_logger(__name__, context={"component": "lifecycle"})


class LifecycleManager:
    """Activates and deactivates component instances.

    Activation runs ``on_start()``, registers event listeners and schedules
    periodic tasks, in that order. Deactivation runs ``on_stop()`` first,
    then unregisters listeners and cancels scheduled tasks.

    The registrar and scheduler are optional. A listener or task activated
    without one is logged and otherwise left alone.
    """

    __slots__ = ("_registrar", "_scheduler")

    def __init__(  # pyright: ignore[reportMissingSuperCall]
        self,
        *,
        registrar: EventRegistrar | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._registrar = registrar
        self._scheduler = scheduler

    def activate(self, instance: ComponentInstance[object]) -> None:
        """Start ``instance`` and register it with the host.

        Raises:
            LifecycleError: ``instance`` is not freshly constructed.
            ComponentConstructionError: A start hook, the registrar or the
                scheduler raised. Steps that already completed are undone
                (``on_stop()``, listener unregistration).
        """
        if instance.state is not LifecycleState.CONSTRUCTED:
            raise LifecycleError(
                instance.key, instance.state, LifecycleState.ACTIVATED
            )

        value = instance.value
        started = registered = False
        try:
            if isinstance(value, Startable):
                value.on_start()
                started = True
            registered = self._register_listener(instance)
            self._schedule(instance)
        except Exception as error:
            if registered:
                self._unregister_quietly(instance)
            if started:
                self._stop_quietly(instance)
            raise ComponentConstructionError(instance.key, error) from error

        instance.advance(LifecycleState.ACTIVATED)
        logger.debug(
            "component.activate",
            event="component.activate",
            context={
                "key": qualified_name(instance.key),
                "listener": registered,
                "scheduled": instance.task is not None,
            },
        )

    def deactivate(self, instance: ComponentInstance[object]) -> None:
        """Stop ``instance`` and withdraw its host registrations.

        Stop hook, registrar and scheduler failures are logged and the
        remaining steps still run, so the instance always ends deactivated.

        Raises:
            LifecycleError: ``instance`` is not activated.
        """
        instance.advance(LifecycleState.DEACTIVATED)
        self._stop_quietly(instance)
        self._unregister_quietly(instance)
        self._cancel_quietly(instance)

        logger.debug(
            "component.deactivate",
            event="component.deactivate",
            context={"key": qualified_name(instance.key)},
        )

    def _register_listener(self, instance: ComponentInstance[object]) -> bool:
        value = instance.value
        if not isinstance(value, EventListener):
            return False
        if self._registrar is None:
            logger.warning(
                "Event listener activated without an event registrar",
                event="component.listener.unregistered",
                context={"key": qualified_name(instance.key)},
            )
            return False
        self._registrar.register(value)
        return True

    def _schedule(self, instance: ComponentInstance[object]) -> None:
        value = instance.value
        if not isinstance(value, ScheduledTask):
            return
        if self._scheduler is None:
            logger.warning(
                "Scheduled task activated without a scheduler",
                event="component.task.unscheduled",
                context={"key": qualified_name(instance.key)},
            )
            return
        instance.task = self._scheduler.schedule(
            value,
            delay=value.delay,
            period=value.period,
            off_main_context=value.off_main_context,
        )

    @staticmethod
    def _stop_quietly(instance: ComponentInstance[object]) -> None:
        value = instance.value
        if not isinstance(value, Stoppable):
            return
        try:
            value.on_stop()
        except Exception:
            logger.warning(
                "Error stopping component",
                event="component.stop_error",
                context={"key": qualified_name(instance.key)},
                exc_info=True,
            )

    def _unregister_quietly(self, instance: ComponentInstance[object]) -> None:
        value = instance.value
        if not isinstance(value, EventListener) or self._registrar is None:
            return
        try:
            self._registrar.unregister_all(value)
        except Exception:
            logger.warning(
                "Error unregistering event listener",
                event="component.unregister_error",
                context={"key": qualified_name(instance.key)},
                exc_info=True,
            )

    def _cancel_quietly(self, instance: ComponentInstance[object]) -> None:
        handle = instance.task
        if handle is None or self._scheduler is None:
            return
        instance.task = None
        try:
            self._scheduler.cancel(handle)
        except Exception:
            logger.warning(
                "Error cancelling scheduled task",
                event="component.cancel_error",
                context={"key": qualified_name(instance.key)},
                exc_info=True,
            )


__all__ = ["LifecycleManager"]
