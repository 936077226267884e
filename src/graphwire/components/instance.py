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

"""Constructed component records and their lifecycle states."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from .errors import LifecycleError
from .protocols import TaskHandle


class LifecycleState(Enum):
    """Lifecycle states for a constructed component."""

    CONSTRUCTED = auto()
    """Built by its constructor; not yet started or registered."""

    ACTIVATED = auto()
    """Started and registered with the host; eligible for the registry."""

    DEACTIVATED = auto()
    """Stopped and unregistered. Never re-activated."""

    RELEASED = auto()
    """References pruned after deactivation."""


_TRANSITIONS: dict[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.CONSTRUCTED: frozenset({LifecycleState.ACTIVATED}),
    LifecycleState.ACTIVATED: frozenset({LifecycleState.DEACTIVATED}),
    LifecycleState.DEACTIVATED: frozenset({LifecycleState.RELEASED}),
    LifecycleState.RELEASED: frozenset(),
}


@dataclass(slots=True, eq=False)
class ComponentInstance[T]:
    """A constructed component value together with its key and state."""

    key: type[T]
    value: T
    state: LifecycleState = LifecycleState.CONSTRUCTED
    task: TaskHandle | None = field(default=None, repr=False)
    """Scheduler handle while the component runs as a periodic task."""

    def advance(self, target: LifecycleState) -> None:
        """Move to ``target``, rejecting transitions outside the lifecycle.

        Raises:
            LifecycleError: ``target`` is not reachable from the current state.
        """
        if target not in _TRANSITIONS[self.state]:
            raise LifecycleError(self.key, self.state, target)
        self.state = target


__all__ = ["ComponentInstance", "LifecycleState"]
