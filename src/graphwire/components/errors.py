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

"""Component resolution error hierarchy."""

from __future__ import annotations

from enum import Enum

from ..errors import GraphwireError
from ..runtime.logging import qualified_name


class ComponentError(GraphwireError, RuntimeError):
    """Base class for component resolution and lifecycle errors."""


class NotAComponentError(ComponentError, LookupError):
    """A requested type was never declared as a component.

    Raised when a dependency key has no descriptor, no registered instance
    and no registered instance assignable to it.
    """

    def __init__(self, key: object) -> None:
        self.key = key
        super().__init__(f"{qualified_name(key)} is not a component")


class AmbiguousConstructorError(ComponentError, TypeError):
    """No unique constructor could be selected for a component."""

    def __init__(self, key: type[object], candidates: int) -> None:
        self.key = key
        self.candidates = candidates
        super().__init__(
            f"Unable to select a constructor for {qualified_name(key)} "
            f"({candidates} candidates, none designated)"
        )


class CircularDependencyError(ComponentError):
    """Circular dependency detected during resolution.

    The ``cycle`` attribute holds the resolution chain ending with the key
    that closed the loop, e.g. ``(A, B, A)``.
    """

    def __init__(self, cycle: tuple[type[object], ...]) -> None:
        self.cycle = cycle
        path = " -> ".join(qualified_name(t) for t in cycle)
        super().__init__(f"Circular dependency: {path}")


class UnsatisfiedConditionalDependencyError(ComponentError):
    """A hard dependency resolved to a disabled component."""

    def __init__(
        self, dependent: type[object], prerequisite: type[object]
    ) -> None:
        self.dependent = dependent
        self.prerequisite = prerequisite
        super().__init__(
            f"{qualified_name(dependent)} depends on {qualified_name(prerequisite)}, "
            "which is a conditional component that isn't enabled"
        )


class ComponentConstructionError(ComponentError):
    """A component constructor or start hook raised.

    Wraps the original exception as ``cause`` (also chained as
    ``__cause__``).
    """

    def __init__(self, key: type[object], cause: BaseException) -> None:
        self.key = key
        self.cause = cause
        super().__init__(
            f"Unable to instantiate {qualified_name(key)}: "
            f"{type(cause).__name__}: {cause}"
        )


class DuplicateComponentError(ComponentError, ValueError):
    """A second instance or descriptor was supplied for the same key."""

    def __init__(self, key: type[object]) -> None:
        self.key = key
        super().__init__(f"Duplicate component for {qualified_name(key)}")


class LifecycleError(ComponentError):
    """A component instance was moved through an invalid lifecycle transition."""

    def __init__(self, key: type[object], current: Enum, target: Enum) -> None:
        self.key = key
        self.current = current
        self.target = target
        super().__init__(
            f"{qualified_name(key)} cannot move from {current.name} to {target.name}"
        )


class CatalogError(ComponentError, TypeError):
    """A component declaration cannot be turned into a descriptor."""


__all__ = [
    "AmbiguousConstructorError",
    "CatalogError",
    "CircularDependencyError",
    "ComponentConstructionError",
    "ComponentError",
    "DuplicateComponentError",
    "LifecycleError",
    "NotAComponentError",
    "UnsatisfiedConditionalDependencyError",
]
