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

"""Depth-first dependency resolution."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import cast

from ..runtime.logging import StructuredLogger, get_logger, qualified_name
from .descriptor import ComponentDescriptor
from .errors import (
    CircularDependencyError,
    ComponentConstructionError,
    ComponentError,
    NotAComponentError,
    UnsatisfiedConditionalDependencyError,
)
from .instance import ComponentInstance
from .lifecycle import LifecycleManager
from .protocols import Conditional
from .registry import ComponentRegistry
from .selector import ConstructorSelector

logger: StructuredLogger = get_logger(__name__, context={"component": "resolver"})


@dataclass(slots=True)
class _Resolution:
    """State shared by one top-level resolve call."""

    in_progress: dict[type[object], None] = field(
        default_factory=dict[type[object], None]
    )
    """Keys being built, in chain order."""

    disabled: set[type[object]] = field(default_factory=set[type[object]])
    """Keys already built and found disabled; never built again."""


class DependencyResolver:
    """Builds components in dependency order, memoised by the registry.

    Every descriptor passed to :meth:`register`, :meth:`resolve` or
    :meth:`resolve_all` becomes known to the resolver, so dependencies can
    be declared in any order.

    Resolution of one key:

    1. Return the registered instance if there is one.
    2. Fail with ``CircularDependencyError`` if the key is already being
       resolved further up the chain.
    3. Resolve every ``depends_on`` key, then every constructor parameter.
       A dependency that resolves to a disabled component fails with
       ``UnsatisfiedConditionalDependencyError``.
    4. Call the selected constructor; failures become
       ``ComponentConstructionError``.
    5. Evaluate enablement. Enabled instances are activated and inserted;
       disabled ones are dropped and ``None`` is returned. Within one
       top-level call a disabled component is built at most once.

    A failed resolution is not rolled back: dependencies that were already
    activated and inserted stay in the registry.
    """

    __slots__ = ("_descriptors", "_lifecycle", "_registry", "_selector")

    def __init__(  # pyright: ignore[reportMissingSuperCall]
        self,
        registry: ComponentRegistry,
        lifecycle: LifecycleManager,
        *,
        selector: ConstructorSelector | None = None,
    ) -> None:
        self._registry = registry
        self._lifecycle = lifecycle
        self._selector = selector if selector is not None else ConstructorSelector()
        self._descriptors: dict[type[object], ComponentDescriptor[object]] = {}

    @property
    def registry(self) -> ComponentRegistry:
        return self._registry

    def register(self, *descriptors: ComponentDescriptor[object]) -> None:
        """Make descriptors available as dependency targets.

        A later descriptor for the same key replaces the earlier one.
        """
        for descriptor in descriptors:
            self._descriptors[descriptor.key] = descriptor

    def descriptor_for[T](self, key: type[T]) -> ComponentDescriptor[T] | None:
        return cast(ComponentDescriptor[T] | None, self._descriptors.get(key))

    def resolve[T](self, descriptor: ComponentDescriptor[T]) -> T | None:
        """Resolve ``descriptor`` and everything it needs.

        Returns:
            The registered instance, or ``None`` when the component is
            disabled.

        Raises:
            NotAComponentError: A dependency is not a component.
            AmbiguousConstructorError: No unique constructor.
            CircularDependencyError: The dependency graph has a cycle.
            UnsatisfiedConditionalDependencyError: A hard dependency is disabled.
            ComponentConstructionError: A constructor or start hook raised.
        """
        erased = cast(ComponentDescriptor[object], descriptor)
        self.register(erased)
        return cast(T | None, self._resolve(erased, _Resolution()))

    def resolve_key[T](self, key: type[T]) -> T | None:
        """Resolve a key through its registered descriptor.

        Raises:
            NotAComponentError: ``key`` is neither registered nor described.
        """
        return cast(T | None, self._resolve_dependency(key, _Resolution()))

    def resolve_all(
        self, descriptors: Iterable[ComponentDescriptor[object]]
    ) -> ComponentRegistry:
        """Resolve every descriptor in order and return the registry.

        Keys already in the registry are skipped, so calling this twice with
        the same descriptors constructs and starts nothing new. Disabled
        components that nothing requires are left out without error.
        """
        pending = list(descriptors)
        self.register(*pending)
        resolution = _Resolution()
        for descriptor in pending:
            if descriptor.key in self._registry:
                continue
            _ = self._resolve(descriptor, resolution)
        return self._registry

    def _resolve_dependency(
        self, key: type[object], resolution: _Resolution
    ) -> object | None:
        existing = self._registry.get(key)
        if existing is not None:
            return existing

        descriptor = self._descriptors.get(key)
        if descriptor is not None:
            return self._resolve(descriptor, resolution)

        assignable = self._registry.find(key)
        if assignable is not None:
            return assignable

        raise NotAComponentError(key)

    def _resolve(
        self,
        descriptor: ComponentDescriptor[object],
        resolution: _Resolution,
    ) -> object | None:
        key = descriptor.key
        existing = self._registry.get(key)
        if existing is not None:
            return existing

        if key in resolution.disabled:
            return None

        in_progress = resolution.in_progress
        if key in in_progress:
            raise CircularDependencyError((*in_progress, key))

        in_progress[key] = None
        try:
            return self._build(descriptor, resolution)
        finally:
            del in_progress[key]

    def _build(
        self,
        descriptor: ComponentDescriptor[object],
        resolution: _Resolution,
    ) -> object | None:
        key = descriptor.key
        logger.debug(
            "component.resolve.start",
            event="component.resolve.start",
            context={
                "key": qualified_name(key),
                "chain": [qualified_name(k) for k in resolution.in_progress],
            },
        )

        for prerequisite in descriptor.depends_on:
            self._require(key, prerequisite, resolution)

        constructor = self._selector.select(descriptor)
        arguments = [
            self._require(key, parameter, resolution)
            for parameter in constructor.parameters
        ]

        try:
            value = constructor.factory(*arguments)
            if value is None:
                raise TypeError(f"{constructor.name} returned None")
            enabled = self._is_enabled(descriptor, value)
        except ComponentError:
            raise
        except Exception as error:
            raise ComponentConstructionError(key, error) from error

        logger.debug(
            "component.construct.complete",
            event="component.construct.complete",
            context={
                "key": qualified_name(key),
                "constructor": constructor.name,
                "instance_type": qualified_name(type(value)),
                "enabled": enabled,
            },
        )

        if not enabled:
            resolution.disabled.add(key)
            logger.info(
                "Conditional component is disabled",
                event="component.disabled",
                context={"key": qualified_name(key)},
            )
            return None

        instance = ComponentInstance(key, value)
        self._lifecycle.activate(instance)
        self._registry.insert(instance)
        return value

    def _require(
        self,
        dependent: type[object],
        key: type[object],
        resolution: _Resolution,
    ) -> object:
        value = self._resolve_dependency(key, resolution)
        if value is None:
            raise UnsatisfiedConditionalDependencyError(dependent, key)
        return value

    @staticmethod
    def _is_enabled(descriptor: ComponentDescriptor[object], value: object) -> bool:
        if descriptor.enabled is not None:
            return bool(descriptor.enabled(value))
        if isinstance(value, Conditional):
            return bool(value.is_enabled())
        return True


__all__ = ["DependencyResolver"]
