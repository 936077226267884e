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

"""Registry of live component instances."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import cast

from ..dbc import invariant
from ..runtime.logging import StructuredLogger, get_logger, qualified_name
from .errors import DuplicateComponentError, LifecycleError
from .instance import ComponentInstance, LifecycleState

logger: StructuredLogger = get_logger(__name__, context={"component": "registry"})


def _records_match_keys(registry: ComponentRegistry) -> bool:
    return all(
        record.key is key and record.state is not LifecycleState.CONSTRUCTED
        for key, record in registry._instances.items()  # pyright: ignore[reportPrivateUsage]
    )


@invariant(_records_match_keys)
class ComponentRegistry:
    """Insertion-ordered mapping from component key to its live instance.

    At most one instance exists per key, and only activated instances are
    inserted, so every key present belongs to an enabled component.
    Iteration follows insertion order; :meth:`remove_all` returns records in
    reverse insertion order, which is the teardown order.

    Example::

        registry = ComponentRegistry()
        registry.insert(record)
        assert registry.get(Config) is record.value
        for removed in registry.remove_all():
            ...

    Not thread safe. Concurrent lookups are fine as long as nothing inserts
    or removes at the same time.
    """

    __slots__ = ("_instances",)

    def __init__(self) -> None:  # pyright: ignore[reportMissingSuperCall]
        self._instances: dict[type[object], ComponentInstance[object]] = {}

    def get[T](self, key: type[T]) -> T | None:
        """Return the instance registered under exactly ``key``, if any."""
        record = self._instances.get(key)
        return cast(T, record.value) if record is not None else None

    def find[T](self, protocol: type[T]) -> T | None:
        """Return the first registered instance that is an instance of ``protocol``.

        Exact key matches win; otherwise instances are checked in insertion
        order. ``protocol`` must support ``isinstance`` checks.
        """
        exact = self.get(protocol)
        if exact is not None:
            return exact
        for record in self._instances.values():
            if isinstance(record.value, protocol):
                return record.value
        return None

    def record[T](self, key: type[T]) -> ComponentInstance[T] | None:
        """Return the full record for ``key``, including lifecycle state."""
        return cast(ComponentInstance[T] | None, self._instances.get(key))

    def contains(self, key: type[object]) -> bool:
        return key in self._instances

    def __contains__(self, key: object) -> bool:
        return key in self._instances

    def __len__(self) -> int:
        return len(self._instances)

    def __iter__(self) -> Iterator[type[object]]:
        yield from self._instances

    def instances(self) -> Sequence[ComponentInstance[object]]:
        """Return all records in insertion order."""
        return tuple(self._instances.values())

    def insert(self, instance: ComponentInstance[object]) -> None:
        """Store an activated instance.

        Raises:
            DuplicateComponentError: The key already has an instance.
            LifecycleError: The instance is not activated.
        """
        if instance.key in self._instances:
            raise DuplicateComponentError(instance.key)
        if instance.state is not LifecycleState.ACTIVATED:
            raise LifecycleError(
                instance.key, instance.state, LifecycleState.ACTIVATED
            )
        self._instances[instance.key] = instance

    def instance_of(self, value: object) -> ComponentInstance[object] | None:
        """Return the record holding ``value`` (compared by identity)."""
        for record in self._instances.values():
            if record.value is value:
                return record
        return None

    def remove_one(self, value: object) -> ComponentInstance[object] | None:
        """Remove the record holding ``value``.

        Returns:
            The removed record, or ``None`` when ``value`` is not registered.
        """
        record = self.instance_of(value)
        if record is not None:
            del self._instances[record.key]
        return record

    def remove_all(self) -> list[ComponentInstance[object]]:
        """Remove every record, returning them in reverse insertion order."""
        removed = list(reversed(self._instances.values()))
        self._instances.clear()
        logger.debug(
            "component.registry.clear",
            event="component.registry.clear",
            context={
                "removed": [qualified_name(record.key) for record in removed],
            },
        )
        return removed


__all__ = ["ComponentRegistry"]
