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

"""Container facade tying the resolver, registry and lifecycle together."""

from __future__ import annotations

from collections.abc import Iterable
from types import ModuleType, TracebackType
from typing import Self

from ..dbc import ContractResult, require
from ..runtime.logging import StructuredLogger, get_logger, qualified_name
from .catalog import scan as scan_package
from .descriptor import ComponentDescriptor
from .errors import DuplicateComponentError
from .instance import ComponentInstance, LifecycleState
from .lifecycle import LifecycleManager
from .protocols import EventRegistrar, Scheduler
from .prune import prune_references
from .registry import ComponentRegistry
from .resolver import DependencyResolver

logger: StructuredLogger = get_logger(__name__, context={"component": "container"})


def _value_fits_key(
    container: Container, value: object, *, key: type[object] | None = None
) -> ContractResult:
    if value is None:
        return False, "None cannot be registered as a component"
    if key is not None and not isinstance(value, key):
        return False, f"{qualified_name(type(value))} is not a {qualified_name(key)}"
    return True


class Container:
    """Object-graph container for a host application.

    The host object is registered first, under ``host_key`` (defaults to its
    own type), and can be injected like any other component.

    Example::

        with Container(app, registrar=bus, scheduler=timer) as container:
            container.initialize([
                ComponentDescriptor.of(Config, Config.from_env),
                ComponentDescriptor.of(Repository, Repository, Config, App),
            ])
            repo = container.get(Repository)
        # every component, host included, stopped in reverse order here

    Not thread safe: ``initialize`` and the removal methods must run on one
    thread, typically once at startup and once at shutdown.
    """

    __slots__ = ("_host", "_host_key", "_lifecycle", "_registry", "_resolver")

    def __init__(  # pyright: ignore[reportMissingSuperCall]
        self,
        host: object,
        *,
        host_key: type[object] | None = None,
        registrar: EventRegistrar | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self._host = host
        self._host_key = host_key if host_key is not None else type(host)
        self._registry = ComponentRegistry()
        self._lifecycle = LifecycleManager(registrar=registrar, scheduler=scheduler)
        self._resolver = DependencyResolver(self._registry, self._lifecycle)
        self.add(host, key=self._host_key)

    @property
    def host(self) -> object:
        return self._host

    @property
    def registry(self) -> ComponentRegistry:
        return self._registry

    def initialize(
        self, descriptors: Iterable[ComponentDescriptor[object]]
    ) -> ComponentRegistry:
        """Resolve, start and register every descriptor.

        Components already present are skipped. On failure the components
        resolved so far stay registered and started.
        """
        registry = self._resolver.resolve_all(descriptors)
        logger.info(
            "Container initialized",
            event="component.container.initialized",
            context={"components": len(registry)},
        )
        return registry

    def scan(
        self, package: str | ModuleType, *, exclude: Iterable[str] = ()
    ) -> ComponentRegistry:
        """Discover ``@component`` classes under ``package`` and initialize them."""
        return self.initialize(scan_package(package, exclude=exclude))

    def resolve[T](self, descriptor: ComponentDescriptor[T]) -> T | None:
        """Resolve a single descriptor; ``None`` when it is disabled."""
        return self._resolver.resolve(descriptor)

    def get[T](self, key: type[T]) -> T | None:
        """Return the component registered as ``key`` or assignable to it."""
        return self._registry.find(key)

    def contains(self, key: type[object]) -> bool:
        return self.get(key) is not None

    def __contains__(self, key: type[object]) -> bool:
        return self.contains(key)

    @require(_value_fits_key)
    def add(self, value: object, *, key: type[object] | None = None) -> None:
        """Start and register an externally constructed object.

        Raises:
            DuplicateComponentError: ``key`` is already registered.
            ComponentConstructionError: The start hook or a host
                registration raised.
        """
        instance = ComponentInstance(key if key is not None else type(value), value)
        if instance.key in self._registry:
            raise DuplicateComponentError(instance.key)
        self._lifecycle.activate(instance)
        self._registry.insert(instance)

    def remove(self, value: object, *, prune: bool = False) -> bool:
        """Stop, unregister and drop ``value``.

        With ``prune=True`` the object references held by ``value`` are
        cleared afterwards. Only do this when nothing else still uses it.

        Returns:
            ``False`` when ``value`` was not registered.
        """
        instance = self._registry.instance_of(value)
        if instance is None:
            return False
        try:
            if instance.state is LifecycleState.ACTIVATED:
                self._lifecycle.deactivate(instance)
        finally:
            _ = self._registry.remove_one(value)
        if prune:
            self._release(instance)
        return True

    def remove_all(self, *, prune: bool = False) -> None:
        """Stop and drop every component, newest first, host included.

        Components are stopped while still registered, so a stop hook can
        look up the components it depends on. The registry is empty
        afterwards even if a deactivation raised.
        """
        try:
            for instance in reversed(self._registry.instances()):
                if instance.state is LifecycleState.ACTIVATED:
                    self._lifecycle.deactivate(instance)
        finally:
            removed = self._registry.remove_all()
        if prune:
            for instance in removed:
                self._release(instance)
        logger.info(
            "Container cleared",
            event="component.container.cleared",
            context={"components": len(removed), "pruned": prune},
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.remove_all()

    def _release(self, instance: ComponentInstance[object]) -> None:
        if instance.value is self._host:
            logger.debug(
                "Host object is never pruned",
                event="component.prune.skip_host",
                context={"key": qualified_name(instance.key)},
            )
            return
        _ = prune_references(instance.value)
        instance.advance(LifecycleState.RELEASED)


__all__ = ["Container"]
