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

"""Component discovery: declaration decorators and package scanning.

The resolver never introspects classes. This module turns decorated
classes into :class:`ComponentDescriptor` values ahead of time.

Example::

    from graphwire.components import component, inject

    @component()
    class Repository:
        def __init__(self, config: Config) -> None:
            self._config = config

    @component(depends_on=(Repository,))
    class Reporter:
        def __init__(self, config: Config, clock: Clock) -> None: ...

        @inject
        @classmethod
        def create(cls, config: Config) -> Reporter:
            return cls(config, SystemClock())

    descriptors = scan("myapp.services", exclude=("legacy",))
"""

from __future__ import annotations

import importlib
import inspect
import pkgutil
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from types import ModuleType
from typing import (
    Annotated,
    Protocol,
    Self,
    cast,
    get_args,
    get_origin,
    get_type_hints,
    runtime_checkable,
)

from ..runtime.logging import StructuredLogger, get_logger
from .descriptor import ComponentDescriptor, Constructor
from .errors import CatalogError, DuplicateComponentError, NotAComponentError

logger: StructuredLogger = get_logger(__name__, context={"component": "catalog"})

_COMPONENT_ATTR = "__graphwire_component__"
_INJECT_ATTR = "__graphwire_inject__"
_CONSTRUCTOR_ATTR = "__graphwire_constructor__"


@dataclass(slots=True, frozen=True)
class _ComponentMarker:
    depends_on: tuple[type[object], ...]
    enabled: Callable[[object], bool] | None


def component[T](
    *,
    depends_on: Iterable[type[object]] = (),
    enabled: Callable[[T], bool] | None = None,
) -> Callable[[type[T]], type[T]]:
    """Class decorator declaring a component.

    Args:
        depends_on: Components that must exist and be enabled before this
            one is built, in addition to its constructor parameters.
        enabled: Predicate evaluated on the constructed instance. When
            omitted, an ``is_enabled()`` method is used if present.

    The marker is not inherited: subclasses must be decorated themselves.
    """
    marker = _ComponentMarker(
        tuple(depends_on), cast(Callable[[object], bool] | None, enabled)
    )

    def decorator(cls: type[T]) -> type[T]:
        type.__setattr__(cls, _COMPONENT_ATTR, marker)
        return cls

    return decorator


def _mark[F](target: F, attribute: str) -> F:
    function = target.__func__ if isinstance(target, classmethod) else target
    setattr(function, attribute, True)
    return target


def inject[F](target: F) -> F:
    """Designate the constructor used when a component has several.

    Apply to ``__init__`` or to a classmethod constructor.
    """
    _ = _mark(target, _CONSTRUCTOR_ATTR)
    return _mark(target, _INJECT_ATTR)


def constructor[F](target: F) -> F:
    """Offer a classmethod as an additional constructor candidate."""
    return _mark(target, _CONSTRUCTOR_ATTR)


def is_component(cls: object) -> bool:
    """Return ``True`` when ``cls`` itself is decorated with :func:`component`."""
    return isinstance(cls, type) and _COMPONENT_ATTR in cls.__dict__


def describe[T](cls: type[T]) -> ComponentDescriptor[T]:
    """Build the descriptor of a decorated class.

    Candidate constructors are ``__init__`` plus every classmethod marked
    with :func:`constructor` or :func:`inject`. Parameter types come from
    the type hints; ``Annotated`` metadata is ignored and parameters with
    defaults are not injected.

    Raises:
        NotAComponentError: ``cls`` is not decorated with :func:`component`.
        CatalogError: A constructor parameter cannot be injected.
    """
    if not is_component(cls):
        raise NotAComponentError(cls)
    marker = cast(_ComponentMarker, cls.__dict__[_COMPONENT_ATTR])

    constructors: list[Constructor[T]] = [_init_constructor(cls)]
    for name, attribute in cls.__dict__.items():
        if not isinstance(attribute, classmethod):
            continue
        function = cast(Callable[..., object], attribute.__func__)
        if not getattr(function, _CONSTRUCTOR_ATTR, False):
            continue
        bound = cast(Callable[..., T], getattr(cls, name))
        constructors.append(
            Constructor(
                factory=bound,
                parameters=_parameters_of(cls, bound, function),
                designated=bool(getattr(function, _INJECT_ATTR, False)),
                public=not name.startswith("_"),
                name=f"{cls.__qualname__}.{name}",
            )
        )

    return ComponentDescriptor(
        key=cls,
        constructors=tuple(constructors),
        depends_on=marker.depends_on,
        enabled=cast(Callable[[T], bool] | None, marker.enabled),
    )


def _init_constructor[T](cls: type[T]) -> Constructor[T]:
    init = cls.__init__
    parameters: tuple[type[object], ...] = ()
    if init is not object.__init__:
        parameters = _parameters_of(cls, init, init, skip_first=True)
    return Constructor(
        factory=cls,
        parameters=parameters,
        designated=bool(getattr(init, _INJECT_ATTR, False)),
        name=f"{cls.__qualname__}.__init__",
    )


def _parameters_of(
    cls: type[object],
    target: Callable[..., object],
    annotated: Callable[..., object],
    *,
    skip_first: bool = False,
) -> tuple[type[object], ...]:
    try:
        hints = get_type_hints(annotated, include_extras=True)
    except NameError as error:
        raise CatalogError(
            f"Unable to evaluate annotations of {cls.__qualname__}: {error}"
        ) from error

    parameters = list(inspect.signature(target).parameters.values())
    if skip_first:
        parameters = parameters[1:]

    result: list[type[object]] = []
    for parameter in parameters:
        if parameter.kind in {
            inspect.Parameter.VAR_POSITIONAL,
            inspect.Parameter.VAR_KEYWORD,
        }:
            raise CatalogError(
                f"Variadic parameter {parameter.name!r} of {cls.__qualname__} "
                "cannot be injected"
            )
        if parameter.default is not inspect.Parameter.empty:
            continue
        if parameter.kind is inspect.Parameter.KEYWORD_ONLY:
            raise CatalogError(
                f"Keyword-only parameter {parameter.name!r} of {cls.__qualname__} "
                "needs a default"
            )
        result.append(_dependency_type(cls, parameter.name, hints))
    return tuple(result)


def _dependency_type(
    cls: type[object], name: str, hints: dict[str, object]
) -> type[object]:
    try:
        annotation = hints[name]
    except KeyError:
        raise CatalogError(
            f"Dependency {name!r} of {cls.__qualname__} is not annotated"
        ) from None

    if get_origin(annotation) is Annotated:
        annotation = get_args(annotation)[0]
    if not isinstance(annotation, type):
        raise CatalogError(
            f"Dependency {name!r} of {cls.__qualname__} must be annotated "
            f"with a class, got {annotation!r}"
        )
    return cast(type[object], annotation)


def _import(package: str | ModuleType) -> ModuleType:
    if isinstance(package, ModuleType):
        return package
    return importlib.import_module(package)


def _iter_modules(root: ModuleType, exclude: frozenset[str]) -> Iterator[ModuleType]:
    yield root
    path = getattr(root, "__path__", None)
    if path is None:
        return

    prefix = f"{root.__name__}."
    names = sorted(
        info.name for info in pkgutil.walk_packages(path, prefix=prefix)
    )
    for name in names:
        relative = name.removeprefix(prefix)
        if any(
            relative == excluded or relative.startswith(f"{excluded}.")
            for excluded in exclude
        ):
            continue
        yield importlib.import_module(name)


def scan(
    package: str | ModuleType, *, exclude: Iterable[str] = ()
) -> list[ComponentDescriptor[object]]:
    """Import ``package`` recursively and describe its decorated classes.

    Args:
        package: Dotted name or module to scan.
        exclude: Subpackages, relative to ``package``, that are skipped
            along with everything below them.

    Returns:
        Descriptors ordered by module name, then definition order.
    """
    root = _import(package)
    excluded = frozenset(exclude)
    descriptors: list[ComponentDescriptor[object]] = []
    for module in _iter_modules(root, excluded):
        for value in vars(module).values():
            if is_component(value) and value.__module__ == module.__name__:
                descriptors.append(describe(cast(type[object], value)))

    logger.debug(
        "component.catalog.scan",
        event="component.catalog.scan",
        context={
            "package": root.__name__,
            "exclude": sorted(excluded),
            "components": [d.name for d in descriptors],
        },
    )
    return descriptors


@runtime_checkable
class CatalogModule(Protocol):
    """A reusable unit that contributes components to a :class:`Catalog`.

    Example::

        class StorageModule:
            def configure(self, catalog: Catalog) -> None:
                catalog.include(Database, Repository)
    """

    def configure(self, catalog: Catalog) -> None:
        """Contribute descriptors to ``catalog``."""
        ...


class Catalog:
    """Accumulates descriptors from classes, modules and package scans.

    Example::

        catalog = Catalog()
        catalog.include(Config, Repository)
        catalog.scan("myapp.plugins", exclude=("experimental",))
        container.initialize(catalog.descriptors())
    """

    __slots__ = ("_descriptors",)

    def __init__(self) -> None:  # pyright: ignore[reportMissingSuperCall]
        self._descriptors: dict[type[object], ComponentDescriptor[object]] = {}

    def add(self, *descriptors: ComponentDescriptor[object]) -> Self:
        """Add ready-made descriptors.

        Raises:
            DuplicateComponentError: A key is already in the catalog.
        """
        for descriptor in descriptors:
            if descriptor.key in self._descriptors:
                raise DuplicateComponentError(descriptor.key)
            self._descriptors[descriptor.key] = descriptor
        return self

    def include(self, *classes: type[object]) -> Self:
        """Describe and add decorated classes."""
        return self.add(*(describe(cls) for cls in classes))

    def scan(self, package: str | ModuleType, *, exclude: Iterable[str] = ()) -> Self:
        """Add every component found under ``package``."""
        return self.add(*scan(package, exclude=exclude))

    def install(self, module: CatalogModule) -> Self:
        module.configure(self)
        return self

    def descriptors(self) -> list[ComponentDescriptor[object]]:
        """Return descriptors in the order they were added."""
        return list(self._descriptors.values())

    def __contains__(self, key: object) -> bool:
        return key in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


__all__ = [
    "Catalog",
    "CatalogModule",
    "component",
    "constructor",
    "describe",
    "inject",
    "is_component",
    "scan",
]
