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

"""Component descriptors consumed by the resolver."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class Constructor[T]:
    """One way of building a component from already-resolved dependencies.

    The factory is called with one positional argument per entry in
    ``parameters``, in order.

    Example::

        Constructor(
            factory=HTTPClient,
            parameters=(Config,),
        )
    """

    factory: Callable[..., T]
    """Callable invoked with the resolved dependency instances."""

    parameters: tuple[type[object], ...] = ()
    """Dependency keys, in call order. Every parameter is a hard dependency."""

    designated: bool = False
    """Marks the constructor to use when several public ones exist."""

    public: bool = True
    """Non-public constructors are never selected."""

    name: str = "__init__"
    """Diagnostic label."""


@dataclass(slots=True, frozen=True)
class ComponentDescriptor[T]:
    """Declaration of a component type and how to build it.

    Descriptors are produced by a catalog (hand-written, or discovered with
    :mod:`graphwire.components.catalog`) and never mutated afterwards.

    Example::

        from graphwire.components import ComponentDescriptor

        config = ComponentDescriptor.of(Config, Config.from_env)
        http = ComponentDescriptor.of(HTTPClient, HTTPClient, Config)
        metrics = ComponentDescriptor.of(
            Metrics,
            Metrics,
            Config,
            depends_on=(HTTPClient,),
            enabled=lambda m: m.endpoint is not None,
        )
    """

    key: type[T]
    """The type this component is registered and looked up under."""

    constructors: tuple[Constructor[T], ...]
    """Candidate constructors; see :func:`select_constructor`."""

    depends_on: tuple[type[object], ...] = ()
    """Hard prerequisites resolved before construction."""

    enabled: Callable[[T], bool] | None = None
    """Predicate evaluated on the constructed instance."""

    @staticmethod
    def of[U](
        key: type[U],
        factory: Callable[..., U],
        *parameters: type[object],
        depends_on: tuple[type[object], ...] = (),
        enabled: Callable[[U], bool] | None = None,
    ) -> ComponentDescriptor[U]:
        """Build a descriptor with a single public constructor."""

        return ComponentDescriptor(
            key=key,
            constructors=(Constructor(factory, tuple(parameters)),),
            depends_on=tuple(depends_on),
            enabled=enabled,
        )

    @property
    def name(self) -> str:
        return getattr(self.key, "__qualname__", repr(self.key))


__all__ = ["ComponentDescriptor", "Constructor"]
