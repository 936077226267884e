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

"""Component resolution with an ordered start/stop lifecycle.

Quick Start::

    from graphwire.components import ComponentDescriptor, Container

    container = Container(app)
    container.initialize([
        ComponentDescriptor.of(Config, Config.from_env),
        ComponentDescriptor.of(HTTPClient, HTTPClient, Config),
        ComponentDescriptor.of(
            Metrics,
            Metrics,
            HTTPClient,
            enabled=lambda metrics: metrics.endpoint is not None,
        ),
    ])

    try:
        http = container.get(HTTPClient)
    finally:
        container.remove_all()  # stops Metrics, HTTPClient, Config, then app

Resolution
----------

Each component is built once, after everything it depends on. Constructor
parameters and ``depends_on`` entries are hard dependencies: if one resolves
to a disabled component, resolution fails with
``UnsatisfiedConditionalDependencyError``. A disabled component nobody needs
is skipped silently.

Lifecycle Protocols
-------------------

- ``Startable``: ``on_start()`` runs before the component is registered
- ``Stoppable``: ``on_stop()`` runs when the component is removed
- ``Conditional``: ``is_enabled()`` decides whether the component is kept
- ``EventListener``: registered with the host's ``EventRegistrar``
- ``ScheduledTask``: scheduled on the host's ``Scheduler``

Teardown runs newest first. ``remove(..., prune=True)`` additionally clears
the references a removed component holds.
"""

from __future__ import annotations

from .catalog import (
    Catalog,
    CatalogModule,
    component,
    constructor,
    describe,
    inject,
    is_component,
    scan,
)
from .container import Container
from .descriptor import ComponentDescriptor, Constructor
from .errors import (
    AmbiguousConstructorError,
    CatalogError,
    CircularDependencyError,
    ComponentConstructionError,
    ComponentError,
    DuplicateComponentError,
    LifecycleError,
    NotAComponentError,
    UnsatisfiedConditionalDependencyError,
)
from .instance import ComponentInstance, LifecycleState
from .lifecycle import LifecycleManager
from .protocols import (
    Conditional,
    EventListener,
    EventRegistrar,
    ScheduledTask,
    Scheduler,
    Startable,
    Stoppable,
    TaskHandle,
)
from .prune import prune_references
from .registry import ComponentRegistry
from .resolver import DependencyResolver
from .selector import ConstructorSelector, select_constructor

__all__ = [
    "AmbiguousConstructorError",
    "Catalog",
    "CatalogError",
    "CatalogModule",
    "CircularDependencyError",
    "ComponentConstructionError",
    "ComponentDescriptor",
    "ComponentError",
    "ComponentInstance",
    "ComponentRegistry",
    "Conditional",
    "Constructor",
    "ConstructorSelector",
    "Container",
    "DependencyResolver",
    "DuplicateComponentError",
    "EventListener",
    "EventRegistrar",
    "LifecycleError",
    "LifecycleManager",
    "LifecycleState",
    "NotAComponentError",
    "ScheduledTask",
    "Scheduler",
    "Startable",
    "Stoppable",
    "TaskHandle",
    "UnsatisfiedConditionalDependencyError",
    "component",
    "constructor",
    "describe",
    "inject",
    "is_component",
    "prune_references",
    "scan",
    "select_constructor",
]
