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

"""Reference pruning for removed components.

Pruning clears the object references held by a removed component so it
cannot keep the rest of the graph reachable. It is opt-in: anything that
still holds the pruned instance will find its fields set to ``None``.
"""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum

from ..dbc import require
from ..runtime.logging import StructuredLogger, get_logger, qualified_name

logger: StructuredLogger = get_logger(__name__, context={"component": "prune"})

_SCALARS = (type(None), bool, int, float, complex, str, bytes, Enum)


def _slot_names(cls: type[object]) -> Iterator[str]:
    for klass in cls.__mro__:
        slots = klass.__dict__.get("__slots__", ())
        if isinstance(slots, str):
            slots = (slots,)
        for name in slots:
            if name not in {"__dict__", "__weakref__"}:
                yield name


def _fields_of(instance: object) -> Iterator[str]:
    seen: set[str] = set()
    for name in _slot_names(type(instance)):
        if name not in seen:
            seen.add(name)
            yield name
    for name in tuple(getattr(instance, "__dict__", {})):
        if name not in seen:
            seen.add(name)
            yield name


def _is_instance(instance: object) -> tuple[bool, str]:
    return not isinstance(instance, type), "classes are never pruned"


@require(_is_instance)
def prune_references(instance: object) -> int:
    """Set every non-scalar instance field of ``instance`` to ``None``.

    Scalars (``None``, ``bool``, numbers, ``str``, ``bytes``, enum members)
    are kept. Class attributes are never touched. Frozen dataclasses are
    written through ``object.__setattr__``.

    Returns:
        The number of fields cleared.
    """
    pruned: list[str] = []
    for name in _fields_of(instance):
        try:
            current = object.__getattribute__(instance, name)
        except AttributeError:
            continue
        if isinstance(current, _SCALARS):
            continue
        object.__setattr__(instance, name, None)
        pruned.append(name)

    logger.debug(
        "component.prune",
        event="component.prune",
        context={"type": qualified_name(type(instance)), "fields": pruned},
    )
    return len(pruned)


__all__ = ["prune_references"]
