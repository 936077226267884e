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

"""Constructor selection."""

from __future__ import annotations

from typing import cast

from ..dbc import ensure
from .descriptor import ComponentDescriptor, Constructor
from .errors import AmbiguousConstructorError


def _selected_is_public(
    descriptor: ComponentDescriptor[object], *, result: Constructor[object]
) -> bool:
    return result.public and result in descriptor.constructors


@ensure(_selected_is_public)
def select_constructor[T](descriptor: ComponentDescriptor[T]) -> Constructor[T]:
    """Return the constructor used to build ``descriptor``.

    A lone public constructor is always chosen. Otherwise exactly one public
    constructor must be ``designated``.

    Raises:
        AmbiguousConstructorError: No public constructor, or several without
            a single designated one.
    """
    public = [c for c in descriptor.constructors if c.public]
    if len(public) == 1:
        return public[0]

    designated = [c for c in public if c.designated]
    if len(designated) == 1:
        return designated[0]

    raise AmbiguousConstructorError(descriptor.key, len(public))


class ConstructorSelector:
    """Caches :func:`select_constructor` results per descriptor."""

    __slots__ = ("_selected",)

    def __init__(self) -> None:  # pyright: ignore[reportMissingSuperCall]
        self._selected: dict[
            ComponentDescriptor[object], Constructor[object]
        ] = {}

    def select[T](self, descriptor: ComponentDescriptor[T]) -> Constructor[T]:
        """Return the cached selection, selecting on first use."""
        erased = cast(ComponentDescriptor[object], descriptor)
        selected = self._selected.get(erased)
        if selected is None:
            selected = select_constructor(erased)
            self._selected[erased] = selected
        return cast(Constructor[T], selected)

    def __len__(self) -> int:
        return len(self._selected)


__all__ = ["ConstructorSelector", "select_constructor"]
