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

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import pytest

from graphwire.components import prune_references
from tests.helpers import capture_logs


class Mode(Enum):
    FAST = "fast"


class Dependency:
    pass


class Plain:
    label = ["class", "level"]

    def __init__(self) -> None:
        self.name = "plain"
        self.count = 3
        self.ratio = 0.5
        self.flag = True
        self.raw = b"x"
        self.mode = Mode.FAST
        self.nothing = None
        self.dependency = Dependency()
        self.items = [1, 2]
        self.lookup = {"a": 1}


class Slotted:
    __slots__ = ("dependency", "name", "unset")

    def __init__(self) -> None:
        self.dependency = Dependency()
        self.name = "slotted"


class SlottedChild(Slotted):
    __slots__ = "extra"

    def __init__(self) -> None:
        super().__init__()
        self.extra = Dependency()


@dataclass(frozen=True)
class Frozen:
    dependency: Dependency
    name: str


class TestPruneReferences:
    def test_clears_only_non_scalars(self) -> None:
        plain = Plain()

        cleared = prune_references(plain)

        assert cleared == 3
        assert plain.dependency is None
        assert plain.items is None
        assert plain.lookup is None
        assert plain.name == "plain"
        assert plain.count == 3
        assert plain.ratio == 0.5
        assert plain.flag is True
        assert plain.raw == b"x"
        assert plain.mode is Mode.FAST

    def test_class_attributes_untouched(self) -> None:
        plain = Plain()
        _ = prune_references(plain)
        assert Plain.label == ["class", "level"]
        assert "label" not in vars(plain)

    def test_slots_across_hierarchy(self) -> None:
        child = SlottedChild()

        cleared = prune_references(child)

        assert cleared == 2
        assert child.dependency is None
        assert child.extra is None
        assert child.name == "slotted"
        assert not hasattr(child, "unset")

    def test_frozen_dataclass(self) -> None:
        frozen = Frozen(Dependency(), "frozen")

        assert prune_references(frozen) == 1
        assert frozen.dependency is None
        assert frozen.name == "frozen"

    def test_idempotent(self) -> None:
        plain = Plain()
        _ = prune_references(plain)
        assert prune_references(plain) == 0

    def test_logs_cleared_fields(self) -> None:
        with capture_logs() as logs:
            _ = prune_references(Plain())

        record = logs.records[-1]
        assert getattr(record, "event", None) == "component.prune"
        context = getattr(record, "context", {})
        assert context["fields"] == ["dependency", "items", "lookup"]

    def test_classes_are_rejected(self) -> None:
        with pytest.raises(AssertionError, match="classes are never pruned"):
            _ = prune_references(Plain)
        assert Plain.label == ["class", "level"]

