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

"""Shared components and fixtures for container tests."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

import pytest

from graphwire.components import (
    ComponentDescriptor,
    ComponentRegistry,
    DependencyResolver,
    LifecycleManager,
)
from tests.helpers import Application, RecordingRegistrar, RecordingScheduler


class Tracked:
    """Records its start and stop hooks into a journal."""

    def __init__(self, journal: list[str]) -> None:
        self.journal = journal
        self.started = 0
        self.stopped = 0

    def on_start(self) -> None:
        self.started += 1
        self.journal.append(f"start:{type(self).__name__}")

    def on_stop(self) -> None:
        self.stopped += 1
        self.journal.append(f"stop:{type(self).__name__}")


class First(Tracked):
    pass


class Second(Tracked):
    def __init__(self, journal: list[str], first: First) -> None:
        super().__init__(journal)
        self.first = first


class Third(Tracked):
    def __init__(self, journal: list[str], first: First, second: Second) -> None:
        super().__init__(journal)
        self.first = first
        self.second = second


class Fourth(Tracked):
    def __init__(self, journal: list[str], *, enabled: bool) -> None:
        super().__init__(journal)
        self.enabled = enabled

    def is_enabled(self) -> bool:
        return self.enabled


class Fifth(Tracked):
    pass


@dataclass
class Listener:
    journal: list[str]
    received: list[object] = field(default_factory=list)

    def subscriptions(self) -> Mapping[type[object], Callable[[object], None]]:
        return {str: self.received.append}

    def on_stop(self) -> None:
        self.journal.append("stop:Listener")


@dataclass
class Ticker:
    journal: list[str]
    delay: float = 1.0
    period: float = 20.0
    off_main_context: bool = True
    ticks: int = 0

    def run(self) -> None:
        self.ticks += 1

    def on_stop(self) -> None:
        self.journal.append("stop:Ticker")


@dataclass
class SampleDescriptors:
    """Descriptors for the First..Fifth components sharing one journal."""

    journal: list[str]
    fourth_enabled: bool = True

    @property
    def first(self) -> ComponentDescriptor[First]:
        return ComponentDescriptor.of(First, lambda: First(self.journal))

    @property
    def second(self) -> ComponentDescriptor[Second]:
        return ComponentDescriptor.of(
            Second, lambda first: Second(self.journal, first), First
        )

    @property
    def third(self) -> ComponentDescriptor[Third]:
        return ComponentDescriptor.of(
            Third,
            lambda first, second: Third(self.journal, first, second),
            First,
            Second,
        )

    @property
    def fourth(self) -> ComponentDescriptor[Fourth]:
        return ComponentDescriptor.of(
            Fourth, lambda: Fourth(self.journal, enabled=self.fourth_enabled)
        )

    @property
    def fifth(self) -> ComponentDescriptor[Fifth]:
        return ComponentDescriptor.of(
            Fifth, lambda: Fifth(self.journal), depends_on=(Fourth,)
        )


@pytest.fixture
def samples(app: Application) -> SampleDescriptors:
    return SampleDescriptors(app.journal)


@pytest.fixture
def registry() -> ComponentRegistry:
    return ComponentRegistry()


@pytest.fixture
def lifecycle(
    registrar: RecordingRegistrar, scheduler: RecordingScheduler
) -> LifecycleManager:
    return LifecycleManager(registrar=registrar, scheduler=scheduler)


@pytest.fixture
def resolver(
    registry: ComponentRegistry, lifecycle: LifecycleManager
) -> DependencyResolver:
    return DependencyResolver(registry, lifecycle)
