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

"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from io import StringIO

import pytest

from graphwire.components import ComponentDescriptor, Container
from graphwire.runtime.logging import (
    _coerce_level,  # pyright: ignore[reportPrivateUsage]
    configure_logging,
    get_logger,
    qualified_name,
)
from tests.helpers import Application, capture_logs


@pytest.fixture(autouse=True)
def reset_logging_state() -> Iterator[None]:
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    try:
        yield
    finally:
        for handler in root.handlers:
            if handler not in original_handlers:
                handler.close()
        root.handlers = original_handlers
        root.setLevel(original_level)


def test_structured_logger_emits_structured_records() -> None:
    logger = get_logger("graphwire.tests").bind(component="unit-test")

    with capture_logs("graphwire.tests") as logs:
        logger.info("structured", event="tests.event", context={"attempt": 1})

    assert len(logs.records) == 1
    record = logs.records[0]
    assert getattr(record, "event", None) == "tests.event"
    assert getattr(record, "context", None) == {"component": "unit-test", "attempt": 1}
    assert record.getMessage() == "structured"


def test_structured_logger_handles_none_extra_and_merges_mapping() -> None:
    logger = get_logger("graphwire.tests.extra")

    with capture_logs("graphwire.tests.extra") as logs:
        logger.info("none-extra", event="tests.none", extra=None)
        logger.info("with-extra", extra={"event": "tests.extra", "count": 2})

    assert logs.events() == ["tests.none", "tests.extra"]
    assert getattr(logs.records[0], "context", None) == {}
    assert getattr(logs.records[1], "context", None) == {"count": 2}


def test_bind_keeps_the_original_adapter_untouched() -> None:
    base = get_logger("graphwire.tests.bind", context={"component": "base"})
    bound = base.bind(key="Config")

    assert base.extra == {"component": "base"}
    assert bound.extra == {"component": "base", "key": "Config"}
    assert bound.logger is base.logger


def test_structured_logger_requires_event_metadata() -> None:
    logger = get_logger("graphwire.tests.missing")
    logger.logger.setLevel(logging.INFO)

    with pytest.raises(TypeError):
        logger.info("missing-event", extra={"detail": True})


def test_structured_logger_rejects_non_mapping_context() -> None:
    logger = get_logger("graphwire.tests.context")
    logger.logger.setLevel(logging.INFO)

    with pytest.raises(TypeError):
        logger.info("bad-context", event="tests.bad", context=["not", "a", "map"])


def test_qualified_name() -> None:
    assert qualified_name(Application) == "Application"
    assert qualified_name("plain") == "'plain'"


def test_container_events_carry_component_context() -> None:
    class Config:
        pass

    with capture_logs() as logs:
        container = Container(Application())
        _ = container.initialize([ComponentDescriptor.of(Config, Config)])
        container.remove_all()

    events = logs.events()
    assert "component.container.initialized" in events
    assert "component.container.cleared" in events
    activations = [
        getattr(r, "context", {}) for r in logs.records
        if getattr(r, "event", None) == "component.activate"
    ]
    assert [c["key"] for c in activations] == [
        "Application",
        "test_container_events_carry_component_context.<locals>.Config",
    ]
    assert all(c["component"] == "lifecycle" for c in activations)


def test_configure_logging_respects_existing_handlers() -> None:
    root = logging.getLogger()
    root_handler = logging.NullHandler()
    root.handlers = [root_handler]

    configure_logging(level="DEBUG", json_mode=True)

    assert root.handlers == [root_handler]
    assert root.level == logging.DEBUG


def test_configure_logging_honors_env_toggle() -> None:
    configure_logging(
        force=True,
        env={"GRAPHWIRE_LOG_FORMAT": "json", "GRAPHWIRE_LOG_LEVEL": "warning"},
    )

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.handlers[0].formatter.__class__.__name__ == "_JsonFormatter"
    assert root.level == logging.WARNING


def test_configure_logging_json_mode_emits_structured_output(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    stream = StringIO()
    monkeypatch.setattr(sys, "stderr", stream)

    configure_logging(json_mode=True, force=True)

    logger = get_logger("graphwire.tests.json").bind(component="json-test")
    logger.logger.setLevel(logging.INFO)

    logger.info("payload", event="tests.json", context={"key": object})

    root = logging.getLogger()
    root.handlers[0].flush()

    payload = json.loads(stream.getvalue().strip())
    assert payload["event"] == "tests.json"
    assert payload["context"]["component"] == "json-test"
    assert "object" in payload["context"]["key"]
    assert payload["message"] == "payload"
    assert payload["logger"] == "graphwire.tests.json"


def test_configure_logging_text_mode_appends_event(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    stream = StringIO()
    monkeypatch.setattr(sys, "stderr", stream)

    configure_logging(level="INFO", force=True, env={})

    logger = get_logger("graphwire.tests.text")
    logger.logger.setLevel(logging.INFO)
    logger.info("hello", event="tests.text", context={"key": "Config"})
    logging.getLogger().handlers[0].flush()

    line = stream.getvalue().strip()
    assert line.endswith("hello event=tests.text key=Config")


def test_configure_logging_json_includes_exception(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    stream = StringIO()
    monkeypatch.setattr(sys, "stderr", stream)

    configure_logging(json_mode=True, force=True)
    logger = get_logger("graphwire.tests.exc")
    logger.logger.setLevel(logging.INFO)

    try:
        raise RuntimeError("boom")
    except RuntimeError:
        logger.exception("failed", event="tests.error")

    payload = json.loads(stream.getvalue().strip())
    assert "RuntimeError: boom" in payload["exc_info"]


def test_configure_logging_accepts_integer_level() -> None:
    configure_logging(level=logging.WARNING, force=True)
    assert logging.getLogger().level == logging.WARNING


def test_coerce_level_defaults_to_info() -> None:
    assert _coerce_level(None) == logging.INFO


def test_coerce_level_is_case_insensitive() -> None:
    assert _coerce_level("debug") == logging.DEBUG


def test_coerce_level_rejects_unknown_names() -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        _ = _coerce_level("chatty")
