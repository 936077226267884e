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

"""Design by contract checks guarding container internals.

Contracts are inert unless ``GRAPHWIRE_DBC`` is set to a truthy value or
enforcement is forced with :func:`enable_dbc` / :func:`dbc_enabled`. A failed
contract raises :class:`AssertionError`; contracts never replace the typed
errors of :mod:`graphwire.components`.

Predicates return a boolean, or a ``(bool, detail)`` tuple whose detail is
appended to the failure message::

    @require(lambda registry, instance: (instance.key is not None, "no key"))
    def insert(registry, instance): ...
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from functools import wraps
from typing import cast

type ContractResult = bool | tuple[bool, *tuple[object, ...]] | None
"""Predicate outcome: a boolean, or a ``(bool, detail)`` tuple."""

type Predicate = Callable[..., ContractResult | object]

_ENV_FLAG = "GRAPHWIRE_DBC"
_FALSE_VALUES = frozenset({"", "0", "false", "off", "no"})
_forced_state: bool | None = None


def dbc_active() -> bool:
    """Return ``True`` when contracts are checked."""

    if _forced_state is not None:
        return _forced_state
    raw = os.getenv(_ENV_FLAG)
    return raw is not None and raw.strip().lower() not in _FALSE_VALUES


def enable_dbc() -> None:
    global _forced_state
    _forced_state = True


def disable_dbc() -> None:
    global _forced_state
    _forced_state = False


@contextmanager
def dbc_enabled(*, active: bool = True) -> Iterator[None]:
    """Force contract checks on (or off) inside a ``with`` block."""

    global _forced_state
    previous = _forced_state
    _forced_state = active
    try:
        yield
    finally:
        _forced_state = previous


def _outcome(result: object) -> tuple[bool, str | None]:
    if isinstance(result, tuple):
        items = cast(tuple[object, ...], result)
        if not items:
            raise TypeError("Contract predicates must not return empty tuples")
        return bool(items[0]), (str(items[1]) if len(items) > 1 else None)
    return result is not None and bool(result), None


def _check(
    kind: str,
    target: Callable[..., object],
    predicates: tuple[Predicate, ...],
    args: tuple[object, ...],
    kwargs: Mapping[str, object],
) -> None:
    where = getattr(target, "__qualname__", repr(target))
    for predicate in predicates:
        try:
            result = predicate(*args, **kwargs)
        except AssertionError:
            raise
        except Exception as error:
            raise AssertionError(
                f"{kind} contract for {where} raised {type(error).__name__}: {error}"
            ) from error
        passed, detail = _outcome(result)
        if passed:
            continue
        name = getattr(predicate, "__name__", repr(predicate))
        message = f"{kind} contract for {where} failed via {name}."
        if detail:
            message = f"{message} Details: {detail}"
        raise AssertionError(message)


def _predicates(kind: str, predicates: tuple[Predicate, ...]) -> tuple[Predicate, ...]:
    if not predicates:
        raise ValueError(f"@{kind} expects at least one predicate")
    return predicates


def require[**P, R](*predicates: Predicate) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Check preconditions against the call arguments."""

    checks = _predicates("require", predicates)

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapped(*args: P.args, **kwargs: P.kwargs) -> R:
            if dbc_active():
                _check("require", func, checks, args, kwargs)
            return func(*args, **kwargs)

        return wrapped

    return decorator


def ensure[**P, R](*predicates: Predicate) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """Check postconditions after a successful return.

    Predicates receive the call arguments plus ``result`` as a keyword.
    """

    checks = _predicates("ensure", predicates)

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapped(*args: P.args, **kwargs: P.kwargs) -> R:
            result = func(*args, **kwargs)
            if dbc_active():
                _check("ensure", func, checks, args, {**kwargs, "result": result})
            return result

        return wrapped

    return decorator


def invariant[C: type](*predicates: Predicate) -> Callable[[C], C]:
    """Check class invariants around every public method call.

    Methods whose name starts with an underscore, static methods, class
    methods and properties are left unwrapped.
    """

    checks = _predicates("invariant", predicates)

    def guard(method: Callable[..., object]) -> Callable[..., object]:
        @wraps(method)
        def wrapped(self: object, *args: object, **kwargs: object) -> object:
            if not dbc_active():
                return method(self, *args, **kwargs)
            _check("invariant", method, checks, (self,), {})
            try:
                return method(self, *args, **kwargs)
            finally:
                _check("invariant", method, checks, (self,), {})

        return wrapped

    def decorator(cls: C) -> C:
        for name, attribute in list(vars(cls).items()):
            if name.startswith("_") or not callable(attribute):
                continue
            if isinstance(attribute, (staticmethod, classmethod)):
                continue
            setattr(cls, name, guard(attribute))
        return cls

    return decorator


__all__ = [
    "ContractResult",
    "dbc_active",
    "dbc_enabled",
    "disable_dbc",
    "enable_dbc",
    "ensure",
    "invariant",
    "require",
]
