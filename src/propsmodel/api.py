"""Access-scoped facades over a PropsModel.

A PropsApi is a capability: it holds a reference to the model plus three
checks, and exposes the model's operations with every read and write routed
through them.

- visible(name) -> bool decides what enumeration shows (get_all() without
  names, snapshot, list_names, settle name lists).
- read_check(name) raises AccessDeniedError for names that may not be read.
- write_check(name) raises AccessDeniedError for names that may not be set.

Two standard facades:
- public_api(model): internal names (leading underscore) are hidden and
  derived properties cannot be written.
- owner_api(model): everything is readable, derived properties cannot be
  written.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping

from propsmodel.accessors import create_accessors, install_accessors
from propsmodel.errors import AccessDeniedError
from propsmodel.events import Disposer
from propsmodel.model import MISSING

if TYPE_CHECKING:
    from propsmodel.model import PropsModel

INTERNAL_PREFIX = "_"

Check = Callable[[str], None]


def is_public_name(name: str) -> bool:
    return not name.startswith(INTERNAL_PREFIX)


def checker_to_check(checker: Callable[[str], Any]) -> Check:
    """Turn a predicate into a check.

    The predicate may return an exception instance to have it raised
    instead of the generic AccessDeniedError.
    """

    def check(name: str) -> None:
        result = checker(name)
        if isinstance(result, BaseException):
            raise result
        if not result:
            raise AccessDeniedError(name)

    return check


def _passes(checker: Callable[[str], Any], name: str) -> bool:
    result = checker(name)
    return bool(result) and not isinstance(result, BaseException)


class PropsApi:
    """The model's operations, gated by read and write checks."""

    def __init__(
        self,
        model: PropsModel,
        visible: Callable[[str], Any],
        read_check: Check | None = None,
        write_check: Check | None = None,
    ) -> None:
        self._model = model
        self._visible = visible
        self._read_check = read_check or checker_to_check(visible)
        self._write_check = write_check or self._read_check

    def check_defined(self, name: str) -> None:
        """Raise NoSuchPropertyError unless name is defined on the model."""
        self._model._require(name)

    def check_read(self, name: str) -> None:
        self._read_check(name)

    def check_write(self, name: str) -> None:
        self._write_check(name)

    def can_read(self, name: str) -> bool:
        try:
            self._read_check(name)
        except AccessDeniedError:
            return False
        return True

    def can_write(self, name: str) -> bool:
        try:
            self._write_check(name)
        except AccessDeniedError:
            return False
        return True

    def is_visible(self, name: str) -> bool:
        return _passes(self._visible, name)

    def get(self, name: str) -> Any:
        self._read_check(name)
        return self._model.get(name)

    def set(self, name_or_values: str | Mapping[str, Any], value: Any = MISSING) -> None:
        self._model._set(self._write_check, name_or_values, value)

    def get_all(self, names: Iterable[str] | None = None) -> dict[str, Any]:
        """Values of names, or of every visible property when names is None."""
        if names is None:
            return self._model.get_all(self.list_names())
        names = list(names)
        for name in names:
            self._read_check(name)
        return self._model.get_all(names)

    def snapshot(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in self._model.snapshot().items()
            if self.is_visible(name)
        }

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.snapshot(), **kwargs)

    def list_names(self) -> list[str]:
        return [name for name in self._model.list_names() if self.is_visible(name)]

    def on_any(
        self, names: Iterable[str], handler: Callable[[str, Any, Any], None]
    ) -> Disposer:
        return self._model._on_any(self._read_check, names, handler)

    def on_settle(self, handler: Callable[[list[str]], None]) -> Disposer:
        """Settle events listing only the names this facade can see."""
        return self._model._on_settle(self.is_visible, handler)

    def create_utilizer(self, names: Iterable[str], handler: Callable[..., Any]) -> Callable[..., Any]:
        return self._model._create_utilizer(self._read_check, names, handler)

    def create_change_handler(
        self, names: Iterable[str], handler: Callable[..., Any]
    ) -> Callable[..., Any]:
        return self._model._create_change_handler(self._read_check, names, handler)

    def create_accessors(self, access: Mapping[str, Any]) -> dict[str, Callable[..., Any]]:
        return create_accessors(self, access)

    def install_accessors(self, target: object, access: Mapping[str, Any]) -> None:
        install_accessors(self, target, access)

    @contextmanager
    def batch(self) -> Iterator[None]:
        with self._model.batch():
            yield

    def __contains__(self, name: object) -> bool:
        return name in self._model and self.is_visible(name)

    def __repr__(self) -> str:
        return f"PropsApi({', '.join(self.list_names())})"


def derived_write_check(model: PropsModel) -> Check:
    def check(name: str) -> None:
        if model.is_derived(name):
            raise AccessDeniedError(
                name,
                f"Write access to {name} is not allowed because the property is a derived property.",
            )

    return check


def public_api(model: PropsModel, is_public: Callable[[str], bool] | None = None) -> PropsApi:
    is_public = is_public or is_public_name

    def read_check(name: str) -> None:
        if not is_public(name):
            raise AccessDeniedError(name, f"Property is not publicly accessible: {name}")

    check_derived = derived_write_check(model)

    def write_check(name: str) -> None:
        read_check(name)
        check_derived(name)

    return PropsApi(model, is_public, read_check, write_check)


def owner_api(model: PropsModel) -> PropsApi:
    def read_check(name: str) -> None:
        pass

    return PropsApi(model, lambda name: True, read_check, derived_write_check(model))


def reader_api(model: PropsModel) -> PropsApi:
    def read_check(name: str) -> None:
        pass

    def write_check(name: str) -> None:
        raise AccessDeniedError(name, f"Property '{name}' is read-only here")

    return PropsApi(model, lambda name: True, read_check, write_check)
