"""Bean-style accessor functions for properties.

create_accessors() maps property names to access modes and returns the
functions to expose, keyed by their names:

    create_accessors(model.public_api(), {"width": "readwrite", "area": "readonly"})
    # {"getWidth": <fn>, "setWidth": <fn>, "getArea": <fn>}

install_accessors() attaches the same functions to an object with setattr.
Every entry is checked before any function is produced, so a bad entry
installs nothing.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Mapping

from propsmodel.errors import InvalidAccessModeError

if TYPE_CHECKING:
    from propsmodel.api import PropsApi


class Access(Enum):
    READONLY = "readonly"
    READWRITE = "readwrite"
    NONE = "none"

    @classmethod
    def parse(cls, name: str, mode: Access | str) -> Access:
        """Accept an Access member or its value in any letter case."""
        if isinstance(mode, cls):
            return mode
        if not isinstance(mode, str):
            raise InvalidAccessModeError(name, mode)
        try:
            return cls(mode.lower())
        except ValueError:
            raise InvalidAccessModeError(name, mode) from None


def accessor_names(name: str, *prefixes: str) -> list[str]:
    """accessor_names("width", "get", "set") -> ["getWidth", "setWidth"]"""
    capitalized = name[:1].upper() + name[1:]
    return [f"{prefix}{capitalized}" for prefix in prefixes]


def _named(fn: Callable[..., Any], name: str) -> Callable[..., Any]:
    fn.__name__ = name
    fn.__qualname__ = name
    return fn


def create_accessors(
    api: PropsApi, access: Mapping[str, Access | str]
) -> dict[str, Callable[..., Any]]:
    modes: dict[str, Access] = {}
    for name, mode in access.items():
        api.check_defined(name)
        mode = Access.parse(name, mode)
        if mode is not Access.NONE:
            api.check_read(name)
        if mode is Access.READWRITE:
            api.check_write(name)
        modes[name] = mode

    accessors: dict[str, Callable[..., Any]] = {}
    for name, mode in modes.items():
        if mode is Access.NONE:
            continue
        getter_name, setter_name = accessor_names(name, "get", "set")
        accessors[getter_name] = _named(lambda name=name: api.get(name), getter_name)
        if mode is Access.READWRITE:
            accessors[setter_name] = _named(
                lambda value, name=name: api.set(name, value), setter_name
            )
    return accessors


def install_accessors(api: PropsApi, target: object, access: Mapping[str, Access | str]) -> None:
    for fn_name, fn in create_accessors(api, access).items():
        setattr(target, fn_name, fn)
