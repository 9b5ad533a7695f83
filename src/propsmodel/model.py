"""PropsModel — a store of named properties with synchronous change events.

Properties are either *primary* (assigned by callers) or *derived*
(recomputed from other properties). Every write runs the same protocol:
check names, check write access, validate, assign, then notify. Changes
cascade depth-first through derived properties on the calling stack, and
once the outermost call unwinds a single settle event lists every property
that changed along the way.

Usage:
    model = PropsModel()
    model.define_property("length", 10).define_property("width", 20)
    model.define_derived_property("area", ["length", "width"], lambda l, w: l * w)

    model.on_settle(lambda names: print(sorted(names)))
    model.set("length", 15)
    # prints ['area', 'length']
    model.get("area")  # 300
"""

from __future__ import annotations

import copy
import json
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping

from propsmodel.errors import (
    DuplicateNameError,
    NoSuchPropertyError,
    ValidationRejectedError,
)
from propsmodel.events import SETTLED, Disposer, EventEmitter, changed_channel
from propsmodel.view import (
    ViewLink,
    ViewState,
    field_getter,
    field_reducer,
    item_getter,
    item_reducer,
)

if TYPE_CHECKING:
    from propsmodel.api import PropsApi

logger = logging.getLogger("propsmodel.model")


class _Missing:
    """Marker for "no value given". None is an ordinary property value."""

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def default_did_change(new_value: Any, old_value: Any) -> bool:
    return new_value is not old_value and new_value != old_value


def _allow(name: str) -> None:
    pass


class Property:
    """One named value and the rules for writing it."""

    __slots__ = ("name", "value", "derived", "validator", "did_change", "dependencies", "compute")

    def __init__(
        self,
        name: str,
        value: Any,
        *,
        derived: bool = False,
        validator: Callable[[Any], Any] | None = None,
        did_change: Callable[[Any, Any], bool] | None = None,
        dependencies: tuple[str, ...] = (),
        compute: Callable[..., Any] | None = None,
    ) -> None:
        self.name = name
        self.value = value
        self.derived = derived
        self.validator = validator
        self.did_change = did_change or default_did_change
        self.dependencies = dependencies
        self.compute = compute

    def validate(self, value: Any) -> None:
        """Exceptions raised by the validator propagate as-is; False is a rejection."""
        if self.validator is not None and self.validator(value) is False:
            raise ValidationRejectedError(self.name, value)

    def __repr__(self) -> str:
        kind = "derived" if self.derived else "primary"
        return f"Property({self.name!r}, {self.value!r}, {kind})"


class PropsModel:
    """Named primary and derived properties with ordered change events."""

    def __init__(self, emitter: EventEmitter | None = None) -> None:
        self._emitter = emitter if emitter is not None else EventEmitter()
        self._props: dict[str, Property] = {}
        # dependency name -> derived names that read it, in definition order
        self._dependents: dict[str, list[str]] = {}
        self._views: dict[str, ViewLink] = {}
        self._depth = 0
        # names changed since the outermost call started (dict as ordered set)
        self._fired: dict[str, None] = {}

    @property
    def emitter(self) -> EventEmitter:
        """The emitter carrying change and settle events.

        Derived recomputation and view write-back are subscribed on it, so
        clearing its channels disconnects them.
        """
        return self._emitter

    def dependents(self, name: str) -> list[str]:
        """Derived properties that read name, in definition order."""
        self._require(name)
        return list(self._dependents[name])

    # --- Definition ---

    def define_property(
        self,
        name: str,
        initial_value: Any = None,
        validator: Callable[[Any], Any] | None = None,
        did_change: Callable[[Any, Any], bool] | None = None,
    ) -> PropsModel:
        """Define a primary property. Fires a change event unless the initial value counts as no change from None."""
        self._add(Property(name, initial_value, validator=validator, did_change=did_change))
        return self

    def define_derived_property(
        self,
        name: str,
        dependencies: Iterable[str],
        compute: Callable[..., Any],
        initial_value: Any = MISSING,
        did_change: Callable[[Any, Any], bool] | None = None,
    ) -> PropsModel:
        """Define a property computed from existing properties.

        compute receives the dependency values positionally, in the order
        given. It is called again whenever any dependency changes. An
        explicit initial_value (including 0, "" or None) skips the first
        computation.
        """
        dependencies = tuple(dependencies)
        self._check_new_name(name)
        self._require_all(dependencies, "Cannot create derived property from unknown property")
        if initial_value is MISSING:
            initial_value = compute(*self._values(dependencies))
        self._add(
            Property(
                name,
                initial_value,
                derived=True,
                did_change=did_change,
                dependencies=dependencies,
                compute=compute,
            )
        )
        return self

    def define_view(
        self,
        name: str,
        base: str,
        compute_view: Callable[[Any], Any],
        reduce_base: Callable[[Any, Any, PropsApi], Any],
        did_change: Callable[[Any, Any], bool] | None = None,
    ) -> PropsModel:
        """Define a derived property that writes back to its base when set.

        reduce_base(view_value, base_value, props) returns the new base
        value. props is a read-only facade over the whole model; reading
        other properties through it does not subscribe to them.
        """
        self._check_new_name(name)
        self._require(base, "Cannot create view of unknown property")
        self._add(
            Property(
                name,
                compute_view(self._props[base].value),
                derived=True,
                did_change=did_change,
                dependencies=(base,),
                compute=compute_view,
            )
        )
        # linked after the creation event so defining a view never writes its base
        link = self._views[name] = ViewLink(name, base, reduce_base)
        self._emitter.on(
            changed_channel(name),
            lambda _name, new_value, _old: self._write_back(link, new_value),
        )
        return self

    def define_item_view(
        self,
        name: str,
        base: str,
        index: int,
        did_change: Callable[[Any, Any], bool] | None = None,
    ) -> PropsModel:
        """View of one element of a list or tuple property."""
        return self.define_view(name, base, item_getter(index), item_reducer(index), did_change)

    def define_field_view(
        self,
        name: str,
        base: str,
        field: str,
        did_change: Callable[[Any, Any], bool] | None = None,
    ) -> PropsModel:
        """View of one key of a mapping property, or one field of a dataclass."""
        return self.define_view(name, base, field_getter(field), field_reducer(field), did_change)

    def _check_new_name(self, name: str) -> None:
        if name in self._props:
            raise DuplicateNameError(name)

    def _add(self, prop: Property) -> None:
        self._check_new_name(prop.name)
        self._props[prop.name] = prop
        self._dependents[prop.name] = []
        for dependency in prop.dependencies:
            self._dependents[dependency].append(prop.name)
            # an ordinary subscriber, so it runs before handlers added later
            self._emitter.on(
                changed_channel(dependency),
                lambda _name, _new, _old, name=prop.name: self._recompute(name),
            )
        logger.debug(
            "Defined %s property %r", "derived" if prop.derived else "primary", prop.name
        )
        if prop.did_change(prop.value, None):
            self._fire([(prop.name, prop.value, None)])

    # --- Reading ---

    def get(self, name: str) -> Any:
        return self._require(name).value

    def get_all(self, names: Iterable[str] | None = None) -> dict[str, Any]:
        if names is None:
            names = self._props
        return {name: self._require(name).value for name in names}

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of every value; nothing returned aliases the model's storage."""
        return {name: copy.deepcopy(prop.value) for name, prop in self._props.items()}

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.snapshot(), **kwargs)

    def list_names(self) -> list[str]:
        return list(self._props)

    def is_derived(self, name: str) -> bool:
        return self._require(name).derived

    def __contains__(self, name: object) -> bool:
        return name in self._props

    def __len__(self) -> int:
        return len(self._props)

    def _require(self, name: str, message: str = "No such property") -> Property:
        prop = self._props.get(name)
        if prop is None:
            raise NoSuchPropertyError(name, f"{message} '{name}'")
        return prop

    def _require_all(self, names: Iterable[str], message: str = "No such property") -> None:
        for name in names:
            self._require(name, message)

    def _values(self, names: Iterable[str]) -> list[Any]:
        return [self._props[name].value for name in names]

    # --- Writing ---

    def set(self, name_or_values: str | Mapping[str, Any], value: Any = MISSING) -> None:
        """set(name, value) or set({name: value, ...}).

        Every name is checked and every value validated before anything is
        assigned, so a rejected write leaves the model untouched. Change
        events fire in the order the values were given.
        """
        self._set(_allow, name_or_values, value)

    def _set(
        self,
        write_check: Callable[[str], None],
        name_or_values: str | Mapping[str, Any],
        value: Any = MISSING,
    ) -> None:
        if isinstance(name_or_values, Mapping):
            if value is not MISSING:
                raise TypeError("set() takes no value argument with a mapping")
            items = list(name_or_values.items())
        else:
            if value is MISSING:
                raise TypeError("set() requires a value when given a property name")
            items = [(name_or_values, value)]

        self._require_all(name for name, _ in items)
        for name, _ in items:
            write_check(name)
        for name, new_value in items:
            self._props[name].validate(new_value)

        assigned = []
        for name, new_value in items:
            prop = self._props[name]
            assigned.append((prop, new_value, prop.value))
            prop.value = new_value

        self._fire(
            [
                (prop.name, new_value, old_value)
                for prop, new_value, old_value in assigned
                if prop.did_change(new_value, old_value)
            ]
        )

    def _write(self, name: str, value: Any) -> None:
        """Internal single write: derived recomputation and view write-back."""
        self._set(_allow, name, value)

    # --- Notification ---

    def _fire(self, events: list[tuple[str, Any, Any]]) -> None:
        with self._chain():
            for name, new_value, old_value in events:
                self._fired[name] = None
                self._emitter.emit(changed_channel(name), name, new_value, old_value)

    def _recompute(self, name: str) -> None:
        prop = self._props[name]
        link = self._views.get(name)
        if link is None:
            self._write(name, prop.compute(*self._values(prop.dependencies)))
        elif link.allows(ViewState.BASE_TO_VIEW):
            with link.propagating(ViewState.BASE_TO_VIEW):
                self._write(name, prop.compute(*self._values(prop.dependencies)))

    def _write_back(self, link: ViewLink, view_value: Any) -> None:
        if link.state is not ViewState.IDLE:
            return
        with link.propagating(ViewState.VIEW_TO_BASE):
            base_value = link.reduce_base(
                view_value, self._props[link.base].value, self.reader()
            )
            self._write(link.base, base_value)

    @contextmanager
    def _chain(self) -> Iterator[None]:
        """Scope of one call; the outermost scope delivers the settle event."""
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._fired.clear()
            raise
        self._depth -= 1
        if self._depth == 0:
            fired = list(self._fired)
            self._fired.clear()
            logger.debug("Settled after changes to %s", fired)
            self._emitter.emit(SETTLED, fired)

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Group several writes under one settle event.

        Usage:
            with model.batch():
                model.set("length", 15)
                model.set("width", 30)
            # one settle event naming length, width and their dependents
        """
        with self._chain():
            yield

    # --- Subscriptions ---

    def on_any(
        self, names: Iterable[str], handler: Callable[[str, Any, Any], None]
    ) -> Disposer:
        """Call handler(name, new, old) whenever any of names changes."""
        return self._on_any(_allow, names, handler)

    def on_settle(self, handler: Callable[[list[str]], None]) -> Disposer:
        """Call handler(names) once per outermost write with every changed name.

        Fires even when nothing changed; names is then empty.
        """
        return self._on_settle(lambda name: True, handler)

    def batch_size(self) -> int:
        """Number of names changed so far in the current outermost call."""
        return len(self._fired)

    def create_utilizer(self, names: Iterable[str], handler: Callable[..., Any]) -> Callable[..., Any]:
        """Return a callable invoking handler(*current values of names, *args)."""
        return self._create_utilizer(_allow, names, handler)

    def create_change_handler(
        self, names: Iterable[str], handler: Callable[..., Any]
    ) -> Callable[..., Any]:
        """A utilizer of names that also runs whenever any of them changes.

        Call its dispose() to stop it running on changes.
        """
        return self._create_change_handler(_allow, names, handler)

    def _on_any(
        self,
        read_check: Callable[[str], None],
        names: Iterable[str],
        handler: Callable[[str, Any, Any], None],
    ) -> Disposer:
        names = tuple(names)
        for name in names:
            read_check(name)
        self._require_all(names, "Cannot listen to unknown property")
        disposers = [self._emitter.on(changed_channel(name), handler) for name in names]

        def _dispose() -> None:
            for dispose in disposers:
                dispose()

        return _dispose

    def _on_settle(
        self, visible: Callable[[str], bool], handler: Callable[[list[str]], None]
    ) -> Disposer:
        def _deliver(fired: list[str]) -> None:
            handler([name for name in fired if visible(name)])

        return self._emitter.on(SETTLED, _deliver)

    def _create_utilizer(
        self,
        read_check: Callable[[str], None],
        names: Iterable[str],
        handler: Callable[..., Any],
    ) -> Callable[..., Any]:
        names = tuple(names)
        for name in names:
            read_check(name)
        self._require_all(names, "Cannot create utilizer of unknown property")

        def utilize(*args):
            return handler(*self._values(names), *args)

        return utilize

    def _create_change_handler(
        self,
        read_check: Callable[[str], None],
        names: Iterable[str],
        handler: Callable[..., Any],
    ) -> Callable[..., Any]:
        utilize = self._create_utilizer(read_check, names, handler)
        utilize.dispose = self._on_any(_allow, names, utilize)
        return utilize

    # --- Facades ---

    def create_api(
        self,
        visible: Callable[[str], Any],
        read_check: Callable[[str], None] | None = None,
        write_check: Callable[[str], None] | None = None,
    ) -> PropsApi:
        """Restricted view of this model. See propsmodel.api."""
        from propsmodel.api import PropsApi

        return PropsApi(self, visible, read_check, write_check)

    def public_api(self, is_public: Callable[[str], bool] | None = None) -> PropsApi:
        """Internal names are hidden; derived properties are read-only."""
        from propsmodel.api import public_api

        return public_api(self, is_public)

    def owner_api(self) -> PropsApi:
        """Everything readable; derived properties are read-only."""
        from propsmodel.api import owner_api

        return owner_api(self)

    def reader(self) -> PropsApi:
        """Read-only view of every property."""
        from propsmodel.api import reader_api

        return reader_api(self)

    def install_accessors(self, target: object, access: Mapping[str, Any]) -> None:
        """Attach getX/setX functions to target with no access restrictions."""
        self.create_api(lambda name: True).install_accessors(target, access)

    def __repr__(self) -> str:
        return f"PropsModel({', '.join(self._props)})"
