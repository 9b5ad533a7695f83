"""Textual integration for propsmodel. Opt-in, requires textual.

A PropsModel is typically the state behind a form or panel: widgets show
primary properties and the derived ones computed from them. on_settle()
repaints once after a whole cascade of derived updates has finished, instead
of once per intermediate change; on_change() binds a single widget to the
properties it displays. Passing a public facade instead of the model keeps
internal properties out of the UI.

Handlers are skipped while the app is not running or while a pause() block
replaces widgets. NoMatches raised by widget queries is ignored. A model
written from a worker thread has its notifications handed to the UI thread
through app.call_from_thread.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# id(app) present <-> inside a pause() block for that app
_paused_apps: set[int] = set()


@contextmanager
def pause(app):
    """Hold back model notifications for app while its widgets are rebuilt.

    Changes made inside the block still update the model; only the UI
    handlers are skipped. Re-render from model.get_all() afterwards.
    """
    _paused_apps.add(id(app))
    try:
        yield
    finally:
        _paused_apps.discard(id(app))


def is_safe(app) -> bool:
    """True when model notifications may touch app's widgets."""
    return bool(app.is_running) and id(app) not in _paused_apps


def _guard(app, handler):
    main = threading.get_ident()

    def _safe(*args):
        try:
            handler(*args)
        except NoMatches:
            pass

    def _guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def on_settle(app, model, handler):
    """Call handler(names) on the UI once per settled chain of changes.

    model may be a PropsModel or any facade of one; a facade only reports
    the names it can see. Returns the disposer.
    """
    return model.on_settle(_guard(app, handler))


def on_change(app, model, names, handler):
    """Call handler(name, new, old) on the UI whenever one of names changes."""
    return model.on_any(names, _guard(app, handler))
