"""Textual integration for surveymodel. Opt-in — requires textual.

Mirrors Base property changes and Event firings onto Textual widgets.
Guarding, NoMatches handling and thread marshaling happen here so call
sites stay plain. _paused_apps is owned by this module; an app id is present
exactly while a pause() block for that app is open.
"""

import itertools
import logging
import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

logger = logging.getLogger("surveymodel.textual")

# Apps inside an open pause() block, by id(app).
_paused_apps: set[int] = set()

_key_counter = itertools.count(1)


@contextmanager
def pause(app):
    """Suspend bound effects during widget replacement."""
    key = id(app)
    _paused_apps.add(key)
    try:
        yield
    finally:
        _paused_apps.discard(key)


def is_safe(app) -> bool:
    """Is the widget tree in a queryable state?"""
    return app.is_running and id(app) not in _paused_apps


def _guard(app, fn):
    """Wrap fn so it only runs when the app is safe, on the app's thread."""
    _main = threading.get_ident()

    def _safe(*args):
        try:
            fn(*args)
        except NoMatches:
            logger.debug("Widget query found nothing, update skipped")

    def _guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def bind_property(app, obj, name, effect_fn, *, fire_immediately=False):
    """Call effect_fn(new_value) whenever obj.name changes, safely for Textual.

    Returns a disposer that removes the subscription.

    Usage:
        from surveymodel import textual as stx

        dispose = stx.bind_property(app, question, "title",
                                    lambda v: app.query_one("#title").update(v))
    """
    key = f"textual-{next(_key_counter)}"
    guarded = _guard(app, effect_fn)
    obj.register_function_on_property_value_changed(name, guarded, key)
    if fire_immediately:
        guarded(obj.get_property_value(name))

    def _dispose():
        obj.unregister_function_on_property_value_changed(name, key)

    return _dispose


def bind_event(app, event, handler):
    """Add handler(sender, options) to a surveymodel Event, safely for Textual.

    Returns a disposer that removes the handler.
    """
    guarded = _guard(app, handler)
    event.add(guarded)

    def _dispose():
        event.remove(guarded)

    return _dispose
