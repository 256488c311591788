import logging
from typing import Any, Callable, Dict

import gevent
from flask import current_app

logger = logging.getLogger(__name__)


def _in_app_context(app, func, args, kwargs):
    # Each branch gets its own application context and therefore its own
    # database session, which is removed when the context is popped.
    with app.app_context():
        return func(*args, **kwargs)


def fan_out(**branches: Any) -> Dict[str, Any]:
    """
    Run independent callables concurrently and join on all of them.

    Each keyword is a result slot; its value is either a callable or a
    ``(callable, args, kwargs)`` tuple. Returns a dict mapping every slot to
    the value its callable returned.

    If any branch raises, the remaining branches are killed and the first
    error is re-raised. If the calling greenlet is killed while waiting
    (client disconnect), the branches are killed with it.
    """
    app = current_app._get_current_object()
    greenlets: Dict[str, gevent.Greenlet] = {}

    for slot, branch in branches.items():
        if callable(branch):
            func, args, kwargs = branch, (), {}
        else:
            func, args, kwargs = branch
        greenlets[slot] = gevent.spawn(_in_app_context, app, func, args, kwargs or {})

    try:
        gevent.joinall(list(greenlets.values()), raise_error=True)
    except BaseException:
        gevent.killall(
            [g for g in greenlets.values() if not g.dead], block=True
        )
        raise

    return {slot: g.value for slot, g in greenlets.items()}


def run_branch(func: Callable, *args, **kwargs):
    """Pack a callable and its arguments for `fan_out`"""
    return func, args, kwargs
