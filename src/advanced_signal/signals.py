"""Signal and Connection: an in-process observer primitive.

A :class:`Signal` keeps an arena of :class:`Connection` objects keyed by an
integer handle. ``fire`` takes a snapshot of the arena before delivering, so
anything a listener does to the signal while it is being fired (binding,
unbinding, ``unbind_all``) only takes effect from the next ``fire``.

Two flags shape delivery:

``yieldable``
    When true each callback is handed to a :class:`CallbackScheduler` and
    ``fire`` returns without waiting. Errors raised by such callbacks are
    logged on the worker and never reach the caller. When false callbacks run
    inline on the firing thread; a blocking listener delays the ones after it
    and an exception propagates out of ``fire``, skipping the rest.

``keep_order``
    When true listeners are delivered (or dispatched) in the order they were
    bound. When false the order is unspecified and must not be relied on.
"""

from __future__ import annotations

import itertools
import threading
from typing import Any, Callable, Dict, Tuple

from .config import get_default_settings
from .logging import get_logger
from .scheduler import CallbackScheduler, get_default_scheduler

LOGGER = get_logger("signals")

Callback = Callable[..., Any]


class Connection:
    """Handle for one bound listener."""

    __slots__ = ("signal", "callback", "handle", "connected")

    def __init__(self, signal: "Signal", callback: Callback, handle: int) -> None:
        self.signal = signal
        self.callback = callback
        self.handle = handle
        self.connected = True

    def unbind(self) -> None:
        """Disconnect this listener. Calling it again is a no-op."""

        self.connected = False
        self.signal.unbind(self)

    def __repr__(self) -> str:
        state = "connected" if self.connected else "unbound"
        return f"<Connection handle={self.handle} {state}>"


class Signal:
    """Event emitter with bind/once/fire/unbind/wait semantics."""

    def __init__(
        self,
        yieldable: bool | None = None,
        keep_order: bool | None = None,
        *,
        scheduler: CallbackScheduler | None = None,
    ) -> None:
        if not (isinstance(yieldable, bool) and isinstance(keep_order, bool)):
            defaults = get_default_settings()
            if not isinstance(yieldable, bool):
                yieldable = defaults.yieldable
            if not isinstance(keep_order, bool):
                keep_order = defaults.keep_order
        self.yieldable = yieldable
        # Ordering contract only: the dict arena always iterates in bind order,
        # but without keep_order callers must not rely on that.
        self.keep_order = keep_order
        self._scheduler = scheduler
        self._connections: Dict[int, Connection] = {}
        self._handles = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def scheduler(self) -> CallbackScheduler:
        """Scheduler used in yieldable mode; falls back to the process default."""

        return self._scheduler if self._scheduler is not None else get_default_scheduler()

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def connections(self) -> Tuple[Connection, ...]:
        """Return the currently bound connections in delivery order."""

        with self._lock:
            return tuple(self._connections.values())

    def _register(self, connection: Connection) -> Connection:
        with self._lock:
            self._connections[connection.handle] = connection
        LOGGER.debug(
            "Connection bound",
            extra={"signal": id(self), "handle": connection.handle},
        )
        return connection

    def bind(self, callback: Callback) -> Connection:
        """Bind ``callback`` and return its :class:`Connection`."""

        return self._register(Connection(self, callback, next(self._handles)))

    def once(self, callback: Callback) -> Connection:
        """Bind ``callback`` so that it unbinds itself the first time it runs."""

        connection = Connection(self, callback, next(self._handles))
        claimed = False

        def _fire_once(*args: Any) -> None:
            nonlocal claimed
            # Several fires may have snapshotted this connection already
            with self._lock:
                if claimed:
                    return
                claimed = True
            connection.unbind()
            callback(*args)

        connection.callback = _fire_once
        return self._register(connection)

    def fire(self, *args: Any) -> None:
        """Deliver ``args`` to every listener bound when the call starts."""

        with self._lock:
            snapshot = tuple(self._connections.values())

        if not self.yieldable:
            for connection in snapshot:
                connection.callback(*args)
            return

        scheduler = self.scheduler
        for connection in snapshot:
            scheduler.dispatch(connection.callback, *args)

    def unbind(self, connection: Connection) -> None:
        """Remove ``connection``. Unknown or already removed connections are ignored."""

        with self._lock:
            current = self._connections.get(connection.handle)
            if current is not connection:
                return
            del self._connections[connection.handle]
        LOGGER.debug(
            "Connection unbound",
            extra={"signal": id(self), "handle": connection.handle},
        )

    def unbind_all(self) -> None:
        """Drop every connection.

        Existing :class:`Connection` objects are left untouched (their
        ``connected`` flag stays true); unbinding them later is a no-op.
        """

        with self._lock:
            self._connections = {}

    def close(self) -> None:
        """Tear the signal down deterministically. Pending :meth:`wait` calls never return."""

        self.unbind_all()

    def wait(self) -> Tuple[Any, ...]:
        """Block until the signal next fires and return the fired arguments.

        There is no timeout. If the signal is never fired again, or is
        cleared with :meth:`unbind_all` / :meth:`close` first, the calling
        thread blocks forever. Never wait from inside a non-yieldable
        listener of the same signal on the thread that fires it.
        """

        fired = threading.Event()
        received: list[Tuple[Any, ...]] = []

        def _resume(*args: Any) -> None:
            received.append(args)
            fired.set()

        self.once(_resume)
        fired.wait()
        return received[0]

    def __repr__(self) -> str:
        return (
            f"<Signal yieldable={self.yieldable} keep_order={self.keep_order} "
            f"connections={self.connection_count}>"
        )


__all__ = ["Callback", "Connection", "Signal"]
