import threading
from typing import List, Optional

from .errors import Cancelled


class Context:
    """
    A thread-safe, derivable cancellation signal that remembers its cause.

    Cancelling a context cancels every context derived from it. Cancelling a
    derived context never affects its parent. Only the first cancellation
    records a cause; later calls are no-ops.
    """

    def __init__(self, parent: Optional["Context"] = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._cause: Optional[BaseException] = None
        self._children: List["Context"] = []
        self.parent = parent

        if parent is not None:
            parent._attach(self)

    def _attach(self, child: "Context") -> None:
        with self._lock:
            if not self._event.is_set():
                self._children.append(child)
                return
            cause = self._cause
        child.cancel(cause)

    def derive(self) -> "Context":
        """Returns a new child context cancelled together with this one."""
        return Context(parent=self)

    def cancel(self, cause: Optional[BaseException] = None) -> bool:
        """
        Cancels this context and all of its descendants.

        :param cause: The reason for cancelling. Defaults to a plain `Cancelled`.
        :return: True if this call performed the cancellation.
        """
        with self._lock:
            if self._event.is_set():
                return False
            self._cause = cause if cause is not None else Cancelled()
            self._event.set()
            children, self._children = self._children, []

        for child in children:
            child.cancel(self._cause)
        return True

    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def cause(self) -> Optional[BaseException]:
        """The exception passed to the first `cancel` call, None while active."""
        return self._cause

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Blocks until cancelled or the timeout elapses. True means cancelled."""
        return self._event.wait(timeout)
