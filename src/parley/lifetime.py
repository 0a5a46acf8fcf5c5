"""Request lifetime — the cancellation signal tied to one request.

A ``Lifetime`` ends when something calls ``cancel()`` (client
disconnect, shutdown) or when its deadline passes. The stream adapter
races ``wait()`` against the next produced item.

The underlying ``anyio.Event`` is created lazily inside the running
event loop, so a ``Lifetime`` can be built from synchronous code
(request factories, tests).
"""

import time

import anyio


class Lifetime:
    """A cancellable, optionally deadlined, request lifetime.

    Usage::

        lifetime = Lifetime.with_timeout(30.0)
        ...
        await lifetime.wait()   # returns once cancelled or expired
    """

    __slots__ = ("_cancelled", "_deadline", "_event", "reason")

    def __init__(self, deadline: float | None = None) -> None:
        self._cancelled = False
        self._deadline = deadline  # time.monotonic() value
        self._event: anyio.Event | None = None
        self.reason: str | None = None

    @classmethod
    def with_timeout(cls, seconds: float | None) -> "Lifetime":
        """A lifetime that expires *seconds* from now (never if None)."""
        if seconds is None:
            return cls()
        return cls(deadline=time.monotonic() + seconds)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        """True once cancelled or past the deadline."""
        if not self._cancelled and self._expired():
            self._finish("deadline exceeded")
        return self._cancelled

    def cancel(self, reason: str = "cancelled") -> None:
        """End the lifetime. Idempotent; the first reason is kept."""
        if not self._cancelled:
            self._finish(reason)

    async def wait(self) -> None:
        """Block until the lifetime ends."""
        if self.cancelled:
            return
        if self._event is None:
            self._event = anyio.Event()
        if self._deadline is None:
            await self._event.wait()
            return
        with anyio.move_on_after(max(self._deadline - time.monotonic(), 0)):
            await self._event.wait()
        if not self._cancelled:
            self._finish("deadline exceeded")

    def _expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    def _finish(self, reason: str) -> None:
        self._cancelled = True
        self.reason = reason
        if self._event is not None:
            self._event.set()

    def __repr__(self) -> str:
        state = f"cancelled ({self.reason})" if self._cancelled else "live"
        return f"<Lifetime {state}>"
