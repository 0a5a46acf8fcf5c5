"""Ticker — one handler, many formats.

``GET /quotes`` returns the latest quotes as JSON, XML or plain text
depending on ``Accept``. ``GET /ticks`` returns a live producer: clients
that accept ``text/event-stream`` get one frame per tick, everyone else
gets the ticks collected into a list. ``POST /quotes`` decodes a JSON,
XML or form body into a ``Quote``.

Run with any ASGI server:
    uvicorn app:app
"""

import asyncio
import threading
from dataclasses import dataclass

from parley import (
    AllowedContentTypes,
    HTTPError,
    RenderConfig,
    Request,
    Responder,
    decode,
    set_status,
)


@dataclass(slots=True)
class Quote:
    symbol: str
    price: float

    def __text__(self) -> str:
        return f"{self.symbol} {self.price:.2f}"


@dataclass(slots=True)
class Board:
    quotes: list[Quote]

    def __text__(self) -> str:
        return "\n".join(q.__text__() for q in self.quotes) + "\n"


# ---------------------------------------------------------------------------
# In-memory storage (thread-safe for free-threading)
# ---------------------------------------------------------------------------

_quotes: dict[str, Quote] = {
    "ACME": Quote("ACME", 12.5),
    "INIT": Quote("INIT", 99.0),
}
_lock = threading.Lock()


def _board() -> Board:
    with _lock:
        return Board(sorted(_quotes.values(), key=lambda q: q.symbol))


async def _ticks(count: int):
    board = _board()
    for n in range(count):
        await asyncio.sleep(0.01)
        quote = board.quotes[n % len(board.quotes)]
        yield {"tick": n, "symbol": quote.symbol, "price": quote.price}


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------


async def handle(request: Request):
    match (request.method, request.path):
        case ("GET", "/quotes"):
            return _board()
        case ("GET", "/ticks"):
            return _ticks(3)
        case ("POST", "/quotes"):
            quote = await decode(request, into=Quote)
            with _lock:
                _quotes[quote.symbol] = quote
            set_status(request, 201)
            return quote
    raise HTTPError(status=404)


app = Responder(
    handle,
    middleware=[
        AllowedContentTypes(
            "application/json",
            "application/xml",
            "application/x-www-form-urlencoded",
        )
    ],
    config=RenderConfig(request_timeout=30.0),
)
