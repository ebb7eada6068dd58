from __future__ import annotations

from .prices import PriceClient
from .routing import QuoteError, QuoteErrorReason, RoutingClient

__all__ = ["PriceClient", "QuoteError", "QuoteErrorReason", "RoutingClient"]
