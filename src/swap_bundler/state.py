"""Application state container."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .cache import PriceCache
from .settings import BundlerSettings


@dataclass
class AppState:
    """Container for application-wide state and dependencies.

    Passed through the pipeline to avoid global state and enable testing.
    The price cache lives here so it is shared across assembly runs.
    """

    settings: BundlerSettings
    logger: logging.Logger
    price_cache: PriceCache = field(default_factory=PriceCache)
