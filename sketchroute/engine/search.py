"""RouteSearchService — drawing + place name → ranked routes, end to end.

Geocoding and street-network calls block, so they run in the default
executor under ``asyncio.wait_for``. Only InsufficientData and
invalid/unknown locations reach the caller; everything else degrades.
"""

from __future__ import annotations

import asyncio
import enum
import functools
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

from sketchroute.config import Settings, settings as default_settings
from sketchroute.engine.analyzer import analyze_shape
from sketchroute.engine.config import EngineConfig
from sketchroute.engine.context import Creativity, Drawing, ResolvedLocation, ShapeFeatures, TransportMode
from sketchroute.engine.errors import DataProviderUnavailable
from sketchroute.engine.fallback import FallbackStage, FallbackStrategy, StreetNetworkProvider
from sketchroute.models.route import Route
from sketchroute.providers.geocoder import known_city, location_from_center, sanitize_location

logger = logging.getLogger(__name__)


class SearchStrategy(str, enum.Enum):
    GEOMETRIC = "geometric"
    AI = "ai"


class LocationResolver(Protocol):
    def resolve(self, query: str) -> ResolvedLocation: ...


@dataclass
class SearchOutcome:
    routes: list[Route]
    location: ResolvedLocation
    shape: ShapeFeatures
    strategy: SearchStrategy
    # None when the AI generator produced the routes
    stage: FallbackStage | None = None
    notes: list[str] = field(default_factory=list)


class RouteSearchService:
    def __init__(
        self,
        geocoder: LocationResolver,
        provider: StreetNetworkProvider,
        config: EngineConfig | None = None,
        app_settings: Settings | None = None,
    ) -> None:
        self.geocoder = geocoder
        self.provider = provider
        self.config = config or EngineConfig()
        self.settings = app_settings or default_settings

    async def resolve_location(self, query: str) -> ResolvedLocation:
        """Geocode with a timeout; on outage use a known city, then the default center."""
        query = sanitize_location(query)
        loop = asyncio.get_running_loop()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, self.geocoder.resolve, query),
                timeout=self.settings.geocode_timeout_s,
            )
        except (DataProviderUnavailable, asyncio.TimeoutError) as e:
            logger.warning("Geocoder unavailable for %r (%s), using offline lookup", query, str(e) or "timeout")

        center = known_city(query)
        if center is None:
            center = tuple(self.settings.default_center)
            logger.info("No known coordinates for %r, using default center", query)
        return location_from_center(center, query)

    async def search(
        self,
        drawing: Drawing,
        location: str,
        mode: TransportMode | str = TransportMode.WALKING,
        creativity: Creativity | str = Creativity.BALANCED,
        strategy: SearchStrategy | str = SearchStrategy.GEOMETRIC,
    ) -> SearchOutcome:
        start = time.perf_counter()
        mode = TransportMode(mode)
        creativity = Creativity(creativity)
        strategy = SearchStrategy(strategy)

        loop = asyncio.get_running_loop()
        shape = await loop.run_in_executor(
            None, functools.partial(analyze_shape, drawing, self.config.analyzer, self.config.normalizer)
        )
        resolved = await self.resolve_location(location)
        notes: list[str] = []

        if strategy == SearchStrategy.AI:
            from sketchroute.llm.route_generator import generate_ai_routes

            try:
                routes = await generate_ai_routes(shape, resolved.display_name or location, mode)
            except Exception as e:
                logger.warning("AI route generation failed, falling back to geometric search: %s", e)
                routes = []
            if routes:
                return SearchOutcome(routes, resolved, shape, strategy)
            notes.append("ai: no routes")

        fallback = FallbackStrategy(
            self.provider,
            self.config,
            primary_timeout_s=self.settings.overpass_timeout_s,
            degraded_timeout_s=self.settings.degraded_timeout_s,
        )
        result = await fallback.run(shape, resolved, mode, creativity)
        logger.info(
            "Search %r (%s, %s) → %d routes at stage %s in %.1fms",
            location,
            mode.value,
            creativity.value,
            len(result.routes),
            result.stage.value,
            (time.perf_counter() - start) * 1000,
        )
        return SearchOutcome(result.routes, resolved, shape, strategy, result.stage, notes + result.notes)
