"""Location resolver adapter — place name → ResolvedLocation via Nominatim.

Talks HTTP and normalizes the response; no scoring or fallback policy
lives here. The search service decides what to do on failure.
"""

from __future__ import annotations

import logging
import re

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sketchroute.config import settings
from sketchroute.engine.context import Point, ResolvedLocation
from sketchroute.engine.errors import DataProviderUnavailable, InvalidRequest, LocationNotFound
from sketchroute.utils.geo import bbox_around

logger = logging.getLogger(__name__)

_MAX_QUERY_LENGTH = 100
_MIN_QUERY_LENGTH = 3
_UNSAFE_CHARS = re.compile(r"[<>'\"]")

# Search radius = base · (1 + 2 · importance); larger places get a larger box
BASE_RADIUS_DEG = 0.01

KNOWN_CITIES: dict[str, Point] = {
    "tehran": (35.6892, 51.3890),
    "isfahan": (32.6546, 51.6680),
    "shiraz": (29.5918, 52.5837),
    "mashhad": (36.2605, 59.6168),
    "san francisco": (37.7749, -122.4194),
    "new york": (40.7128, -74.0060),
    "london": (51.5074, -0.1278),
    "paris": (48.8566, 2.3522),
    "tokyo": (35.6762, 139.6503),
    "sydney": (-33.8688, 151.2093),
}


def sanitize_location(text: str) -> str:
    """Trim, strip markup characters and cap the length. Raises InvalidRequest if too short."""
    cleaned = _UNSAFE_CHARS.sub("", (text or "").strip())[:_MAX_QUERY_LENGTH].strip()
    if len(cleaned) < _MIN_QUERY_LENGTH:
        raise InvalidRequest(f"Location must be at least {_MIN_QUERY_LENGTH} characters")
    return cleaned


def search_radius(importance: float) -> float:
    return BASE_RADIUS_DEG * (1 + 2 * importance)


def known_city(query: str) -> Point | None:
    lowered = query.lower()
    for city, coords in KNOWN_CITIES.items():
        if city in lowered or lowered in city:
            return coords
    return None


def location_from_center(center: Point, display_name: str, importance: float = 0.5) -> ResolvedLocation:
    return ResolvedLocation(
        center=center,
        bbox=bbox_around(center, search_radius(importance)),
        importance=importance,
        display_name=display_name,
    )


# Exponential backoff between attempts; an empty result is an answer and is not retried
RETRY_TOTAL = 3
RETRY_BACKOFF_S = 1.0
RETRY_STATUSES = (429, 500, 502, 503, 504)


def retrying_session(
    user_agent: str,
    total: int = RETRY_TOTAL,
    backoff_s: float = RETRY_BACKOFF_S,
) -> requests.Session:
    """Session whose GETs retry connection errors and 429/5xx replies."""
    retry = Retry(
        total=total,
        backoff_factor=backoff_s,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )
    session = requests.Session()
    session.headers["User-Agent"] = user_agent
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class NominatimGeocoder:
    def __init__(
        self,
        base_url: str | None = None,
        timeout_s: float | None = None,
        user_agent: str | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url or settings.nominatim_url
        self.timeout_s = timeout_s or settings.geocode_timeout_s
        self.user_agent = user_agent or settings.http_user_agent
        self.session = session or retrying_session(self.user_agent)

    def resolve(self, query: str) -> ResolvedLocation:
        """Resolve a place name. LocationNotFound on no match, DataProviderUnavailable on transport failure."""
        try:
            response = self.session.get(
                self.base_url,
                params={"format": "json", "q": query, "limit": 1},
                timeout=self.timeout_s,
            )
            response.raise_for_status()
            results = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Geocoder request failed for %r: %s", query, e)
            raise DataProviderUnavailable("Location service is unavailable") from e

        if not isinstance(results, list) or not results:
            raise LocationNotFound(query)

        top = results[0]
        try:
            center = (float(top["lat"]), float(top["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed geocoder result for %r: %s", query, e)
            raise LocationNotFound(query) from e

        importance = float(top.get("importance") or 0.5)
        importance = min(1.0, max(0.0, importance))
        location = location_from_center(center, str(top.get("display_name") or query), importance)
        logger.info("Resolved %r → %.4f, %.4f (importance %.2f)", query, center[0], center[1], importance)
        return location
