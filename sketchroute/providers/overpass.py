"""Street-network adapter — bbox + way classes → RawGeometry list via the Overpass API."""

from __future__ import annotations

import logging
import math
from typing import Any, Sequence

import requests

from sketchroute.config import settings
from sketchroute.engine.context import Point, RawGeometry
from sketchroute.engine.errors import DataProviderUnavailable

logger = logging.getLogger(__name__)


def build_query(
    bbox: tuple[float, float, float, float],
    way_classes: Sequence[str],
    timeout_s: float = 45.0,
    max_length_m: float | None = None,
) -> str:
    """Overpass QL for every highway of the given classes inside (south, north, west, east).

    ``max_length_m`` drops ways longer than that many metres on the server.
    """
    south, north, west, east = bbox
    length = f"(if:length()<{int(max_length_m)})" if max_length_m else ""
    area = f"({south},{west},{north},{east})"
    clauses = "".join(f'way["highway"="{cls}"]{length}{area};' for cls in way_classes)
    return f"[out:json][timeout:{int(timeout_s)}];({clauses});out geom;"


def _point(lat: Any, lon: Any) -> Point | None:
    try:
        point = (float(lat), float(lon))
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(point[0]) and math.isfinite(point[1])):
        return None
    return point


def parse_elements(data: dict[str, Any]) -> list[RawGeometry]:
    """Ways with inline geometry, or node references resolved against node elements.

    Malformed points are dropped and ways left with fewer than two points
    are skipped; bad elements are never fatal.
    """
    elements = data.get("elements")
    if not isinstance(elements, list):
        return []
    elements = [el for el in elements if isinstance(el, dict)]

    nodes = {}
    for el in elements:
        if el.get("type") == "node":
            point = _point(el.get("lat"), el.get("lon"))
            if point is not None:
                nodes[el.get("id")] = point

    geometries = []
    skipped = 0
    for el in elements:
        if el.get("type") != "way":
            continue
        if isinstance(el.get("geometry"), list) and el["geometry"]:
            candidates = [_point(p.get("lat"), p.get("lon")) for p in el["geometry"] if isinstance(p, dict)]
        else:
            refs = el.get("nodes") if isinstance(el.get("nodes"), list) else []
            candidates = [nodes.get(n) for n in refs if isinstance(n, (int, str))]
        points = tuple(p for p in candidates if p is not None)
        if len(points) < 2:
            skipped += 1
            continue
        tags = el.get("tags") if isinstance(el.get("tags"), dict) else {}
        geometries.append(
            RawGeometry(
                id=str(el.get("id", len(geometries))),
                points=points,
                tags={str(k): str(v) for k, v in tags.items()},
            )
        )
    if skipped:
        logger.debug("Skipped %d ways without usable geometry", skipped)
    return geometries


class OverpassProvider:
    def __init__(self, base_url: str | None = None, user_agent: str | None = None):
        self.base_url = base_url or settings.overpass_url
        self.user_agent = user_agent or settings.http_user_agent

    def fetch(
        self,
        bbox: tuple[float, float, float, float],
        way_classes: Sequence[str],
        timeout_s: float | None = None,
        max_length_m: float | None = None,
    ) -> list[RawGeometry]:
        timeout_s = timeout_s or settings.overpass_timeout_s
        query = build_query(bbox, way_classes, timeout_s, max_length_m)
        try:
            response = requests.post(
                self.base_url,
                data=query.encode("utf-8"),
                headers={"Content-Type": "text/plain", "User-Agent": self.user_agent},
                timeout=timeout_s,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Overpass request failed: %s", e)
            raise DataProviderUnavailable("Street network data is unavailable") from e

        geometries = parse_elements(data if isinstance(data, dict) else {})
        logger.info("Overpass returned %d ways (%d classes)", len(geometries), len(way_classes))
        return geometries
