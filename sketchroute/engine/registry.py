"""Transform and metric registries — every piece is a standalone function registered via decorator.

Usage:
    @transform(id="T1.02", layer=Layer.SHAPE_ANALYSIS, dependencies=["T0.02"])
    def corner_detection(ctx: AnalysisContext) -> None:
        ctx.features["corners"] = detect(ctx.points)

    @metric(id="hausdorff", description="Symmetric Hausdorff distance")
    def hausdorff_similarity(a: NormalizedPath, b: NormalizedPath, config: SimilarityConfig) -> float:
        ...

Adding a new feature or metric = creating one file with the decorator. Nothing else changes.
"""

from __future__ import annotations

import enum
import importlib
import logging
import pkgutil
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from sketchroute.engine.config import SimilarityConfig
    from sketchroute.engine.context import AnalysisContext, NormalizedPath

logger = logging.getLogger(__name__)

MetricFn = Callable[["NormalizedPath", "NormalizedPath", "SimilarityConfig"], float]


class Layer(enum.IntEnum):
    GEOMETRY = 0
    SHAPE_ANALYSIS = 1
    CLASSIFICATION = 2


@dataclass
class TransformSpec:
    id: str
    layer: Layer
    fn: Callable[["AnalysisContext"], None]
    dependencies: list[str] = field(default_factory=list)
    description: str = ""


@dataclass
class MetricSpec:
    id: str
    fn: MetricFn
    description: str = ""


class TransformRegistry:
    """Singleton registry of all shape transforms."""

    def __init__(self) -> None:
        self._transforms: dict[str, TransformSpec] = {}

    def register(self, spec: TransformSpec) -> None:
        if spec.id in self._transforms:
            raise ValueError(f"Duplicate transform ID: {spec.id}")
        self._transforms[spec.id] = spec
        logger.debug("Registered transform %s (%s)", spec.id, spec.layer.name)

    def get(self, transform_id: str) -> TransformSpec:
        return self._transforms[transform_id]

    def get_layer(self, layer: Layer) -> list[TransformSpec]:
        specs = [s for s in self._transforms.values() if s.layer == layer]
        return sorted(specs, key=lambda s: s.id)

    def all(self) -> list[TransformSpec]:
        return sorted(self._transforms.values(), key=lambda s: (s.layer, s.id))

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[TransformSpec]:
        """Topological sort respecting dependencies. If requested_ids is None, run all."""
        pool = self._transforms
        if requested_ids is not None:
            # Expand with transitive dependencies
            expanded: set[str] = set()
            stack = list(requested_ids)
            while stack:
                tid = stack.pop()
                if tid in expanded:
                    continue
                expanded.add(tid)
                spec = pool.get(tid)
                if spec:
                    stack.extend(spec.dependencies)
            pool = {k: v for k, v in pool.items() if k in expanded}

        # Kahn's algorithm
        in_degree: dict[str, int] = {tid: 0 for tid in pool}
        for tid, spec in pool.items():
            for dep in spec.dependencies:
                if dep in pool:
                    in_degree[tid] += 1

        queue = sorted([tid for tid, d in in_degree.items() if d == 0])
        ordered: list[TransformSpec] = []

        while queue:
            tid = queue.pop(0)
            ordered.append(pool[tid])
            for other_id, other_spec in pool.items():
                if tid in other_spec.dependencies:
                    in_degree[other_id] -= 1
                    if in_degree[other_id] == 0:
                        queue.append(other_id)
                        queue.sort()

        if len(ordered) != len(pool):
            missing = set(pool.keys()) - {s.id for s in ordered}
            raise ValueError(f"Circular dependency detected among: {missing}")

        return ordered

    @property
    def count(self) -> int:
        return len(self._transforms)


class MetricRegistry:
    """Registry of similarity metrics; the weighted ensemble reads it in id order."""

    def __init__(self) -> None:
        self._metrics: dict[str, MetricSpec] = {}

    def register(self, spec: MetricSpec) -> None:
        if spec.id in self._metrics:
            raise ValueError(f"Duplicate metric ID: {spec.id}")
        self._metrics[spec.id] = spec
        logger.debug("Registered metric %s", spec.id)

    def get(self, metric_id: str) -> MetricSpec:
        return self._metrics[metric_id]

    def all(self) -> list[MetricSpec]:
        return sorted(self._metrics.values(), key=lambda s: s.id)

    def ids(self) -> list[str]:
        return [s.id for s in self.all()]

    @property
    def count(self) -> int:
        return len(self._metrics)


# Module-level singletons
_registry = TransformRegistry()
_metric_registry = MetricRegistry()


def get_registry() -> TransformRegistry:
    return _registry


def get_metric_registry() -> MetricRegistry:
    return _metric_registry


def transform(
    *,
    id: str,
    layer: Layer,
    dependencies: list[str] | None = None,
    description: str = "",
):
    """Decorator to register a shape transform function."""

    def decorator(fn: Callable[["AnalysisContext"], None]):
        spec = TransformSpec(
            id=id,
            layer=layer,
            fn=fn,
            dependencies=dependencies or [],
            description=description,
        )
        _registry.register(spec)
        return fn

    return decorator


def metric(*, id: str, description: str = ""):
    """Decorator to register a similarity metric function."""

    def decorator(fn: MetricFn):
        _metric_registry.register(MetricSpec(id=id, fn=fn, description=description))
        return fn

    return decorator


def load_builtins() -> None:
    """Import the shape and similarity packages so their decorators fire."""
    for package_name in ["sketchroute.engine.shape", "sketchroute.engine.similarity"]:
        package = importlib.import_module(package_name)
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            importlib.import_module(f"{package_name}.{module_name}")
