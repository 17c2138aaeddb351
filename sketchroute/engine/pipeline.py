"""Pipeline orchestrator — runs shape transforms in dependency order with adaptive gating."""

from __future__ import annotations

import logging
import time

from sketchroute.engine.config import AnalyzerConfig
from sketchroute.engine.context import AnalysisContext
from sketchroute.engine.registry import Layer, TransformRegistry, get_registry

logger = logging.getLogger(__name__)


class Pipeline:
    """Orchestrates the shape transform pipeline."""

    def __init__(
        self,
        registry: TransformRegistry | None = None,
        config: AnalyzerConfig | None = None,
    ) -> None:
        self.registry = registry or get_registry()
        self.config = config or AnalyzerConfig()

    def run(self, ctx: AnalysisContext) -> AnalysisContext:
        """Run the full pipeline on the given context."""
        start = time.perf_counter()
        if ctx.config is None:
            ctx.config = self.config

        skip_ids = self._adaptive_gate(ctx)

        all_specs = self.registry.all()
        requested = {s.id for s in all_specs} - skip_ids
        ordered = self.registry.resolve_order(requested)

        logger.debug(
            "Pipeline: %d transforms queued (%d skipped)",
            len(ordered),
            len(skip_ids),
        )

        for spec in ordered:
            t0 = time.perf_counter()
            try:
                spec.fn(ctx)
                ctx.completed_transforms.add(spec.id)
                elapsed = (time.perf_counter() - t0) * 1000
                logger.debug("  %s completed in %.1fms", spec.id, elapsed)
            except Exception as e:
                ctx.errors[spec.id] = str(e)
                logger.warning("  %s FAILED: %s", spec.id, e)

        total = (time.perf_counter() - start) * 1000
        logger.info(
            "Shape pipeline complete: %d/%d transforms in %.1fms",
            len(ctx.completed_transforms),
            len(ordered),
            total,
        )
        return ctx

    def _adaptive_gate(self, ctx: AnalysisContext) -> set[str]:
        """Determine which transforms to skip.

        Classification transforms only label the shape, so they are skipped
        when labelling is disabled; nothing downstream depends on them.
        """
        skip: set[str] = set()
        if not self.config.classify:
            skip.update(s.id for s in self.registry.get_layer(Layer.CLASSIFICATION))
        return skip
