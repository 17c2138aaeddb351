"""Tests for the pipeline orchestrator."""

from sketchroute.engine.config import AnalyzerConfig
from sketchroute.engine.context import AnalysisContext
from sketchroute.engine.pipeline import Pipeline
from sketchroute.engine.registry import Layer, TransformRegistry, TransformSpec


def test_pipeline_runs_transforms():
    reg = TransformRegistry()
    results = []

    def t1(ctx: AnalysisContext) -> None:
        results.append("t1")

    def t2(ctx: AnalysisContext) -> None:
        results.append("t2")

    reg.register(TransformSpec(id="T0.02", layer=Layer.GEOMETRY, fn=t2, dependencies=["T0.01"]))
    reg.register(TransformSpec(id="T0.01", layer=Layer.GEOMETRY, fn=t1))

    pipeline = Pipeline(registry=reg)
    ctx = AnalysisContext()
    pipeline.run(ctx)

    assert results == ["t1", "t2"]
    assert ctx.completed_transforms == {"T0.01", "T0.02"}


def test_pipeline_handles_errors():
    reg = TransformRegistry()

    def fail(ctx: AnalysisContext) -> None:
        raise ValueError("test error")

    reg.register(TransformSpec(id="T0.01", layer=Layer.GEOMETRY, fn=fail))

    pipeline = Pipeline(registry=reg)
    ctx = AnalysisContext()
    pipeline.run(ctx)

    assert "T0.01" in ctx.errors
    assert "test error" in ctx.errors["T0.01"]
    assert "T0.01" not in ctx.completed_transforms


def test_classification_skipped_when_disabled():
    reg = TransformRegistry()
    ran = []
    reg.register(TransformSpec(id="T0.01", layer=Layer.GEOMETRY, fn=lambda ctx: ran.append("geometry")))
    reg.register(TransformSpec(id="T2.01", layer=Layer.CLASSIFICATION, fn=lambda ctx: ran.append("label")))

    Pipeline(registry=reg, config=AnalyzerConfig(classify=False)).run(AnalysisContext())

    assert ran == ["geometry"]


def test_pipeline_sets_default_config():
    reg = TransformRegistry()
    ctx = AnalysisContext()
    Pipeline(registry=reg).run(ctx)
    assert isinstance(ctx.config, AnalyzerConfig)
