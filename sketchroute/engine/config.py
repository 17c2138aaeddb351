"""Engine configuration — thresholds, tables and weights injected into each component."""

from __future__ import annotations

from dataclasses import dataclass, field

from sketchroute.engine.context import Creativity, TransportMode


@dataclass
class AnalyzerConfig:
    """Drawing validation and feature-extraction thresholds."""

    min_points: int = 3
    # Smaller boxes are indistinguishable from a tap or a jitter
    min_dimension_px: float = 20.0
    # Consecutive points closer than this collapse when counting distinct points
    duplicate_px: float = 1.0
    # 10:1 is reported as a recommendation, never rejected
    elongation_warning: float = 10.0

    # Interior vertex angle below 135° = corner, below 90° = sharp turn
    corner_angle_deg: float = 135.0
    sharp_turn_angle_deg: float = 90.0

    # Closed if |first - last| <= tolerance * min(width, height)
    closed_tolerance: float = 0.15

    # Complexity = half corner density, half curvature variance (both saturating)
    complexity_density_ref: float = 2.0
    complexity_variance_ref: float = 50.0

    # Mirror match distance in the unit frame (2.5x a 2% positional JND)
    symmetry_eps: float = 0.05

    # Shape labels are informational; turning them off never changes matching
    classify: bool = True


@dataclass
class NormalizerConfig:
    sample_count: int = 16


@dataclass
class CollectorConfig:
    """Candidate vetting, simplification and mode tables."""

    max_distance_km: float = 10.0
    # Douglas-Peucker tolerance in degrees (~10 m)
    simplify_tolerance: float = 1e-4
    max_candidates: int = 300
    # Relative-length filter: keep candidates within [1/f, f] of the shape
    length_filter: bool = True
    length_factor: float = 4.0

    mode_speeds_kmh: dict[TransportMode, float] = field(
        default_factory=lambda: {
            TransportMode.WALKING: 5.0,
            TransportMode.CYCLING: 15.0,
            TransportMode.DRIVING: 40.0,
        }
    )
    way_classes: dict[TransportMode, list[str]] = field(
        default_factory=lambda: {
            TransportMode.WALKING: [
                "footway", "path", "pedestrian", "steps", "track",
                "residential", "living_street", "service", "unclassified",
            ],
            TransportMode.CYCLING: [
                "cycleway", "path", "track", "residential", "living_street",
                "secondary", "tertiary", "unclassified", "service",
            ],
            TransportMode.DRIVING: [
                "primary", "secondary", "tertiary", "residential", "trunk",
                "unclassified", "service", "primary_link", "secondary_link",
            ],
        }
    )
    # Added on top of way_classes by the degraded fallback stage
    widened_way_classes: dict[TransportMode, list[str]] = field(
        default_factory=lambda: {
            TransportMode.WALKING: ["cycleway", "tertiary", "secondary", "bridleway", "corridor"],
            TransportMode.CYCLING: ["footway", "pedestrian", "primary", "bridleway"],
            TransportMode.DRIVING: ["tertiary_link", "motorway", "motorway_link", "living_street"],
        }
    )

    def speed_for(self, mode: TransportMode) -> float:
        return self.mode_speeds_kmh.get(mode, self.mode_speeds_kmh[TransportMode.WALKING])

    def way_classes_for(self, mode: TransportMode, widened: bool = False) -> list[str]:
        classes = list(self.way_classes.get(mode, self.way_classes[TransportMode.WALKING]))
        if widened:
            classes += [c for c in self.widened_way_classes.get(mode, []) if c not in classes]
        return classes


@dataclass
class SimilarityConfig:
    # Hausdorff: exp(-k * d), k = 10 maps d = 0.1 to ~0.37
    hausdorff_k: float = 10.0
    fourier_harmonics: int = 8
    spatial_samples: int = 10
    spatial_reference_scale: float = 0.25
    # Score given to a metric that failed on a candidate
    metric_floor: float = 0.1
    # Also score each candidate reversed; street geometry has no drawing direction
    direction_agnostic: bool = True
    max_workers: int = 4


@dataclass
class CreativityProfile:
    name: Creativity
    weights: dict[str, float]
    min_similarity: float


def _default_profiles() -> dict[Creativity, CreativityProfile]:
    return {
        Creativity.STRICT: CreativityProfile(
            name=Creativity.STRICT,
            weights={"dtw": 0.30, "hausdorff": 0.30, "fourier": 0.15, "feature": 0.15, "spatial": 0.10},
            min_similarity=0.6,
        ),
        Creativity.BALANCED: CreativityProfile(
            name=Creativity.BALANCED,
            weights={"dtw": 0.25, "hausdorff": 0.20, "fourier": 0.20, "feature": 0.20, "spatial": 0.15},
            min_similarity=0.4,
        ),
        Creativity.CREATIVE: CreativityProfile(
            name=Creativity.CREATIVE,
            weights={"dtw": 0.15, "hausdorff": 0.10, "fourier": 0.25, "feature": 0.25, "spatial": 0.25},
            min_similarity=0.25,
        ),
    }


@dataclass
class ProfileTable:
    """Creativity profile → metric weights. Every profile must sum to 1.0."""

    profiles: dict[Creativity, CreativityProfile] = field(default_factory=_default_profiles)

    def __post_init__(self) -> None:
        for profile in self.profiles.values():
            total = sum(profile.weights.values())
            if abs(total - 1.0) > 1e-6:
                raise ValueError(f"Weights of profile {profile.name.value!r} sum to {total:.3f}, not 1.0")

    def get(self, creativity: Creativity | str) -> CreativityProfile:
        return self.profiles[Creativity(creativity)]


@dataclass
class AggregatorConfig:
    min_confidence: float = 0.3
    max_routes: int = 5
    # Ranking key = similarity_weight * aggregate + (1 - similarity_weight) * confidence
    similarity_weight: float = 0.7
    high_confidence: float = 0.7
    medium_confidence: float = 0.5
    max_name_length: int = 35


@dataclass
class FallbackConfig:
    widen_factor: float = 2.0
    # Primary fetch skips ways longer than this many bbox diagonals; None disables the hint
    max_way_length_factor: float | None = 2.0
    # Degraded heuristics: half relative-length agreement, half centroid proximity
    heuristic_proximity_km: float = 2.0
    heuristic_max_routes: int = 3
    synthetic_count: int = 2
    synthetic_radius_deg: float = 0.01
    synthetic_seed: int | None = None


@dataclass
class EngineConfig:
    analyzer: AnalyzerConfig = field(default_factory=AnalyzerConfig)
    normalizer: NormalizerConfig = field(default_factory=NormalizerConfig)
    collector: CollectorConfig = field(default_factory=CollectorConfig)
    similarity: SimilarityConfig = field(default_factory=SimilarityConfig)
    profiles: ProfileTable = field(default_factory=ProfileTable)
    aggregator: AggregatorConfig = field(default_factory=AggregatorConfig)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
