from dataclasses import dataclass, field


@dataclass(frozen=True)
class Measurements:
    weight_kg: float | None = None
    width_cm: float | None = None
    height_cm: float | None = None
    length_cm: float | None = None


@dataclass(frozen=True)
class SourceResult:
    """What a single source said about the product. None means no opinion."""

    name: str | None = None
    brand: str | None = None
    image_url: str | None = None
    source: str | None = None  # provenance: URL or upstream identifier
    measurements: Measurements = field(default_factory=Measurements)


@dataclass(frozen=True)
class WorkingRecord:
    name: str | None = None
    brand: str | None = None
    image_url: str | None = None
    measurements: Measurements = field(default_factory=Measurements)
    sources: tuple[str, ...] = ()
    confidence: float = 0.0


@dataclass(frozen=True)
class Refinement:
    brand: str = ""
    short_description: str = ""
