"""
Data Models for the Appraisal Valuation Core

Dataclass definitions for the valuation inputs (subject, comparables, AVM,
market statistics, options) and the valuation result.

Input records are frozen: each stage of the pipeline returns new annotated
copies built with ``dataclasses.replace`` instead of mutating its input.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from appraisalcore.core.constants import (
    METHOD_COMBINED,
    METHOD_NONE,
    OUTLIER_METHODS,
)
from appraisalcore.exceptions import ValidationError
from appraisalcore.utils.date_parser import parse_date, parse_to_iso
from appraisalcore.utils.property_types import consolidate_property_type


def _pick(data: Dict[str, Any], *keys: str) -> Any:
    """Return the first present value among snake_case / camelCase keys."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return None


def _optional_float(data: Dict[str, Any], *keys: str) -> Optional[float]:
    value = _pick(data, *keys)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{keys[0]} must be numeric", field=keys[0], value=value) from e


def _optional_int(data: Dict[str, Any], *keys: str) -> Optional[int]:
    value = _optional_float(data, *keys)
    return int(round(value)) if value is not None else None


def _optional_str(data: Dict[str, Any], *keys: str) -> Optional[str]:
    value = _pick(data, *keys)
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _unit_interval(value: Optional[float], name: str) -> Optional[float]:
    if value is not None and not 0.0 <= value <= 1.0:
        raise ValidationError(f"{name} must be between 0 and 1", field=name, value=value)
    return value


@dataclass(frozen=True)
class ConstructionMaterials:
    """Wall, roof and floor construction materials."""

    walls: Optional[str] = None
    roof: Optional[str] = None
    floors: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ConstructionMaterials"]:
        if not data:
            return None
        return cls(
            walls=_optional_str(data, "walls"),
            roof=_optional_str(data, "roof"),
            floors=_optional_str(data, "floors"),
        )


@dataclass(frozen=True)
class PropertyDetails:
    """Attributes shared by the subject property and its comparables.

    Every numeric attribute is optional. A missing attribute means the
    matching adjustment dimension is skipped, never that it is zero.
    """

    address: str = ""
    suburb: Optional[str] = None
    city: Optional[str] = None
    property_type: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    land_size: Optional[float] = None
    floor_area: Optional[float] = None
    year_built: Optional[int] = None
    car_spaces: Optional[int] = None
    condition: Optional[str] = None
    architectural_style: Optional[str] = None
    construction_materials: Optional[ConstructionMaterials] = None
    zoning: Optional[str] = None
    features: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "property_type", consolidate_property_type(self.property_type))
        object.__setattr__(self, "features", tuple(self.features or ()))

    @staticmethod
    def _attributes_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "address": _optional_str(data, "address") or "",
            "suburb": _optional_str(data, "suburb"),
            "city": _optional_str(data, "city"),
            "property_type": _optional_str(data, "property_type", "propertyType"),
            "bedrooms": _optional_int(data, "bedrooms"),
            "bathrooms": _optional_int(data, "bathrooms"),
            "land_size": _optional_float(data, "land_size", "landSize"),
            "floor_area": _optional_float(data, "floor_area", "floorArea"),
            "year_built": _optional_int(data, "year_built", "yearBuilt"),
            "car_spaces": _optional_int(data, "car_spaces", "carSpaces"),
            "condition": _optional_str(data, "condition"),
            "architectural_style": _optional_str(data, "architectural_style", "architecturalStyle"),
            "construction_materials": ConstructionMaterials.from_dict(
                _pick(data, "construction_materials", "constructionMaterials")
            ),
            "zoning": _optional_str(data, "zoning"),
            "features": tuple(_pick(data, "features") or ()),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class SubjectProperty(PropertyDetails):
    """The property being valued."""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SubjectProperty":
        return cls(**cls._attributes_from_dict(data))


@dataclass(frozen=True)
class ComparableSale(PropertyDetails):
    """A previously sold property used as valuation evidence.

    The trailing fields are populated by the outlier detector, the price
    adjuster and the orchestrator.
    """

    id: str = ""
    sale_date: Optional[datetime] = None
    sale_price: Optional[float] = None
    similarity_score: float = 0.0
    distance_km: Optional[float] = None

    outlier_score: float = 0.0
    outlier_method: str = METHOD_NONE
    adjustment_factor: float = 1.0
    adjusted_price: Optional[float] = None
    adjustment_breakdown: Dict[str, float] = field(default_factory=dict)
    weight: float = 0.0
    is_excluded: bool = False

    @property
    def has_price(self) -> bool:
        """True when the comparable carries a positive sale price."""
        return self.sale_price is not None and self.sale_price > 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ComparableSale":
        raw_date = _pick(data, "sale_date", "saleDate")
        sale_date = parse_date(raw_date)
        if raw_date not in (None, "") and sale_date is None:
            raise ValidationError("sale_date could not be parsed", field="sale_date", value=raw_date)

        similarity = _optional_float(data, "similarity_score", "similarityScore")
        return cls(
            id=str(_pick(data, "id") or ""),
            sale_date=sale_date,
            sale_price=_optional_float(data, "sale_price", "salePrice"),
            similarity_score=_unit_interval(similarity, "similarity_score") or 0.0,
            distance_km=_optional_float(data, "distance_km", "distanceKm"),
            **cls._attributes_from_dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = asdict(self)
        result["sale_date"] = parse_to_iso(self.sale_date)
        return result


@dataclass(frozen=True)
class MarketStatistics:
    """Suburb or city aggregate market statistics."""

    suburb: Optional[str] = None
    city: Optional[str] = None
    median_price: Optional[float] = None
    annual_growth: Optional[float] = None
    quarterly_growth: Optional[float] = None
    sales_volume: Optional[int] = None
    days_on_market: Optional[float] = None
    source: Optional[str] = None
    median_price_last_quarter: Optional[float] = None
    median_price_last_year: Optional[float] = None
    demand_index: Optional[float] = None
    supply_index: Optional[float] = None
    market_type: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["MarketStatistics"]:
        if not data:
            return None
        return cls(
            suburb=_optional_str(data, "suburb"),
            city=_optional_str(data, "city"),
            median_price=_optional_float(data, "median_price", "medianPrice"),
            annual_growth=_optional_float(data, "annual_growth", "annualGrowth"),
            quarterly_growth=_optional_float(data, "quarterly_growth", "quarterlyGrowth"),
            sales_volume=_optional_int(data, "sales_volume", "salesVolume"),
            days_on_market=_optional_float(data, "days_on_market", "daysOnMarket"),
            source=_optional_str(data, "source"),
            median_price_last_quarter=_optional_float(
                data, "median_price_last_quarter", "medianPriceLastQuarter"
            ),
            median_price_last_year=_optional_float(
                data, "median_price_last_year", "medianPriceLastYear"
            ),
            demand_index=_optional_float(data, "demand_index", "demandIndex"),
            supply_index=_optional_float(data, "supply_index", "supplyIndex"),
            market_type=_optional_str(data, "market_type", "marketType"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class AVMEstimate:
    """A third-party automated valuation."""

    value: float
    low: Optional[float] = None
    high: Optional[float] = None
    confidence: Optional[float] = None
    confidence_label: Optional[str] = None
    source: Optional[str] = None
    valuation_date: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["AVMEstimate"]:
        if not data:
            return None
        value = _optional_float(data, "value", "valuation_estimate", "valuationEstimate", "avm_estimate")
        if value is None:
            raise ValidationError("AVM estimate requires a value", field="value")
        return cls(
            value=value,
            low=_optional_float(data, "low", "valuation_low", "valuationLow", "avm_range_low"),
            high=_optional_float(data, "high", "valuation_high", "valuationHigh", "avm_range_high"),
            confidence=_unit_interval(
                _optional_float(data, "confidence", "confidence_score", "confidenceScore"),
                "confidence",
            ),
            confidence_label=_optional_str(data, "confidence_label", "confidenceLabel", "avm_confidence"),
            source=_optional_str(data, "source"),
            valuation_date=parse_date(_pick(data, "valuation_date", "valuationDate")),
        )


@dataclass
class ValuationOptions:
    """Caller options for a valuation run."""

    use_avm: bool = True
    avm_weight: Optional[float] = None
    outlier_method: str = METHOD_COMBINED
    confidence_threshold: Optional[float] = None

    def __post_init__(self):
        if self.outlier_method not in OUTLIER_METHODS:
            raise ValidationError(
                f"outlier_method must be one of {', '.join(OUTLIER_METHODS)}",
                field="outlier_method",
                value=self.outlier_method,
            )
        _unit_interval(self.avm_weight, "avm_weight")
        _unit_interval(self.confidence_threshold, "confidence_threshold")

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ValuationOptions":
        if not data:
            return cls()
        use_avm = _pick(data, "use_avm", "useAVM")
        return cls(
            use_avm=True if use_avm is None else bool(use_avm),
            avm_weight=_optional_float(data, "avm_weight", "avmWeight"),
            outlier_method=_optional_str(data, "outlier_method", "outlierMethod") or METHOD_COMBINED,
            confidence_threshold=_optional_float(data, "confidence_threshold", "confidenceThreshold"),
        )


@dataclass
class ValuationRequest:
    """Everything one valuation run consumes."""

    subject: SubjectProperty
    comparables: List[ComparableSale] = field(default_factory=list)
    avm: Optional[AVMEstimate] = None
    market_stats: Optional[MarketStatistics] = None
    options: ValuationOptions = field(default_factory=ValuationOptions)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValuationRequest":
        subject = _pick(data, "subject_property", "subjectProperty", "propertyDetails")
        if not subject:
            raise ValidationError("subject property is required", field="subject_property")
        return cls(
            subject=SubjectProperty.from_dict(subject),
            comparables=[
                ComparableSale.from_dict(comp)
                for comp in _pick(data, "comparable_properties", "comparableProperties") or []
            ],
            avm=AVMEstimate.from_dict(_pick(data, "avm_estimate", "avmEstimate")),
            market_stats=MarketStatistics.from_dict(
                _pick(data, "market_statistics", "marketStatistics")
            ),
            options=ValuationOptions.from_dict(_pick(data, "options")),
        )


@dataclass
class AdjustmentFactors:
    """Approximate dollar impact per adjustment dimension, for explanation only."""

    bedroom_value: Optional[float] = None
    bathroom_value: Optional[float] = None
    land_size_value: Optional[float] = None
    floor_area_value: Optional[float] = None
    car_space_value: Optional[float] = None
    condition_factor: Optional[float] = None
    architectural_style_factor: Optional[float] = None
    construction_materials_factor: Optional[float] = None
    age_adjustment: Optional[float] = None
    seasonal_factor: Optional[float] = None
    market_trend_factor: Optional[float] = None
    location_factor: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting dimensions that were not computable."""
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class ConfidenceBreakdown:
    """Contributing factors behind the overall confidence."""

    overall: float
    level: str
    data_quality: float = 0.0
    comparable_count: float = 0.0
    comparable_similarity: float = 0.0
    outlier_impact: float = 0.0
    data_recency: float = 0.0
    market_volatility: float = 0.0
    avm_confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class ValuationApproach:
    """How the final figure was produced."""

    method: str
    comparable_weight: Optional[float] = None
    avm_weight: Optional[float] = None
    avm_confidence: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class AdjustedComparable:
    """Per-comparable detail reported with the valuation."""

    id: str
    address: str
    sale_price: Optional[float]
    adjusted_price: Optional[float]
    adjustment_factor: float
    weight: float
    outlier_score: float
    outlier_method: str
    is_excluded: bool

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class MarketAnalysis:
    """Market context reported alongside the valuation."""

    median_price: Optional[float] = None
    price_per_sqm: Optional[float] = None
    annual_growth: float = 0.0
    quarterly_growth: Optional[float] = None
    sales_volume: Optional[int] = None
    days_on_market: Optional[float] = None
    market_strength: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class ValuationData:
    """Payload of a successful valuation."""

    valuation_low: float
    valuation_high: float
    valuation_estimate: float
    valuation_confidence: float
    confidence_level: str
    confidence_breakdown: ConfidenceBreakdown
    approach: ValuationApproach
    adjusted_comparables: List[AdjustedComparable] = field(default_factory=list)
    adjustment_factors: AdjustmentFactors = field(default_factory=AdjustmentFactors)
    market_analysis: MarketAnalysis = field(default_factory=MarketAnalysis)
    reference_date: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = asdict(self)
        result["adjustment_factors"] = self.adjustment_factors.to_dict()
        result["reference_date"] = parse_to_iso(self.reference_date)
        return result


@dataclass
class ValuationResult:
    """Outcome of a valuation run: data on success, error text on failure."""

    success: bool
    data: Optional[ValuationData] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: ValuationData) -> "ValuationResult":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str) -> "ValuationResult":
        return cls(success=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result: Dict[str, Any] = {"success": self.success}
        if self.success and self.data is not None:
            result["data"] = self.data.to_dict()
        else:
            result["error"] = self.error
        return result
