"""
Facial Color Schemas
Pydantic models for facial color profiles and API request/response validation.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator


SkinLightness = Literal["very-light", "light", "medium", "dark", "very-dark"]
Undertone = Literal["warm", "cool", "neutral"]

CONFIDENCE_PRECISION = 3


def clamp_confidence(value: float) -> float:
    """Clamp a confidence value to [0, 1] at fixed precision."""
    return round(min(1.0, max(0.0, float(value))), CONFIDENCE_PRECISION)


# ============================================================================
# FEATURE RESULTS
# ============================================================================

class FeatureColorResult(BaseModel):
    """Color result for a single facial feature."""
    model_config = ConfigDict(frozen=True)
    
    color: str = Field(
        ...,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="Dominant color of the feature as #RRGGBB"
    )
    confidence: float = Field(
        ...,
        description="Confidence in [0, 1]; clamped on construction"
    )
    
    @field_validator("confidence", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_confidence(v)


class SkinToneResult(FeatureColorResult):
    """Skin tone with lightness bucket and undertone."""
    lightness: SkinLightness = Field(..., description="Perceptual lightness bucket")
    undertone: Undertone = Field(..., description="Channel-dominance undertone")


class HairColorResult(FeatureColorResult):
    """Hair color with named descriptor."""
    description: str = Field(..., description="Named hair color, e.g. 'Dark Brown'")


class EyeColorResult(FeatureColorResult):
    """Eye color with named descriptor."""
    description: str = Field(..., description="Named eye color, e.g. 'Hazel'")


class FacialColorProfile(BaseModel):
    """Complete facial color profile; immutable once built."""
    model_config = ConfigDict(frozen=True)
    
    skin_tone: SkinToneResult
    hair_color: HairColorResult
    eye_color: EyeColorResult
    overall_confidence: float = Field(
        ...,
        description="Arithmetic mean of the three feature confidences"
    )
    detected_features: bool = Field(
        ...,
        description="True only if a face was found and every region had enough samples"
    )
    
    @field_validator("overall_confidence", mode="before")
    @classmethod
    def clamp(cls, v):
        return clamp_confidence(v)


# ============================================================================
# API SCHEMAS
# ============================================================================

class HealthResponse(BaseModel):
    """Health check response."""
    ok: bool = Field(True, description="Service health status")
    version: str = Field(..., description="Service version")
    service: str = Field("what2wear-face-colors", description="Service name")
    detector_ready: bool = Field(False, description="Whether the face detector initialized")


class QuickColorsResponse(BaseModel):
    """Quick colors fast path response."""
    colors: List[str] = Field(..., description="Palette of #RRGGBB colors")
    count: int = Field(..., ge=0, description="Number of colors returned")


class BatchAnalyzeResponse(BaseModel):
    """Batch analysis response; failed items are null."""
    profiles: List[Optional[FacialColorProfile]]
    failed_indices: List[int] = Field(default_factory=list)


class CacheStatsResponse(BaseModel):
    """Profile cache statistics."""
    size: int
    max_size: int
    hits: int
    misses: int
    hit_rate: float
    oldest_entry_age_s: float


class ErrorResponse(BaseModel):
    """Error response."""
    detail: str = Field(..., description="Error message")
