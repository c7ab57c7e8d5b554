"""
Facial color analysis pipeline and profile aggregation.

detect -> sample regions -> filter + extract (x3) -> classify (x3) -> aggregate.

FacialColorAnalyzer.analyze is the single recovery boundary: no face, an
unavailable detector or any unexpected error produce FALLBACK_PROFILE, and a
region with too few plausible pixels falls back on its own default while the
other features are analyzed normally.
"""
from typing import Callable, Optional, Tuple

import numpy as np
from loguru import logger

from facecolor.errors import (
    InsufficientRegionSamplesError,
    ModelUnavailableError,
    NoFaceDetectedError,
)
from facecolor.schemas import (
    EyeColorResult,
    FacialColorProfile,
    HairColorResult,
    SkinToneResult,
    clamp_confidence,
)
from facecolor.services.colors.classification import (
    classify_eye_color,
    classify_hair_color,
    classify_skin_lightness,
    classify_undertone,
)
from facecolor.services.colors.extraction import (
    FEATURE_THRESHOLDS,
    INSUFFICIENT_CONFIDENCE,
    FeatureExtraction,
    extract_feature_color,
)
from facecolor.services.colors.regions import (
    DEFAULT_REGION_PARAMS,
    RegionParams,
    sample_regions,
)
from facecolor.services.detection import DetectorService
from facecolor.utils.metrics import get_metrics_collector, performance_monitor


FALLBACK_CONFIDENCE = 0.3

DEFAULT_SKIN = {"color": FEATURE_THRESHOLDS["skin"].default_hex, "lightness": "medium", "undertone": "neutral"}
DEFAULT_HAIR = {"color": FEATURE_THRESHOLDS["hair"].default_hex, "description": "Dark Brown"}
DEFAULT_EYES = {"color": FEATURE_THRESHOLDS["eyes"].default_hex, "description": "Dark Brown"}

FALLBACK_PROFILE = FacialColorProfile(
    skin_tone=SkinToneResult(confidence=FALLBACK_CONFIDENCE, **DEFAULT_SKIN),
    hair_color=HairColorResult(confidence=FALLBACK_CONFIDENCE, **DEFAULT_HAIR),
    eye_color=EyeColorResult(confidence=FALLBACK_CONFIDENCE, **DEFAULT_EYES),
    overall_confidence=FALLBACK_CONFIDENCE,
    detected_features=False,
)

ProgressCallback = Callable[[int], None]


def skin_result(extraction: FeatureExtraction) -> SkinToneResult:
    r, g, b = extraction.rgb
    return SkinToneResult(
        color=extraction.hex,
        confidence=extraction.confidence,
        lightness=classify_skin_lightness(r, g, b),
        undertone=classify_undertone(r, g, b),
    )


def hair_result(extraction: FeatureExtraction) -> HairColorResult:
    return HairColorResult(
        color=extraction.hex,
        confidence=extraction.confidence,
        description=classify_hair_color(*extraction.rgb),
    )


def eye_result(extraction: FeatureExtraction) -> EyeColorResult:
    return EyeColorResult(
        color=extraction.hex,
        confidence=extraction.confidence,
        description=classify_eye_color(*extraction.rgb),
    )


FEATURE_BUILDERS = {
    "skin": (skin_result, lambda: SkinToneResult(confidence=INSUFFICIENT_CONFIDENCE, **DEFAULT_SKIN)),
    "hair": (hair_result, lambda: HairColorResult(confidence=INSUFFICIENT_CONFIDENCE, **DEFAULT_HAIR)),
    "eyes": (eye_result, lambda: EyeColorResult(confidence=INSUFFICIENT_CONFIDENCE, **DEFAULT_EYES)),
}


def build_profile(skin: SkinToneResult, hair: HairColorResult, eyes: EyeColorResult,
                  detected_features: bool) -> FacialColorProfile:
    """Combine three feature results; overall confidence is their mean."""
    overall = (skin.confidence + hair.confidence + eyes.confidence) / 3.0
    return FacialColorProfile(
        skin_tone=skin,
        hair_color=hair,
        eye_color=eyes,
        overall_confidence=clamp_confidence(overall),
        detected_features=detected_features,
    )


class FacialColorAnalyzer:
    """Runs the landmark-guided pipeline on a decoded RGB image."""
    
    def __init__(self, detector_service: DetectorService,
                 region_params: RegionParams = DEFAULT_REGION_PARAMS):
        self.detector_service = detector_service
        self.region_params = region_params
        self.metrics = get_metrics_collector()
    
    def analyze(self, image_rgb: np.ndarray,
                progress: Optional[ProgressCallback] = None) -> FacialColorProfile:
        """
        Analyze a decoded RGB image.
        
        Never raises for ordinary non-detection: returns FALLBACK_PROFILE when
        no face is found, the detector is unavailable, or anything fails.
        """
        self.metrics.increment_analysis_count()
        try:
            with performance_monitor("face_detection"):
                detection = self.detector_service.detect(image_rgb)
            if detection is None:
                raise NoFaceDetectedError("No face detected in the image")
            if progress:
                progress(60)
            
            with performance_monitor("region_sampling"):
                regions = sample_regions(image_rgb, detection, self.region_params)
            
            with performance_monitor("feature_extraction"):
                skin, skin_ok = self._analyze_feature(regions.skin, "skin")
                hair, hair_ok = self._analyze_feature(regions.hair, "hair")
                eyes, eyes_ok = self._analyze_feature(regions.eyes, "eyes")
            
            profile = build_profile(skin, hair, eyes, detected_features=skin_ok and hair_ok and eyes_ok)
        
        except ModelUnavailableError as e:
            logger.warning(f"Face detector unavailable, returning fallback profile: {e}")
            self.metrics.increment_fallback_count("model_unavailable")
            return FALLBACK_PROFILE
        except NoFaceDetectedError:
            logger.warning("No face detected, returning fallback profile")
            self.metrics.increment_fallback_count("no_face")
            return FALLBACK_PROFILE
        except Exception as e:
            logger.error(f"Facial color analysis failed: {type(e).__name__}: {e}")
            self.metrics.increment_fallback_count("error")
            return FALLBACK_PROFILE
        
        self.metrics.record_confidence(profile.overall_confidence)
        logger.info(
            f"Facial colors: skin={profile.skin_tone.color} ({profile.skin_tone.lightness}/"
            f"{profile.skin_tone.undertone}), hair={profile.hair_color.description}, "
            f"eyes={profile.eye_color.description}, confidence={profile.overall_confidence}"
        )
        return profile
    
    def _analyze_feature(self, raw_pixels: np.ndarray, feature: str) -> Tuple[object, bool]:
        """Extract and classify one feature; returns (result, had_enough_samples)."""
        build, default = FEATURE_BUILDERS[feature]
        try:
            extraction = extract_feature_color(raw_pixels, feature)
        except InsufficientRegionSamplesError as e:
            logger.warning(f"Falling back to default {feature} color: {e}")
            self.metrics.increment_insufficient_samples(feature)
            return default(), False
        return build(extraction), True
