"""
Tests for the facial color analysis pipeline.

Portraits are synthetic and the detector is stubbed, so every expected
color and confidence below follows directly from the painted regions.
"""
import numpy as np
import pytest

from facecolor.services.analysis import (
    FALLBACK_PROFILE, FacialColorAnalyzer, build_profile
)
from facecolor.services.detection import DetectorService
from facecolor.utils.metrics import get_metrics_collector

from fakes import StubDetector
from generate_test_images import (
    DARK_SKIN_RGB, create_flat_image, create_portrait, portrait_detection
)


def make_analyzer(**stub_kwargs) -> FacialColorAnalyzer:
    return FacialColorAnalyzer(DetectorService(StubDetector(**stub_kwargs)))


class TestFullAnalysis:
    """Clear portrait with every region visible"""
    
    def test_clear_portrait(self, analyzer, portrait):
        profile = analyzer.analyze(portrait)
        
        assert profile.detected_features is True
        
        assert profile.skin_tone.color == "#D2B4A0"
        assert profile.skin_tone.lightness == "light"
        assert profile.skin_tone.undertone == "warm"
        assert profile.skin_tone.confidence == pytest.approx(0.95)
        
        assert profile.hair_color.color == "#281E19"
        assert profile.hair_color.description == "Black"
        # 41 of 68 sampled rows are hair
        assert profile.hair_color.confidence == pytest.approx(0.622)
        
        assert profile.eye_color.color == "#3C64AA"
        assert profile.eye_color.description == "Blue"
        assert profile.eye_color.confidence == pytest.approx(0.9)
        
        assert profile.overall_confidence == pytest.approx(0.824)
    
    def test_dark_skin_portrait(self, analyzer):
        profile = analyzer.analyze(create_portrait(skin_rgb=DARK_SKIN_RGB))
        assert profile.skin_tone.color == "#78503C"
        assert profile.skin_tone.lightness == "dark"
        assert profile.detected_features is True
    
    def test_deterministic(self, analyzer, portrait):
        assert analyzer.analyze(portrait) == analyzer.analyze(portrait.copy())
    
    def test_records_metrics(self, analyzer, portrait):
        analyzer.analyze(portrait)
        metrics = get_metrics_collector()
        assert metrics.get_counters()["analyses_total"] == 1
        assert metrics.get_confidence_stats()["count"] == 1
        assert "face_detection_duration_ms" in metrics.get_timing_stats()
    
    def test_progress_after_detection(self, analyzer, portrait):
        reported = []
        analyzer.analyze(portrait, progress=reported.append)
        assert reported == [60]


class TestPartialAnalysis:
    """Region-level fallbacks"""
    
    def test_hidden_iris_falls_back_for_eyes_only(self, analyzer):
        profile = analyzer.analyze(create_portrait(iris_visible=False))
        
        assert profile.detected_features is False
        assert profile.eye_color.color == "#654321"
        assert profile.eye_color.description == "Dark Brown"
        assert profile.eye_color.confidence == pytest.approx(0.2)
        
        assert profile.skin_tone.color == "#D2B4A0"
        assert profile.hair_color.description == "Black"
        assert profile.overall_confidence == pytest.approx(0.591)
        
        counters = get_metrics_collector().get_counters()
        assert counters["insufficient_samples_total_eyes"] == 1
        assert "fallback_total" not in counters
    
    def test_one_pixel_image(self):
        analyzer = make_analyzer(detection=portrait_detection())
        profile = analyzer.analyze(np.full((1, 1, 3), 200, dtype=np.uint8))
        
        assert profile.detected_features is False
        assert profile.skin_tone.confidence == pytest.approx(0.2)
        assert profile.hair_color.confidence == pytest.approx(0.2)
        assert profile.eye_color.confidence == pytest.approx(0.2)
        assert profile.overall_confidence == pytest.approx(0.2)


class TestFallbackProfile:
    """Whole-profile fallbacks never raise"""
    
    def test_no_face(self):
        analyzer = make_analyzer(detection=None)
        assert analyzer.analyze(create_flat_image()) == FALLBACK_PROFILE
        assert get_metrics_collector().get_counters()["fallback_total_no_face"] == 1
    
    def test_fallback_profile_values(self):
        assert FALLBACK_PROFILE.detected_features is False
        assert FALLBACK_PROFILE.overall_confidence == pytest.approx(0.3)
        assert FALLBACK_PROFILE.skin_tone.color == "#D4A574"
        assert FALLBACK_PROFILE.skin_tone.lightness == "medium"
        assert FALLBACK_PROFILE.skin_tone.undertone == "neutral"
        assert FALLBACK_PROFILE.hair_color.color == "#3C2415"
        assert FALLBACK_PROFILE.eye_color.color == "#654321"
    
    def test_model_unavailable(self, portrait):
        detector = StubDetector(detection=portrait_detection(), fail_load=True)
        service = DetectorService(detector)
        analyzer = FacialColorAnalyzer(service)
        
        assert analyzer.analyze(portrait) == FALLBACK_PROFILE
        assert analyzer.analyze(portrait) == FALLBACK_PROFILE
        
        # Initialization is attempted once and memoized
        assert detector.load_calls == 1
        assert detector.detect_calls == 0
        assert service.initialized is False
        assert get_metrics_collector().get_counters()["fallback_total_model_unavailable"] == 2
    
    def test_unexpected_detector_error(self, portrait):
        analyzer = make_analyzer(raise_on_detect=RuntimeError("boom"))
        assert analyzer.analyze(portrait) == FALLBACK_PROFILE
        assert get_metrics_collector().get_counters()["fallback_total_error"] == 1


class TestProfileInvariants:
    
    def test_overall_is_mean_of_features(self, analyzer, portrait):
        profile = analyzer.analyze(portrait)
        mean = (profile.skin_tone.confidence + profile.hair_color.confidence + profile.eye_color.confidence) / 3
        assert profile.overall_confidence == pytest.approx(mean, abs=1e-3)
    
    def test_confidence_clamped(self):
        profile = build_profile(
            FALLBACK_PROFILE.skin_tone.model_copy(),
            FALLBACK_PROFILE.hair_color,
            FALLBACK_PROFILE.eye_color,
            detected_features=False,
        )
        assert 0.0 <= profile.overall_confidence <= 1.0
        clamped = type(FALLBACK_PROFILE.hair_color)(color="#000000", confidence=1.7, description="Black")
        assert clamped.confidence == 1.0
    
    def test_profile_is_immutable(self):
        with pytest.raises(Exception):
            FALLBACK_PROFILE.overall_confidence = 0.9
