"""
Unit tests for color extraction module.

Tests the core color extraction pipeline components:
- plausibility filters for skin, hair and eyes
- deterministic bucket clustering and dominant color
- confidence scoring
"""

import pytest
import numpy as np

from facecolor.errors import InsufficientRegionSamplesError
from facecolor.services.colors.color_space import (
    hex_to_rgb, perceived_luminance, rgb_to_hex, rgb_to_hsl, rotate_hue_hex
)
from facecolor.services.colors.extraction import (
    FEATURE_THRESHOLDS, INSUFFICIENT_CONFIDENCE, cluster_colors, compute_confidence,
    dominant_color, extract_feature_color
)
from facecolor.services.colors.filters import eye_mask, filter_pixels, hair_mask, skin_mask


def pixels(*colors, repeat=1):
    return np.array([c for c in colors for _ in range(repeat)], dtype=np.uint8).reshape(-1, 3)


class TestColorSpace:
    """Test color space helpers"""
    
    def test_rgb_to_hex_basic_colors(self):
        assert rgb_to_hex(255, 0, 0) == "#FF0000"
        assert rgb_to_hex(0, 0, 0) == "#000000"
        assert rgb_to_hex(210, 180, 160) == "#D2B4A0"
    
    def test_hex_to_rgb(self):
        assert hex_to_rgb("#D2B4A0") == (210, 180, 160)
        with pytest.raises(ValueError):
            hex_to_rgb("#FFF")
    
    def test_rgb_to_hsl(self):
        assert rgb_to_hsl(255, 0, 0) == pytest.approx((0.0, 1.0, 0.5))
        assert rgb_to_hsl(0, 0, 255)[0] == pytest.approx(240.0)
        hue, sat, light = rgb_to_hsl(128, 128, 128)
        assert sat == 0.0
        assert light == pytest.approx(128 / 255)
    
    def test_perceived_luminance(self):
        assert perceived_luminance(255, 255, 255) == pytest.approx(255.0)
        assert perceived_luminance(0, 255, 0) == pytest.approx(0.587 * 255)
    
    def test_rotate_hue(self):
        assert rotate_hue_hex("#FF0000", 180) == "#00FFFF"
        assert rotate_hue_hex("#808080", 90) == "#808080"


class TestPlausibilityFilters:
    """Test per-feature pixel filters"""
    
    def test_skin_mask(self):
        mask = skin_mask(pixels((210, 180, 160), (120, 80, 60), (128, 128, 128), (60, 100, 170), (250, 250, 250)))
        assert mask.tolist() == [True, True, False, False, False]
    
    def test_hair_mask(self):
        mask = hair_mask(pixels((40, 30, 25), (210, 180, 160), (200, 200, 200), (230, 230, 230), (90, 60, 40)))
        assert mask.tolist() == [True, False, False, False, True]
    
    def test_eye_mask(self):
        mask = eye_mask(pixels((60, 100, 170), (240, 240, 240), (10, 10, 10), (60, 40, 30), (150, 150, 150)))
        assert mask.tolist() == [True, False, False, True, False]
    
    def test_filter_pixels_subset(self):
        raw = pixels((210, 180, 160), (128, 128, 128), repeat=3)
        plausible = filter_pixels(raw, "skin")
        assert plausible.shape == (3, 3)
        assert np.all(plausible == (210, 180, 160))
    
    def test_filter_pixels_empty(self):
        assert filter_pixels(np.empty((0, 3), dtype=np.uint8), "eyes").shape == (0, 3)
    
    def test_filter_pixels_unknown_feature(self):
        with pytest.raises(ValueError):
            filter_pixels(pixels((1, 2, 3)), "lips")


class TestDominantColor:
    """Test deterministic bucket clustering"""
    
    def test_uniform_region(self):
        cluster = dominant_color(pixels((210, 180, 160), repeat=50))
        assert cluster.rgb == (210, 180, 160)
        assert cluster.count == 50
        assert cluster.hex == "#D2B4A0"
    
    def test_majority_bucket_wins(self):
        cluster = dominant_color(np.concatenate([
            pixels((200, 100, 50), repeat=70),
            pixels((20, 20, 200), repeat=30),
        ]))
        assert cluster.rgb == (200, 100, 50)
        assert cluster.count == 70
    
    def test_bucket_mean_rounds_half_up(self):
        cluster = dominant_color(pixels((100, 100, 100), (101, 101, 101)))
        assert cluster.rgb == (101, 101, 101)
    
    def test_tie_goes_to_lowest_bucket(self):
        dark = pixels((10, 10, 10), repeat=5)
        light = pixels((250, 250, 250), repeat=5)
        assert dominant_color(np.concatenate([light, dark])).rgb == (10, 10, 10)
        assert dominant_color(np.concatenate([dark, light])).rgb == (10, 10, 10)
    
    def test_deterministic_under_permutation(self):
        rng = np.random.default_rng(7)
        sample = rng.integers(0, 256, size=(500, 3)).astype(np.uint8)
        expected = dominant_color(sample)
        for _ in range(5):
            assert dominant_color(rng.permutation(sample)) == expected
    
    def test_empty_sample(self):
        with pytest.raises(ValueError):
            dominant_color(np.empty((0, 3), dtype=np.uint8))
    
    def test_cluster_order(self):
        clusters = cluster_colors(np.concatenate([
            pixels((250, 250, 250), repeat=4),
            pixels((200, 100, 50), repeat=9),
            pixels((10, 10, 10), repeat=4),
        ]))
        assert [c.count for c in clusters] == [9, 4, 4]
        assert clusters[1].rgb == (10, 10, 10)
        assert cluster_colors(np.empty((0, 3), dtype=np.uint8)) == []


class TestConfidence:
    """Test confidence scoring"""
    
    def test_full_ratio_hits_ceiling(self):
        assert compute_confidence(100, 100, FEATURE_THRESHOLDS["skin"]) == pytest.approx(0.95)
        assert compute_confidence(100, 100, FEATURE_THRESHOLDS["hair"]) == pytest.approx(0.9)
        assert compute_confidence(100, 100, FEATURE_THRESHOLDS["eyes"]) == pytest.approx(0.9)
    
    def test_low_ratio_hits_floor(self):
        assert compute_confidence(30, 300, FEATURE_THRESHOLDS["skin"]) == pytest.approx(0.25)
    
    def test_below_minimum_is_insufficient(self):
        assert compute_confidence(29, 29, FEATURE_THRESHOLDS["skin"]) == INSUFFICIENT_CONFIDENCE
        assert compute_confidence(0, 0, FEATURE_THRESHOLDS["eyes"]) == INSUFFICIENT_CONFIDENCE
    
    def test_monotonic_in_ratio(self):
        thresholds = FEATURE_THRESHOLDS["hair"]
        scores = [compute_confidence(plausible, 200, thresholds) for plausible in range(20, 201, 20)]
        assert scores == sorted(scores)
        assert all(0.0 <= s <= 1.0 for s in scores)


class TestExtractFeatureColor:
    """Test filter + extract for one region"""
    
    def test_extracts_plausible_majority(self):
        raw = np.concatenate([
            pixels((40, 30, 25), repeat=60),
            pixels((210, 180, 160), repeat=40),
        ])
        extraction = extract_feature_color(raw, "hair")
        assert extraction.hex == "#281E19"
        assert extraction.sampled_pixels == 100
        assert extraction.plausible_pixels == 60
        assert extraction.confidence == pytest.approx(0.6 * 0.7 + 0.2)
    
    def test_insufficient_samples(self):
        with pytest.raises(InsufficientRegionSamplesError) as exc_info:
            extract_feature_color(pixels((210, 180, 160), repeat=29), "skin")
        assert exc_info.value.feature == "skin"
        assert exc_info.value.found == 29
        assert exc_info.value.required == 30
    
    def test_all_pixels_rejected(self):
        with pytest.raises(InsufficientRegionSamplesError):
            extract_feature_color(pixels((240, 240, 240), (10, 10, 10), repeat=50), "eyes")
