"""
Dominant color extraction for facial feature regions.

Clustering is a single deterministic pass: every pixel is mapped to a
quantized bucket by integer-dividing each channel by a fixed bucket size,
and the most populous bucket's members are averaged. There is no random
initialization, so identical samples always give identical output.
"""
from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np
from loguru import logger

from facecolor.errors import InsufficientRegionSamplesError
from .color_space import RGB, rgb_to_hex, rgb_to_hsl
from .filters import filter_pixels


DEFAULT_BUCKET_SIZE = 256 // 5  # 51 -> 6 levels per channel
CONFIDENCE_FLOOR = 0.25
INSUFFICIENT_CONFIDENCE = 0.2


@dataclass(frozen=True)
class FeatureThresholds:
    """Minimum sample count and confidence curve for one feature."""
    min_pixels: int
    scale: float
    offset: float
    ceiling: float
    default_hex: str


FEATURE_THRESHOLDS: Dict[str, FeatureThresholds] = {
    "skin": FeatureThresholds(min_pixels=30, scale=0.8, offset=0.15, ceiling=0.95, default_hex="#D4A574"),
    "hair": FeatureThresholds(min_pixels=20, scale=0.7, offset=0.2, ceiling=0.9, default_hex="#3C2415"),
    "eyes": FeatureThresholds(min_pixels=10, scale=0.75, offset=0.15, ceiling=0.9, default_hex="#654321"),
}


@dataclass(frozen=True)
class ColorCluster:
    """Quantized color bucket: averaged representative color plus member count."""
    rgb: RGB
    count: int
    
    @property
    def hex(self) -> str:
        return rgb_to_hex(*self.rgb)


@dataclass(frozen=True)
class FeatureExtraction:
    """Dominant color for a region with the sample counts behind it."""
    feature: str
    rgb: RGB
    hsl: Tuple[float, float, float]
    confidence: float
    sampled_pixels: int
    plausible_pixels: int
    
    @property
    def hex(self) -> str:
        return rgb_to_hex(*self.rgb)


def _round_half_up(values: np.ndarray) -> Tuple[int, ...]:
    return tuple(int(v) for v in np.floor(values + 0.5))


def cluster_colors(pixels: np.ndarray, bucket_size: int = DEFAULT_BUCKET_SIZE) -> List[ColorCluster]:
    """
    Group pixels into quantized buckets.
    
    Args:
        pixels: (N, 3) uint8 RGB samples
        bucket_size: Channel quantization step
        
    Returns:
        Clusters ordered by member count descending, ties by bucket key ascending
    """
    if len(pixels) == 0:
        return []
    
    rgb = pixels.reshape(-1, 3).astype(np.int64)
    levels = 255 // bucket_size + 1
    buckets = rgb // bucket_size
    keys = (buckets[:, 0] * levels + buckets[:, 1]) * levels + buckets[:, 2]
    
    # np.unique returns keys ascending; a stable sort on -count keeps that as tie-break
    _, inverse, counts = np.unique(keys, return_inverse=True, return_counts=True)
    order = np.argsort(-counts, kind="stable")
    
    clusters = []
    for idx in order:
        members = rgb[inverse.reshape(-1) == idx]
        clusters.append(ColorCluster(rgb=_round_half_up(members.mean(axis=0)), count=int(counts[idx])))
    return clusters


def dominant_color(pixels: np.ndarray, bucket_size: int = DEFAULT_BUCKET_SIZE) -> ColorCluster:
    """Most populous bucket's averaged color."""
    if len(pixels) == 0:
        raise ValueError("Cannot extract a dominant color from an empty sample")
    
    rgb = pixels.reshape(-1, 3).astype(np.int64)
    levels = 255 // bucket_size + 1
    buckets = rgb // bucket_size
    keys = (buckets[:, 0] * levels + buckets[:, 1]) * levels + buckets[:, 2]
    
    unique_keys, counts = np.unique(keys, return_counts=True)
    winner = unique_keys[int(np.argmax(counts))]  # first max = lowest key on ties
    members = rgb[keys == winner]
    return ColorCluster(rgb=_round_half_up(members.mean(axis=0)), count=len(members))


def compute_confidence(plausible: int, sampled: int, thresholds: FeatureThresholds) -> float:
    """Bounded, monotonic confidence from the plausible / sampled ratio."""
    if plausible < thresholds.min_pixels or sampled <= 0:
        return INSUFFICIENT_CONFIDENCE
    ratio = plausible / sampled
    return min(thresholds.ceiling, max(CONFIDENCE_FLOOR, ratio * thresholds.scale + thresholds.offset))


def extract_feature_color(raw_pixels: np.ndarray, feature: str,
                          bucket_size: int = DEFAULT_BUCKET_SIZE) -> FeatureExtraction:
    """
    Filter a region's raw samples and extract its dominant color.
    
    Args:
        raw_pixels: (N, 3) uint8 samples from the region sampler
        feature: "skin", "hair" or "eyes"
        
    Returns:
        FeatureExtraction with color, HSL and confidence
        
    Raises:
        InsufficientRegionSamplesError: Fewer plausible pixels than the feature minimum
    """
    thresholds = FEATURE_THRESHOLDS[feature]
    sampled = len(raw_pixels)
    plausible_pixels = filter_pixels(raw_pixels, feature)
    plausible = len(plausible_pixels)
    
    logger.debug(f"{feature}: {plausible}/{sampled} plausible pixels (min {thresholds.min_pixels})")
    
    if plausible < thresholds.min_pixels:
        raise InsufficientRegionSamplesError(feature, plausible, thresholds.min_pixels)
    
    cluster = dominant_color(plausible_pixels, bucket_size)
    return FeatureExtraction(
        feature=feature,
        rgb=cluster.rgb,
        hsl=rgb_to_hsl(*cluster.rgb),
        confidence=compute_confidence(plausible, sampled, thresholds),
        sampled_pixels=sampled,
        plausible_pixels=plausible,
    )
