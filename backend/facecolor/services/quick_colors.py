"""
Quick colors fast path.

Skips face detection entirely: the whole frame is shrunk to a thumbnail,
skin-plausible pixels are clustered, and the palette is rounded out with
complementary and analogous hue rotations plus a curated filler list.
Lower accuracy, lower latency; not a replacement for the full pipeline.
"""
from typing import List

import cv2
import numpy as np
from loguru import logger

from facecolor.services.colors.color_space import rotate_hue_hex
from facecolor.services.colors.extraction import cluster_colors
from facecolor.services.colors.filters import skin_mask


THUMBNAIL_SIZE = (100, 100)
SAMPLE_STRIDE = 4
QUICK_BUCKET_SIZE = 16
QUICK_BASE_COLORS = 5
COMPLEMENT_DEGREES = 180.0
ANALOGOUS_DEGREES = 30.0

CURATED_COLORS = [
    "#E6E6FA", "#B0E0E6", "#98FB98", "#FFB6C1", "#DDA0DD",
    "#F5DEB3", "#D2B48C", "#CD853F", "#8B7355", "#A0522D",
]

FALLBACK_COLORS = [
    "#8B7355", "#D4A574", "#F5E6D3", "#A0522D", "#CD853F", "#DEB887",
    "#E6E6FA", "#B0E0E6", "#98FB98", "#FFB6C1", "#DDA0DD", "#F5DEB3",
]


def extract_quick_skin_colors(img_rgb: np.ndarray, count: int = QUICK_BASE_COLORS) -> List[str]:
    """Top skin-plausible colors from a thumbnail of the whole frame."""
    thumbnail = cv2.resize(img_rgb, THUMBNAIL_SIZE, interpolation=cv2.INTER_AREA)
    pixels = thumbnail.reshape(-1, 3)[::SAMPLE_STRIDE]
    skin = pixels[skin_mask(pixels)]
    
    clusters = cluster_colors(skin, bucket_size=QUICK_BUCKET_SIZE)
    colors = [cluster.hex for cluster in clusters[:count]]
    logger.debug(f"Quick path found {len(skin)} skin pixels, {len(colors)} base colors")
    return colors


def generate_recommendations(base_colors: List[str], count: int) -> List[str]:
    """Round a palette out to count colors, preserving first-seen order."""
    if not base_colors:
        return fallback_recommendations(count)
    
    recommendations: List[str] = []
    
    def add(color: str):
        if color not in recommendations:
            recommendations.append(color)
    
    for color in base_colors:
        add(color)
    
    for color in base_colors:
        if len(recommendations) >= count:
            break
        add(rotate_hue_hex(color, COMPLEMENT_DEGREES))
        add(rotate_hue_hex(color, ANALOGOUS_DEGREES))
    
    for color in CURATED_COLORS:
        if len(recommendations) >= count:
            break
        add(color)
    
    return recommendations[:count]


def fallback_recommendations(count: int) -> List[str]:
    return FALLBACK_COLORS[:count]


def quick_color_palette(img_rgb: np.ndarray, count: int) -> List[str]:
    """Palette of count colors for a decoded, already downscaled image."""
    return generate_recommendations(extract_quick_skin_colors(img_rgb), count)
