"""
Color space helpers shared by filtering, extraction and classification.

Hue is in degrees [0, 360); saturation and lightness are HSL in [0, 1].
"""
import colorsys
from typing import Tuple

import numpy as np


RGB = Tuple[int, int, int]


def rgb_to_hex(r: int, g: int, b: int) -> str:
    """Convert RGB channels to an uppercase #RRGGBB string."""
    r, g, b = (max(0, min(255, int(c))) for c in (r, g, b))
    return f"#{r:02X}{g:02X}{b:02X}"


def hex_to_rgb(hex_color: str) -> RGB:
    """Convert #RRGGBB to an RGB tuple."""
    hex_clean = hex_color.lstrip('#')
    if len(hex_clean) != 6:
        raise ValueError(f"Invalid hex color format: {hex_color}")
    return tuple(int(hex_clean[i:i + 2], 16) for i in (0, 2, 4))


def rgb_to_hsl_array(pixels: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorized RGB -> HSL for an (N, 3) uint8 array.
    
    Returns:
        Tuple of (hue_degrees, saturation, lightness) arrays of length N
    """
    rgb = pixels.reshape(-1, 3).astype(np.float64) / 255.0
    r, g, b = rgb[:, 0], rgb[:, 1], rgb[:, 2]
    
    c_max = rgb.max(axis=1)
    c_min = rgb.min(axis=1)
    delta = c_max - c_min
    lightness = (c_max + c_min) / 2.0
    
    chromatic = delta > 0
    safe_delta = np.where(chromatic, delta, 1.0)
    
    denom = 1.0 - np.abs(2.0 * lightness - 1.0)
    saturation = np.where(chromatic & (denom > 0), delta / np.where(denom > 0, denom, 1.0), 0.0)
    
    hue = np.zeros_like(c_max)
    red_max = chromatic & (c_max == r)
    green_max = chromatic & ~red_max & (c_max == g)
    blue_max = chromatic & ~red_max & ~green_max
    hue[red_max] = np.mod((g[red_max] - b[red_max]) / safe_delta[red_max], 6.0)
    hue[green_max] = (b[green_max] - r[green_max]) / safe_delta[green_max] + 2.0
    hue[blue_max] = (r[blue_max] - g[blue_max]) / safe_delta[blue_max] + 4.0
    hue = np.mod(hue * 60.0, 360.0)
    
    return hue, np.clip(saturation, 0.0, 1.0), lightness


def rgb_to_hsl(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """Scalar RGB -> (hue_degrees, saturation, lightness)."""
    hue, sat, light = rgb_to_hsl_array(np.array([[r, g, b]], dtype=np.uint8))
    return float(hue[0]), float(sat[0]), float(light[0])


def perceived_luminance(r: float, g: float, b: float) -> float:
    """Rec. 601 luma in [0, 255]."""
    return 0.299 * r + 0.587 * g + 0.114 * b


def perceived_luminance_array(pixels: np.ndarray) -> np.ndarray:
    rgb = pixels.reshape(-1, 3).astype(np.float64)
    return rgb @ np.array([0.299, 0.587, 0.114])


def rotate_hue_hex(hex_color: str, degrees: float) -> str:
    """Rotate a color's hue in HLS space, keeping lightness and saturation."""
    r, g, b = hex_to_rgb(hex_color)
    h, l, s = colorsys.rgb_to_hls(r / 255.0, g / 255.0, b / 255.0)
    h = (h + degrees / 360.0) % 1.0
    nr, ng, nb = colorsys.hls_to_rgb(h, l, s)
    return rgb_to_hex(round(nr * 255), round(ng * 255), round(nb * 255))
