"""
Color plausibility filters.

Each filter takes an (N, 3) uint8 RGB array and returns a boolean mask of
pixels that plausibly belong to the feature. Thresholds are hand-tuned and
kept as named constants.
"""
from dataclasses import dataclass
from typing import Callable, Dict

import numpy as np

from .color_space import perceived_luminance_array, rgb_to_hsl_array


@dataclass(frozen=True)
class SkinFilterParams:
    min_r: int = 95
    min_g: int = 40
    min_b: int = 20
    min_spread: int = 15          # max(r,g,b) - min(r,g,b)
    min_rg_diff: int = 15         # |r - g|
    min_luma: float = 30.0
    max_luma: float = 240.0
    max_warm_hue: float = 50.0    # degrees; reds/oranges/yellows
    min_wrap_hue: float = 340.0   # pinkish reds wrap past 360
    min_saturation: float = 0.10
    max_saturation: float = 0.90
    min_lightness: float = 0.20
    max_lightness: float = 0.90


@dataclass(frozen=True)
class HairFilterParams:
    max_brightness: float = 220.0       # mean of channels
    achromatic_spread: int = 20         # spread below this is near-gray
    bright_achromatic: float = 180.0    # near-gray and this bright is background


@dataclass(frozen=True)
class EyeFilterParams:
    sclera_lightness: float = 0.80      # above this is near-white
    sclera_soft_lightness: float = 0.65
    sclera_saturation: float = 0.15     # near-white when also this desaturated
    pupil_lightness: float = 0.08       # below this is pupil/lash
    min_saturation: float = 0.12        # weak iris tint
    dark_iris_lightness: float = 0.35   # dark brown irises have little saturation


SKIN_FILTER = SkinFilterParams()
HAIR_FILTER = HairFilterParams()
EYE_FILTER = EyeFilterParams()


def _as_int(pixels: np.ndarray) -> np.ndarray:
    return pixels.reshape(-1, 3).astype(np.int32)


def skin_mask(pixels: np.ndarray, params: SkinFilterParams = SKIN_FILTER) -> np.ndarray:
    """Warm hue, mid saturation, mid lightness, not near-achromatic."""
    if len(pixels) == 0:
        return np.zeros(0, dtype=bool)
    
    rgb = _as_int(pixels)
    r, g, b = rgb[:, 0], rgb[:, 1], rgb[:, 2]
    spread = rgb.max(axis=1) - rgb.min(axis=1)
    luma = perceived_luminance_array(rgb)
    hue, sat, light = rgb_to_hsl_array(pixels)
    
    keep = (r > params.min_r) & (g > params.min_g) & (b > params.min_b)
    keep &= spread > params.min_spread
    keep &= np.abs(r - g) > params.min_rg_diff
    keep &= (r > g) & (r > b)
    keep &= (luma >= params.min_luma) & (luma <= params.max_luma)
    keep &= (hue <= params.max_warm_hue) | (hue >= params.min_wrap_hue)
    keep &= (sat >= params.min_saturation) & (sat <= params.max_saturation)
    keep &= (light >= params.min_lightness) & (light <= params.max_lightness)
    return keep


def hair_mask(pixels: np.ndarray, params: HairFilterParams = HAIR_FILTER) -> np.ndarray:
    """Below the brightness ceiling, not skin, not bright near-gray background."""
    if len(pixels) == 0:
        return np.zeros(0, dtype=bool)
    
    rgb = _as_int(pixels)
    brightness = rgb.mean(axis=1)
    spread = rgb.max(axis=1) - rgb.min(axis=1)
    
    keep = brightness < params.max_brightness
    keep &= ~skin_mask(pixels)
    keep &= ~((spread < params.achromatic_spread) & (brightness > params.bright_achromatic))
    return keep


def eye_mask(pixels: np.ndarray, params: EyeFilterParams = EYE_FILTER) -> np.ndarray:
    """Exclude sclera and pupil; require weak saturation or dark lightness."""
    if len(pixels) == 0:
        return np.zeros(0, dtype=bool)
    
    _, sat, light = rgb_to_hsl_array(pixels)
    
    near_white = (light > params.sclera_lightness) | (
        (light > params.sclera_soft_lightness) & (sat < params.sclera_saturation)
    )
    near_black = light < params.pupil_lightness
    iris_like = (sat >= params.min_saturation) | (light <= params.dark_iris_lightness)
    return ~near_white & ~near_black & iris_like


PLAUSIBILITY_FILTERS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "skin": skin_mask,
    "hair": hair_mask,
    "eyes": eye_mask,
}


def filter_pixels(pixels: np.ndarray, feature: str) -> np.ndarray:
    """Return the plausible subset of pixels for a feature type."""
    if feature not in PLAUSIBILITY_FILTERS:
        raise ValueError(f"Unknown feature type: {feature}")
    if len(pixels) == 0:
        return pixels.reshape(0, 3)
    return pixels.reshape(-1, 3)[PLAUSIBILITY_FILTERS[feature](pixels)]
