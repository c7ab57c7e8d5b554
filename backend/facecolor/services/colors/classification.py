"""
Feature Classifier

Pure functions mapping a dominant color to categorical descriptors.
Every cascade is ordered: the first matching band wins, so borderline
colors resolve toward the earlier, more specific band. Reordering the
bands reclassifies colors.
"""
from typing import Tuple

from .color_space import perceived_luminance, rgb_to_hsl


# Skin lightness cut points on Rec. 601 luma, checked top-down
SKIN_LIGHTNESS_BANDS: Tuple[Tuple[float, str], ...] = (
    (190.0, "very-light"),
    (150.0, "light"),
    (110.0, "medium"),
    (70.0, "dark"),
)
SKIN_LIGHTNESS_FLOOR = "very-dark"

# Hair cascade on channel-mean brightness
HAIR_BLACK_MAX = 40.0
HAIR_DARK_BROWN_MAX = 70.0
HAIR_RED_CHANNEL_LEAD = 20
HAIR_RED_MAX_BRIGHTNESS = 150.0
HAIR_BROWN_MAX = 120.0
HAIR_GRAY_MAX_SPREAD = 20
HAIR_DARK_BLONDE_MAX = 180.0
HAIR_BLONDE_MIN_WARMTH = 20  # r - b

# Eye hue bands (degrees), applied when saturation clears the threshold
EYE_MIN_SATURATION = 0.15
EYE_BLUE_HUE = (170.0, 260.0)
EYE_GREEN_HUE = (75.0, 170.0)
EYE_HAZEL_HUE = (40.0, 75.0)
EYE_GRAY_MAX_SATURATION = 0.25
EYE_GRAY_MIN_LIGHTNESS = 0.5
EYE_DARK_BROWN_MAX_LIGHTNESS = 0.25


def classify_skin_lightness(r: int, g: int, b: int) -> str:
    luma = perceived_luminance(r, g, b)
    for cut, label in SKIN_LIGHTNESS_BANDS:
        if luma > cut:
            return label
    return SKIN_LIGHTNESS_FLOOR


def classify_undertone(r: int, g: int, b: int) -> str:
    """Red and green over blue is warm; blue over both is cool."""
    if r > b and g > b:
        return "warm"
    if b > r and b > g:
        return "cool"
    return "neutral"


def classify_hair_color(r: int, g: int, b: int) -> str:
    brightness = (r + g + b) / 3.0
    spread = max(r, g, b) - min(r, g, b)
    
    if brightness < HAIR_BLACK_MAX:
        return "Black"
    if brightness < HAIR_DARK_BROWN_MAX:
        return "Dark Brown"
    if (r > g + HAIR_RED_CHANNEL_LEAD and r > b + HAIR_RED_CHANNEL_LEAD
            and brightness < HAIR_RED_MAX_BRIGHTNESS):
        return "Auburn/Red"
    if brightness < HAIR_BROWN_MAX:
        return "Brown"
    if spread < HAIR_GRAY_MAX_SPREAD:
        return "Gray"
    if brightness < HAIR_DARK_BLONDE_MAX:
        return "Dark Blonde"
    if r - b > HAIR_BLONDE_MIN_WARMTH:
        return "Blonde"
    return "Light Blonde"


def _brown_family(lightness: float) -> str:
    return "Dark Brown" if lightness < EYE_DARK_BROWN_MAX_LIGHTNESS else "Brown"


def classify_eye_color(r: int, g: int, b: int) -> str:
    hue, sat, light = rgb_to_hsl(r, g, b)
    
    if sat < EYE_MIN_SATURATION:
        return _brown_family(light)
    
    if EYE_BLUE_HUE[0] <= hue < EYE_BLUE_HUE[1]:
        if sat < EYE_GRAY_MAX_SATURATION and light >= EYE_GRAY_MIN_LIGHTNESS:
            return "Gray"
        return "Blue"
    if EYE_GREEN_HUE[0] <= hue < EYE_GREEN_HUE[1]:
        return "Green"
    if EYE_HAZEL_HUE[0] <= hue < EYE_HAZEL_HUE[1]:
        return "Hazel"
    return _brown_family(light)
