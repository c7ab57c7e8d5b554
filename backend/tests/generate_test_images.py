"""
Generate synthetic portraits for facial color analysis testing.

Portraits are 200x200 RGB arrays painted with flat colors so that every
region's expected dominant color is known exactly. PORTRAIT_LANDMARKS
describes the face a stub detector reports for them.
"""
import io
import math
from typing import Dict, List, Tuple

import cv2
import numpy as np
from PIL import Image

from facecolor.services.detection import FaceDetection, Point


PORTRAIT_SIZE = 200

SKIN_RGB = (210, 180, 160)
DARK_SKIN_RGB = (120, 80, 60)
HAIR_RGB = (40, 30, 25)
IRIS_RGB = (60, 100, 170)
SCLERA_RGB = (240, 240, 240)
PUPIL_RGB = (10, 10, 10)

HAIR_BAND_BOTTOM = 40  # hair painted on rows [0, 40]


def _jaw() -> List[Point]:
    return [
        (100 + 50 * math.cos(math.pi - k * math.pi / 16), 90 + 90 * math.sin(math.pi - k * math.pi / 16))
        for k in range(17)
    ]


def _eye(cx: float, cy: float) -> List[Point]:
    return [(cx - 12, cy), (cx - 6, cy - 4), (cx + 6, cy - 4), (cx + 12, cy), (cx + 6, cy + 4), (cx - 6, cy + 4)]


def _mouth() -> List[Point]:
    return [(100 + 20 * math.cos(2 * math.pi * k / 12), 150 + 7 * math.sin(2 * math.pi * k / 12)) for k in range(12)]


PORTRAIT_LANDMARKS: Dict[str, List[Point]] = {
    "jaw": _jaw(),
    "left_eyebrow": [(60, 70), (67, 68), (75, 67), (83, 68), (90, 70)],
    "right_eyebrow": [(110, 70), (117, 68), (125, 67), (133, 68), (140, 70)],
    "nose": [(100, 85), (100, 95), (100, 105), (100, 115), (92, 122), (96, 124), (100, 125), (104, 124), (108, 122)],
    "left_eye": _eye(75, 85),
    "right_eye": _eye(125, 85),
    "mouth": _mouth(),
}


def portrait_detection() -> FaceDetection:
    """Detection matching the synthetic portrait."""
    return FaceDetection(bbox=(50.0, 60.0, 100.0, 125.0), landmarks={k: list(v) for k, v in PORTRAIT_LANDMARKS.items()})


def _polygon(points: List[Point]) -> np.ndarray:
    return np.array([[int(round(x)), int(round(y))] for x, y in points], dtype=np.int32)


def create_portrait(skin_rgb: Tuple[int, int, int] = SKIN_RGB,
                    hair_rgb: Tuple[int, int, int] = HAIR_RGB,
                    iris_rgb: Tuple[int, int, int] = IRIS_RGB,
                    iris_visible: bool = True) -> np.ndarray:
    """
    Paint a flat-color portrait.
    
    Args:
        skin_rgb: Color of everything that is not hair or eyes
        hair_rgb: Color of the band above the forehead
        iris_rgb: Fill of both eye polygons
        iris_visible: If False, eyes are half sclera, half pupil
    """
    img = np.full((PORTRAIT_SIZE, PORTRAIT_SIZE, 3), skin_rgb, dtype=np.uint8)
    img[:HAIR_BAND_BOTTOM + 1, :] = hair_rgb
    
    for eye_name in ("left_eye", "right_eye"):
        eye = PORTRAIT_LANDMARKS[eye_name]
        if iris_visible:
            cv2.fillPoly(img, [_polygon(eye)], iris_rgb)
        else:
            cx = sum(p[0] for p in eye) / len(eye)
            mask = np.zeros(img.shape[:2], dtype=np.uint8)
            cv2.fillPoly(mask, [_polygon(eye)], 255)
            xs = np.arange(PORTRAIT_SIZE)[None, :].repeat(PORTRAIT_SIZE, axis=0)
            img[(mask > 0) & (xs < cx)] = SCLERA_RGB
            img[(mask > 0) & (xs >= cx)] = PUPIL_RGB
    
    return img


def create_flat_image(size: int = 100, rgb: Tuple[int, int, int] = (128, 128, 128)) -> np.ndarray:
    """Featureless single-color image."""
    return np.full((size, size, 3), rgb, dtype=np.uint8)


def encode_png(img_rgb: np.ndarray) -> bytes:
    """Encode an RGB array as PNG bytes."""
    buffer = io.BytesIO()
    Image.fromarray(img_rgb).save(buffer, format="PNG")
    return buffer.getvalue()
