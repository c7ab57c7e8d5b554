"""
Region Sampler

Turns landmark groups into pixel sample sets for skin, hair and eyes.

Polygons are rasterized by testing every pixel of the polygon's bounding box
with ray casting, O(area x vertices) per polygon.
"""
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from facecolor.services.detection import FaceDetection, Point


EMPTY_SAMPLES = np.empty((0, 3), dtype=np.uint8)


@dataclass(frozen=True)
class RegionParams:
    """Geometry constants for region derivation, as fractions of face size."""
    skin_patch_radius: float = 0.08      # of face width
    forehead_offset: float = 0.12        # of face height, above brow line
    forehead_aspect: float = 1.6         # forehead patch is wider than tall
    hair_height: float = 0.6             # of face height, above brow line
    hair_side_margin: float = 0.15       # of face width, each side
    eye_shrink: float = 0.6              # eye polygon scale toward centroid
    patch_sides: int = 6


DEFAULT_REGION_PARAMS = RegionParams()


@dataclass(frozen=True)
class RegionSamples:
    """Raw (N, 3) RGB samples per feature region."""
    skin: np.ndarray
    hair: np.ndarray
    eyes: np.ndarray


@dataclass(frozen=True)
class FaceGeometry:
    """Coarse face frame derived from landmarks, falling back to the bbox."""
    left: float
    right: float
    brow_top: float
    jaw_bottom: float
    
    @property
    def width(self) -> float:
        return self.right - self.left
    
    @property
    def height(self) -> float:
        return self.jaw_bottom - self.brow_top


def centroid(points: Sequence[Point]) -> Point:
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return sum(xs) / len(xs), sum(ys) / len(ys)


def points_in_polygon(xs: np.ndarray, ys: np.ndarray, polygon: Sequence[Point]) -> np.ndarray:
    """
    Vectorized ray-casting point-in-polygon test.
    
    Args:
        xs, ys: Arrays of point coordinates (same shape)
        polygon: Ordered polygon vertices
        
    Returns:
        Boolean array, True where the point lies inside
    """
    inside = np.zeros(xs.shape, dtype=bool)
    n = len(polygon)
    if n < 3:
        return inside
    
    j = n - 1
    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]
        crosses = (yi > ys) != (yj > ys)
        if yj != yi:
            x_intersect = (xj - xi) * (ys - yi) / (yj - yi) + xi
            inside ^= crosses & (xs < x_intersect)
        j = i
    return inside


def _clamped_bounds(min_x: float, min_y: float, max_x: float, max_y: float,
                    width: int, height: int) -> Optional[Tuple[int, int, int, int]]:
    """Integer pixel bounds clamped to the image, or None if nothing remains."""
    x0 = max(0, int(math.floor(min_x)))
    y0 = max(0, int(math.floor(min_y)))
    x1 = min(width - 1, int(math.ceil(max_x)))
    y1 = min(height - 1, int(math.ceil(max_y)))
    if x1 < x0 or y1 < y0:
        return None
    return x0, y0, x1, y1


def rasterize_polygon(image: np.ndarray, polygon: Sequence[Point]) -> np.ndarray:
    """
    Collect the pixels of image inside polygon.
    
    A polygon whose bounding box has non-positive width or height, or that
    lies entirely outside the image, yields an empty sample set.
    """
    if len(polygon) < 3:
        return EMPTY_SAMPLES
    
    xs_poly = [p[0] for p in polygon]
    ys_poly = [p[1] for p in polygon]
    if max(xs_poly) - min(xs_poly) <= 0 or max(ys_poly) - min(ys_poly) <= 0:
        return EMPTY_SAMPLES
    
    height, width = image.shape[:2]
    bounds = _clamped_bounds(min(xs_poly), min(ys_poly), max(xs_poly), max(ys_poly), width, height)
    if bounds is None:
        return EMPTY_SAMPLES
    x0, y0, x1, y1 = bounds
    
    grid_y, grid_x = np.mgrid[y0:y1 + 1, x0:x1 + 1]
    mask = points_in_polygon(grid_x.astype(np.float64), grid_y.astype(np.float64), polygon)
    if not mask.any():
        return EMPTY_SAMPLES
    
    return image[y0:y1 + 1, x0:x1 + 1][mask].reshape(-1, 3)


def sample_rectangle(image: np.ndarray, x0: float, y0: float, x1: float, y1: float) -> np.ndarray:
    """Pixels of an axis-aligned rectangle, clamped to the image."""
    if x1 - x0 <= 0 or y1 - y0 <= 0:
        return EMPTY_SAMPLES
    
    height, width = image.shape[:2]
    bounds = _clamped_bounds(x0, y0, x1, y1, width, height)
    if bounds is None:
        return EMPTY_SAMPLES
    cx0, cy0, cx1, cy1 = bounds
    return image[cy0:cy1 + 1, cx0:cx1 + 1].reshape(-1, 3)


def elliptical_patch(center: Point, radius_x: float, radius_y: float, sides: int = 6) -> List[Point]:
    """Regular polygon approximating an ellipse around center."""
    cx, cy = center
    return [
        (cx + radius_x * math.cos(2 * math.pi * k / sides),
         cy + radius_y * math.sin(2 * math.pi * k / sides))
        for k in range(sides)
    ]


def shrink_polygon(points: Sequence[Point], factor: float) -> List[Point]:
    """Scale polygon vertices toward their centroid."""
    if not points:
        return []
    cx, cy = centroid(points)
    return [(cx + (x - cx) * factor, cy + (y - cy) * factor) for x, y in points]


def face_geometry(detection: FaceDetection) -> FaceGeometry:
    """Derive the face frame from jaw and brow landmarks."""
    bx, by, bw, bh = detection.bbox
    jaw = detection.group("jaw")
    brows = detection.group("left_eyebrow") + detection.group("right_eyebrow")
    
    left = min(p[0] for p in jaw) if jaw else bx
    right = max(p[0] for p in jaw) if jaw else bx + bw
    brow_top = min(p[1] for p in brows) if brows else by
    jaw_bottom = max(p[1] for p in jaw) if jaw else by + bh
    return FaceGeometry(left=left, right=right, brow_top=brow_top, jaw_bottom=jaw_bottom)


def skin_patches(detection: FaceDetection, geometry: FaceGeometry,
                 params: RegionParams = DEFAULT_REGION_PARAMS) -> List[List[Point]]:
    """Small polygons anchored on cheeks, forehead and chin."""
    radius = max(geometry.width, 0.0) * params.skin_patch_radius
    if radius <= 0:
        return []
    
    patches = []
    nose = detection.group("nose")
    nose_y = centroid(nose)[1] if nose else geometry.brow_top + geometry.height * 0.45
    
    # Cheeks: below each eye, at nose height
    for eye_name in ("left_eye", "right_eye"):
        eye = detection.group(eye_name)
        if eye:
            patches.append(elliptical_patch((centroid(eye)[0], nose_y), radius, radius, params.patch_sides))
    
    # Forehead: above the brow midpoint
    brows = detection.group("left_eyebrow") + detection.group("right_eyebrow")
    if brows:
        forehead = (centroid(brows)[0], geometry.brow_top - geometry.height * params.forehead_offset)
        patches.append(elliptical_patch(
            forehead, radius * params.forehead_aspect, radius, params.patch_sides
        ))
    
    # Chin: between lower lip and jaw bottom
    mouth = detection.group("mouth")
    jaw = detection.group("jaw")
    if mouth and jaw:
        chin_x = max(jaw, key=lambda p: p[1])[0]
        mouth_bottom = max(p[1] for p in mouth)
        patches.append(elliptical_patch(
            (chin_x, (mouth_bottom + geometry.jaw_bottom) / 2.0), radius, radius * 0.7, params.patch_sides
        ))
    
    return patches


def sample_skin(image: np.ndarray, detection: FaceDetection,
                params: RegionParams = DEFAULT_REGION_PARAMS) -> np.ndarray:
    geometry = face_geometry(detection)
    samples = [rasterize_polygon(image, patch) for patch in skin_patches(detection, geometry, params)]
    samples = [s for s in samples if len(s)]
    return np.concatenate(samples) if samples else EMPTY_SAMPLES


def hair_rectangle(geometry: FaceGeometry,
                   params: RegionParams = DEFAULT_REGION_PARAMS) -> Tuple[float, float, float, float]:
    """
    Rectangle above the brow line, wider than the face.
    
    There are no hair landmarks; updos, occlusions and absent hair are misread.
    """
    margin = geometry.width * params.hair_side_margin
    x0 = geometry.left - margin
    x1 = geometry.right + margin
    y1 = geometry.brow_top
    y0 = y1 - geometry.height * params.hair_height
    return x0, y0, x1, y1


def sample_hair(image: np.ndarray, detection: FaceDetection,
                params: RegionParams = DEFAULT_REGION_PARAMS) -> np.ndarray:
    geometry = face_geometry(detection)
    if geometry.width <= 0 or geometry.height <= 0:
        return EMPTY_SAMPLES
    return sample_rectangle(image, *hair_rectangle(geometry, params))


def sample_eyes(image: np.ndarray, detection: FaceDetection,
                params: RegionParams = DEFAULT_REGION_PARAMS) -> np.ndarray:
    """Iris-biased samples: each eye polygon shrunk toward its centroid."""
    samples = []
    for eye_name in ("left_eye", "right_eye"):
        eye = detection.group(eye_name)
        if len(eye) >= 3:
            pixels = rasterize_polygon(image, shrink_polygon(eye, params.eye_shrink))
            if len(pixels):
                samples.append(pixels)
    return np.concatenate(samples) if samples else EMPTY_SAMPLES


def sample_regions(image: np.ndarray, detection: FaceDetection,
                   params: RegionParams = DEFAULT_REGION_PARAMS) -> RegionSamples:
    """Sample all three feature regions for one detection."""
    regions = RegionSamples(
        skin=sample_skin(image, detection, params),
        hair=sample_hair(image, detection, params),
        eyes=sample_eyes(image, detection, params),
    )
    logger.debug(
        f"Sampled regions: skin={len(regions.skin)}, hair={len(regions.hair)}, eyes={len(regions.eyes)}"
    )
    return regions
