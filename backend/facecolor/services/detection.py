"""
Face detection contract and detector service.

The core does not detect faces itself. It consumes a single detection with
landmark points grouped by anatomical region, produced by a FaceDetector.
DetectorService owns the one-time model initialization.
"""
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from facecolor.errors import ModelUnavailableError


Point = Tuple[float, float]

LANDMARK_GROUPS = (
    "jaw", "left_eyebrow", "right_eyebrow", "nose", "left_eye", "right_eye", "mouth"
)


@dataclass(frozen=True)
class FaceDetection:
    """One detected face: bounding box (x, y, w, h) plus landmark groups."""
    bbox: Tuple[float, float, float, float]
    landmarks: Dict[str, List[Point]]
    score: float = 1.0
    
    def group(self, name: str) -> List[Point]:
        """Landmark points for a group, empty if the detector did not supply it."""
        return list(self.landmarks.get(name, []))


@dataclass(frozen=True)
class InitializationResult:
    """Outcome of the one-time detector initialization."""
    success: bool
    detector: str
    error: Optional[str] = None
    models_loaded: List[str] = field(default_factory=list)


class FaceDetector(ABC):
    """Abstract face detector consumed by the analysis pipeline."""
    
    name: str = "detector"
    
    @abstractmethod
    def load(self) -> List[str]:
        """Load model weights; returns names of loaded models. May raise."""
        pass
    
    @abstractmethod
    def detect(self, image_rgb: np.ndarray) -> Optional[FaceDetection]:
        """Return at most one face, or None when no face is found."""
        pass


class FaceRecognitionDetector(FaceDetector):
    """dlib 68-point landmark detector via the face_recognition library."""
    
    name = "face_recognition"
    
    # face_recognition group names -> core landmark groups
    GROUP_MAP = {
        "chin": "jaw",
        "left_eyebrow": "left_eyebrow",
        "right_eyebrow": "right_eyebrow",
        "nose_bridge": "nose",
        "nose_tip": "nose",
        "left_eye": "left_eye",
        "right_eye": "right_eye",
        "top_lip": "mouth",
        "bottom_lip": "mouth",
    }
    
    def __init__(self, model: str = "hog", upsample: int = 1):
        self.model = model
        self.upsample = upsample
        self._fr = None
    
    def load(self) -> List[str]:
        import face_recognition
        self._fr = face_recognition
        return [f"face_detector_{self.model}", "shape_predictor_68_face_landmarks"]
    
    def detect(self, image_rgb: np.ndarray) -> Optional[FaceDetection]:
        if self._fr is None:
            raise ModelUnavailableError("face_recognition detector used before load()")
        
        image = np.ascontiguousarray(image_rgb)
        locations = self._fr.face_locations(
            image, number_of_times_to_upsample=self.upsample, model=self.model
        )
        if not locations:
            return None
        
        # Keep the largest face
        top, right, bottom, left = max(
            locations, key=lambda loc: (loc[2] - loc[0]) * (loc[1] - loc[3])
        )
        landmark_sets = self._fr.face_landmarks(
            image, face_locations=[(top, right, bottom, left)], model="large"
        )
        if not landmark_sets:
            return None
        
        return FaceDetection(
            bbox=(float(left), float(top), float(right - left), float(bottom - top)),
            landmarks=self.map_landmarks(landmark_sets[0]),
        )
    
    @classmethod
    def map_landmarks(cls, raw: Dict[str, Sequence[Tuple[int, int]]]) -> Dict[str, List[Point]]:
        """Map face_recognition landmark names onto the core groups, preserving order."""
        groups: Dict[str, List[Point]] = {}
        for source, target in cls.GROUP_MAP.items():
            points = raw.get(source, [])
            groups.setdefault(target, []).extend((float(x), float(y)) for x, y in points)
        return groups


class DetectorService:
    """
    Wraps a FaceDetector with a lock-guarded, memoized initialization step.
    
    The service is constructed explicitly and injected into the pipeline.
    After initialization the detector is treated as read-only.
    """
    
    def __init__(self, detector: FaceDetector):
        self.detector = detector
        self._lock = threading.Lock()
        self._result: Optional[InitializationResult] = None
    
    @property
    def initialized(self) -> bool:
        return self._result is not None and self._result.success
    
    def initialize(self) -> InitializationResult:
        """Load the detector once; repeat calls return the first outcome."""
        if self._result is not None:
            return self._result
        
        with self._lock:
            if self._result is not None:
                return self._result
            
            try:
                models = self.detector.load()
                self._result = InitializationResult(
                    success=True, detector=self.detector.name, models_loaded=list(models)
                )
                logger.info(f"Face detector '{self.detector.name}' initialized: {models}")
            except Exception as e:
                self._result = InitializationResult(
                    success=False, detector=self.detector.name, error=str(e)
                )
                logger.error(f"Face detector '{self.detector.name}' failed to initialize: {e}")
        
        return self._result
    
    def detect(self, image_rgb: np.ndarray) -> Optional[FaceDetection]:
        """
        Run detection after ensuring initialization.
        
        Raises:
            ModelUnavailableError: If the detector could not be initialized
        """
        result = self.initialize()
        if not result.success:
            raise ModelUnavailableError(result.error or "Face detector unavailable")
        return self.detector.detect(image_rgb)
