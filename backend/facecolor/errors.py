"""
Facial color analysis error taxonomy.

ModelUnavailableError, NoFaceDetectedError and InsufficientRegionSamplesError
are recovered inside the pipeline and turned into low-confidence answers.
DecodeFailureError and AnalysisTimeoutError reach the caller.
"""


class FacialAnalysisError(Exception):
    """Base class for facial color analysis errors."""
    pass


class ModelUnavailableError(FacialAnalysisError):
    """Face detector model failed to initialize."""
    pass


class NoFaceDetectedError(FacialAnalysisError):
    """Detector ran but found no face."""
    pass


class InsufficientRegionSamplesError(FacialAnalysisError):
    """Too few plausible pixels in a feature region."""
    
    def __init__(self, feature: str, found: int, required: int):
        self.feature = feature
        self.found = found
        self.required = required
        super().__init__(
            f"Insufficient {feature} samples: {found} < {required}"
        )


class DecodeFailureError(FacialAnalysisError):
    """Image bytes could not be read or decoded."""
    pass


class AnalysisTimeoutError(FacialAnalysisError):
    """Background analysis exceeded its time budget."""
    pass
