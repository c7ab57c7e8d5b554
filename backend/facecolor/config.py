"""
What2Wear Facial Color Configuration
Manages environment variables and defaults for the facial color analysis service.
"""
import os
from typing import Literal


class Config:
    """Configuration class for facial color analysis."""
    
    # Upload limits
    MAX_FILE_MB: int = int(os.environ.get("FACECOLOR_MAX_FILE_MB", "10"))
    
    # Performance layer
    ENABLE_CACHING: bool = bool(int(os.environ.get("FACECOLOR_ENABLE_CACHING", "1")))
    USE_BACKGROUND: bool = bool(int(os.environ.get("FACECOLOR_USE_BACKGROUND", "1")))
    MAX_IMAGE_PIXELS: int = int(os.environ.get("FACECOLOR_MAX_IMAGE_PIXELS", str(800 * 600)))
    WORKERS: int = int(os.environ.get("FACECOLOR_WORKERS", "2"))
    TIMEOUT_MS: int = int(os.environ.get("FACECOLOR_TIMEOUT_MS", "30000"))
    
    # Cache
    CACHE_TTL: int = int(os.environ.get("FACECOLOR_CACHE_TTL", "86400"))  # 24 hours
    CACHE_MAX_SIZE: int = int(os.environ.get("FACECOLOR_CACHE_MAX_SIZE", "100"))
    
    # Batch mode
    BATCH_SIZE: int = int(os.environ.get("FACECOLOR_BATCH_SIZE", "3"))
    BATCH_PAUSE_MS: int = int(os.environ.get("FACECOLOR_BATCH_PAUSE_MS", "100"))
    
    # Quick colors fast path
    QUICK_PALETTE_SIZE: int = int(os.environ.get("FACECOLOR_QUICK_PALETTE_SIZE", "8"))
    QUICK_MAX_PIXELS: int = int(os.environ.get("FACECOLOR_QUICK_MAX_PIXELS", str(400 * 300)))
    
    # Face detector
    DETECTOR_MODEL: Literal["hog", "cnn"] = os.environ.get("FACECOLOR_DETECTOR_MODEL", "hog")
    
    # Logging
    LOG_LEVEL: str = os.environ.get("FACECOLOR_LOG_LEVEL", "INFO")
    LOG_JSON: bool = bool(int(os.environ.get("FACECOLOR_LOG_JSON", "0")))
    
    # Supported image formats
    SUPPORTED_MIME_TYPES = ["image/jpeg", "image/png", "image/webp"]
    
    @classmethod
    def validate_palette_size(cls, count: int) -> bool:
        """Validate quick palette size."""
        return 1 <= count <= 24
    
    @classmethod
    def validate_max_pixels(cls, max_pixels: int) -> bool:
        """Validate downscaling pixel ceiling."""
        return 10_000 <= max_pixels <= 20_000_000
    
    @classmethod
    def validate_timeout_ms(cls, timeout_ms: int) -> bool:
        """Validate per-call timeout."""
        return 100 <= timeout_ms <= 120_000
    
    @classmethod
    def validate_detector_model(cls, model: str) -> bool:
        """Validate face detector model name."""
        return model in ["hog", "cnn"]


# Global config instance
config = Config()
