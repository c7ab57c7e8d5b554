"""
Facial Color Fingerprinting Utilities
Content hashing and cache key generation.
"""
import hashlib


def compute_sha256(image_bytes: bytes) -> str:
    """
    Compute SHA-256 hash of raw image bytes.
    
    Args:
        image_bytes: Raw image bytes
        
    Returns:
        SHA-256 hash as hex string
    """
    return hashlib.sha256(image_bytes).hexdigest()


def build_profile_cache_key(content_hash: str, max_pixels: int) -> str:
    """
    Cache key for a facial color profile.
    
    Keys depend only on image content and the resize target, never on
    filenames or URLs.
    """
    return f"profile:{content_hash}:{max_pixels}"


def split_profile_cache_key(key: str) -> str:
    """Return the content hash part of a profile cache key."""
    parts = key.split(":")
    if len(parts) != 3 or parts[0] != "profile":
        raise ValueError(f"Not a profile cache key: {key}")
    return parts[1]
