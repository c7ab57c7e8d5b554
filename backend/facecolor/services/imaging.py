"""
Facial Color Imaging Utilities
Handles image input reading, decoding and downscaling.
"""
import io
import math
from pathlib import Path
from typing import BinaryIO, Tuple, Union

import cv2
import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from facecolor.errors import DecodeFailureError


ImageInput = Union[bytes, bytearray, memoryview, str, Path, BinaryIO]


def read_image_bytes(image_input: ImageInput) -> bytes:
    """
    Read raw bytes from an in-memory blob, a file path or a file-like object.
    
    Args:
        image_input: bytes-like blob, filesystem path, or object with read()
        
    Returns:
        Raw image bytes
        
    Raises:
        DecodeFailureError: If the input cannot be read or is empty
    """
    if isinstance(image_input, (bytes, bytearray, memoryview)):
        raw = bytes(image_input)
    elif isinstance(image_input, (str, Path)):
        try:
            raw = Path(image_input).read_bytes()
        except OSError as e:
            raise DecodeFailureError(f"Failed to read image file: {e}") from e
    elif hasattr(image_input, "read"):
        try:
            raw = image_input.read()
        except (OSError, ValueError) as e:
            raise DecodeFailureError(f"Failed to read image stream: {e}") from e
        if not isinstance(raw, (bytes, bytearray)):
            raise DecodeFailureError("Image stream did not return bytes")
        raw = bytes(raw)
    else:
        raise DecodeFailureError(f"Unsupported image input type: {type(image_input).__name__}")
    
    if not raw:
        raise DecodeFailureError("Empty image data")
    return raw


def decode_image(raw: bytes) -> np.ndarray:
    """
    Decode raw bytes to an RGB uint8 array (H, W, 3).
    
    EXIF orientation is applied so landmarks line up with what a viewer sees.
    
    Raises:
        DecodeFailureError: For unreadable or corrupt image data
    """
    try:
        pil_image = Image.open(io.BytesIO(raw))
        pil_image.load()
        pil_image = ImageOps.exif_transpose(pil_image)
        
        if pil_image.mode != 'RGB':
            pil_image = pil_image.convert('RGB')
        
        rgb_array = np.array(pil_image, dtype=np.uint8)
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeFailureError(f"Failed to decode image: {e}") from e
    
    if rgb_array.ndim != 3 or rgb_array.shape[0] == 0 or rgb_array.shape[1] == 0:
        raise DecodeFailureError("Decoded image has no pixels")
    
    return rgb_array


def calculate_optimal_dimensions(width: int, height: int, max_pixels: int) -> Tuple[int, int]:
    """
    Compute dimensions preserving aspect ratio with width * height <= max_pixels.
    
    Returns:
        Tuple of (width, height); unchanged if already within budget
    """
    current_pixels = width * height
    if current_pixels <= max_pixels:
        return width, height
    
    scale = math.sqrt(max_pixels / current_pixels)
    new_width = max(1, int(width * scale))
    new_height = max(1, int(height * scale))
    return new_width, new_height


def downscale_to_pixel_budget(img_rgb: np.ndarray, max_pixels: int) -> np.ndarray:
    """
    Resize an image so its total pixel count stays under max_pixels.
    
    Args:
        img_rgb: Input image (H, W, 3)
        max_pixels: Pixel ceiling
        
    Returns:
        Resized image, or the input unchanged when already small enough
    """
    height, width = img_rgb.shape[:2]
    new_width, new_height = calculate_optimal_dimensions(width, height, max_pixels)
    
    if (new_width, new_height) == (width, height):
        return img_rgb
    
    # Use INTER_AREA for downscaling (better quality)
    return cv2.resize(img_rgb, (new_width, new_height), interpolation=cv2.INTER_AREA)


def load_image(image_input: ImageInput, max_pixels: int) -> np.ndarray:
    """Read, decode and downscale an image input in one step."""
    return downscale_to_pixel_budget(decode_image(read_image_bytes(image_input)), max_pixels)
