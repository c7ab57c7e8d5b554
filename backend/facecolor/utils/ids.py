"""
Facial Color Request ID Utilities
Generate request IDs used to correlate log lines.
"""
import uuid
from datetime import datetime


# Request kind -> ID prefix
REQUEST_PREFIXES = {
    "analyze": "fca",
    "batch": "fcb",
    "quick": "fcq",
}


def generate_request_id(kind: str = "analyze") -> str:
    """
    Generate a unique request ID, e.g. ``fca-20240101120000-1a2b3c4d``.
    
    Raises:
        ValueError: For an unknown request kind
    """
    if kind not in REQUEST_PREFIXES:
        raise ValueError(f"Unknown request kind: {kind}")
    timestamp = datetime.now().strftime("%Y%m%d%H%M%S")
    return f"{REQUEST_PREFIXES[kind]}-{timestamp}-{uuid.uuid4().hex[:8]}"
