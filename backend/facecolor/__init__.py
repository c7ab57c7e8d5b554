"""
What2Wear Facial Color Analysis

Portrait color analysis: skin tone, hair color and eye color with
confidence scoring, caching and a quick-colors fast path.
"""

__version__ = "1.0.0"
