"""
Facial Colors Module

Region sampling, plausibility filtering, deterministic dominant color
extraction and categorical classification for skin, hair and eyes.
"""
