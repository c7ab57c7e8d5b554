"""Facial color analysis services."""
