"""Cleaning and the resampling engines."""
