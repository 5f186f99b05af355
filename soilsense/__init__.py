"""
Soil Probe Telemetry Pipeline

Fetches soil moisture and soil temperature readings from IrriMAX Live,
normalizes the CSV time series, and summarizes them per requested depth.
"""

__version__ = "1.0.0"
