"""
Weather Station Backend

Read-only HTTP API over weather station telemetry stored in InfluxDB.
"""

__version__ = "1.0.0"
