"""Value models exchanged across the ingestion boundary."""

from pywaterflow.models.reading import SensorReading

__all__ = ["SensorReading"]
