"""
Sample user schema for the `load` command.

Input format: temperature,humidity,pressure (one measurement per line),
with an optional 'Temperature,...' header line.

Usage:
    tablereduce load --schema examples/weather_schema.py readings.csv
"""

from dataclasses import dataclass

from tablereduce.common.schema import FieldSpec, Schema, to_float


@dataclass(frozen=True)
class WeatherReading:
    temperature: float
    humidity: float
    pressure: float


SCHEMA = Schema(
    name='weather',
    row_type=WeatherReading,
    fields=(
        FieldSpec('temperature', 0, to_float),
        FieldSpec('humidity', 1, to_float),
        FieldSpec('pressure', 2, to_float),
    ),
    min_columns=3,
    skip_markers=('Temperature',),
)


def average_temperature(engine) -> float:
    """Mean temperature over a loaded engine"""
    from tablereduce.coordinator.engine import QueryKind

    result = engine.run_query(QueryKind.SUM_AVERAGE, value_fn=lambda r: r.temperature)
    return result.value.average
