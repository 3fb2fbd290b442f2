"""
Air quality analysis over hourly AirNow-style readings (2020 fire season data).

Input format (13 columns, one reading per line):
latitude,longitude,datetime,parameter,value,unit,raw_concentration,
aqi,aqi_category,site_name,agency_name,site_id,full_site_id

Header lines fail numeric conversion and are skipped like any other
malformed line.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Tuple

from tablereduce.common.schema import FieldSpec, Schema, to_float, to_int
from tablereduce.config import EngineConfig
from tablereduce.coordinator.engine import AnalyticsEngine, LoadReport, QueryKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AirQualityRecord:
    """One hourly reading at one monitoring site"""
    latitude: float
    longitude: float
    datetime: str
    parameter: str
    value: float
    unit: str
    raw_concentration: float
    aqi: int
    aqi_category: int
    site_name: str
    agency_name: str
    site_id: str
    full_site_id: str

    @property
    def date(self) -> str:
        """YYYY-MM-DD part of the timestamp"""
        return self.datetime[:10]

    @property
    def hour(self) -> int:
        return int(self.datetime[11:13])


AIR_QUALITY_SCHEMA = Schema(
    name='airnow-hourly',
    row_type=AirQualityRecord,
    fields=(
        FieldSpec('latitude', 0, to_float),
        FieldSpec('longitude', 1, to_float),
        FieldSpec('datetime', 2),
        FieldSpec('parameter', 3),
        FieldSpec('value', 4, to_float),
        FieldSpec('unit', 5),
        FieldSpec('raw_concentration', 6, to_float),
        FieldSpec('aqi', 7, to_int),
        FieldSpec('aqi_category', 8, to_int),
        FieldSpec('site_name', 9),
        FieldSpec('agency_name', 10),
        FieldSpec('site_id', 11),
        FieldSpec('full_site_id', 12),
    ),
    min_columns=13,
)


@dataclass(frozen=True)
class DataStatistics:
    """Summary of a loaded air quality table"""
    total_records: int
    first_date: Optional[str]
    last_date: Optional[str]
    min_aqi: Optional[int]
    max_aqi: Optional[int]
    unique_dates: int
    parameter_counts: Tuple[Tuple[str, int], ...]


def _date(record: AirQualityRecord) -> str:
    return record.date


def _aqi(record: AirQualityRecord) -> int:
    return record.aqi


def _stats_identity():
    return {'parameters': Counter(), 'dates': Counter(), 'min': None, 'max': None}


def _stats_per_row(partial, record: AirQualityRecord):
    partial['parameters'][record.parameter] += 1
    partial['dates'][record.date] += 1
    if partial['min'] is None or record.aqi < partial['min']:
        partial['min'] = record.aqi
    if partial['max'] is None or record.aqi > partial['max']:
        partial['max'] = record.aqi
    return partial


def _stats_combine(a, b):
    lows = [v for v in (a['min'], b['min']) if v is not None]
    highs = [v for v in (a['max'], b['max']) if v is not None]
    return {
        'parameters': a['parameters'] + b['parameters'],
        'dates': a['dates'] + b['dates'],
        'min': min(lows) if lows else None,
        'max': max(highs) if highs else None,
    }


class AirQualityAnalyzer:
    """Air quality queries backed by the partitioned engine"""

    def __init__(self, config: EngineConfig = None, engine: AnalyticsEngine = None):
        self.engine = engine or AnalyticsEngine(AIR_QUALITY_SCHEMA, config=config)

    def load_data(self, data_dir: str) -> LoadReport:
        """Load every .csv file under data_dir"""
        logger.info(f"Loading fire data from: {data_dir}")
        return self.engine.load_directory(data_dir)

    def get_aqi_data_for_date(self, target_date: str, use_parallel: bool = True) -> List[AirQualityRecord]:
        result = self.engine.run_query(
            QueryKind.EXACT_MATCH, serial=not use_parallel, key_fn=_date, target=target_date,
        )
        logger.info(f"Found {len(result.value)} records for date: {target_date}")
        return list(result.value)

    def get_days_with_aqi_above(self, threshold: int) -> List[str]:
        """Dates whose highest AQI reading exceeds threshold, ascending"""
        result = self.engine.run_query(
            QueryKind.GROUPED_EXTREMUM, key_fn=_date, value_fn=_aqi, threshold=threshold,
        )
        return [date for date, _max_aqi in result.value]

    def get_average_aqi_for_date(self, target_date: str, use_parallel: bool = True) -> float:
        result = self.engine.run_query(
            QueryKind.SUM_AVERAGE, serial=not use_parallel,
            value_fn=lambda r: r.aqi if r.date == target_date else None,
        )
        return result.value.average

    def get_top_readings_above(self, threshold: int, top_k: int = 10,
                               use_parallel: bool = True) -> List[Tuple[str, int]]:
        """Highest AQI readings at or above threshold, labelled 'site @ datetime'"""
        if top_k <= 0:
            logger.warning(f"top_k must be positive, got {top_k}")
            return []
        result = self.engine.run_query(
            QueryKind.THRESHOLD_RANK, serial=not use_parallel,
            label_fn=lambda r: f"{r.site_name} @ {r.datetime}", value_fn=_aqi,
            threshold=threshold, top_k=top_k,
        )
        return list(result.value)

    def get_data_statistics(self, use_parallel: bool = True) -> DataStatistics:
        result = self.engine.run_query(
            QueryKind.CUSTOM, serial=not use_parallel,
            per_row_op=_stats_per_row, combine=_stats_combine, identity=_stats_identity,
        )
        stats = result.value
        dates = sorted(stats['dates'])
        return DataStatistics(
            total_records=self.engine.get_table_size(),
            first_date=dates[0] if dates else None,
            last_date=dates[-1] if dates else None,
            min_aqi=stats['min'],
            max_aqi=stats['max'],
            unique_dates=len(dates),
            parameter_counts=tuple(sorted(stats['parameters'].items())),
        )
