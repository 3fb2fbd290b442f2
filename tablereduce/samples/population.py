"""
World population analysis over the World Bank "Population, total" CSV.

Input format: Country Name, Country Code, Indicator Name, Indicator Code,
then one column per year from 1960 to 2023. Years without a positive count
are left out of a country's series.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from tablereduce.common.schema import FieldSpec, Schema, to_positive_int_or_none
from tablereduce.config import EngineConfig
from tablereduce.coordinator.engine import AnalyticsEngine, LoadReport, QueryKind

logger = logging.getLogger(__name__)

FIRST_YEAR = 1960
LAST_YEAR = 2023
METADATA_COLUMNS = 4
POPULATION_INDICATOR = 'Population, total'


@dataclass(frozen=True)
class PopulationRecord:
    """One country's population series"""
    country_name: str
    country_code: str
    indicator_name: str
    indicator_code: str
    populations: Mapping[int, int]

    def population(self, year: int) -> Optional[int]:
        return self.populations.get(year)


def _year_series(fields: List[str]) -> Dict[str, Mapping[int, int]]:
    series = {}
    for offset, year in enumerate(range(FIRST_YEAR, LAST_YEAR + 1)):
        value = to_positive_int_or_none(fields[METADATA_COLUMNS + offset])
        if value is not None:
            series[year] = value
    return {'populations': MappingProxyType(series)}


POPULATION_SCHEMA = Schema(
    name='world-bank-population',
    row_type=PopulationRecord,
    fields=(
        FieldSpec('country_name', 0),
        FieldSpec('country_code', 1),
        FieldSpec('indicator_name', 2),
        FieldSpec('indicator_code', 3),
    ),
    min_columns=METADATA_COLUMNS + (LAST_YEAR - FIRST_YEAR + 1),
    skip_markers=('Data Source', 'Last Updated Date', 'Country Name'),
    accept=lambda fields: fields[2] == POPULATION_INDICATOR,
    derive=_year_series,
)


def _code(record: PopulationRecord) -> str:
    return record.country_code


def _lookup(record: PopulationRecord, year: int) -> Optional[int]:
    return record.populations.get(year)


class PopulationAnalyzer:
    """Population queries backed by the partitioned engine"""

    def __init__(self, config: EngineConfig = None, engine: AnalyticsEngine = None):
        self.engine = engine or AnalyticsEngine(POPULATION_SCHEMA, config=config)
        self._by_code: Dict[str, PopulationRecord] = {}

    def load_from_csv(self, filename: str) -> LoadReport:
        report = self.engine.load_from_files([filename])
        self._build_index()
        logger.info(f"Loaded data for {self.get_country_count()} countries")
        return report

    def _build_index(self):
        # A country code seen twice keeps its last series, as a keyed map would
        self._by_code = {record.country_code: record for record in self.engine.table}

    def _index(self) -> Dict[str, PopulationRecord]:
        if not self._by_code and self.engine.get_table_size():
            self._build_index()
        return self._by_code

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_population(self, country_code: str, year: int) -> Optional[int]:
        record = self._index().get(country_code)
        return record.population(year) if record else None

    def get_population_by_name(self, country_name: str, year: int) -> Optional[int]:
        for record in self._index().values():
            if record.country_name == country_name:
                return record.population(year)
        return None

    def get_available_years(self) -> List[int]:
        return list(range(FIRST_YEAR, LAST_YEAR + 1))

    def get_country_name(self, country_code: str) -> str:
        record = self._index().get(country_code)
        return record.country_name if record else ''

    def get_all_countries(self) -> List[str]:
        return sorted(self._index())

    def get_country_population_history(self, country_code: str) -> Dict[int, int]:
        record = self._index().get(country_code)
        return dict(record.populations) if record else {}

    def get_country_count(self) -> int:
        return len(self._index())

    # ------------------------------------------------------------------
    # Partitioned queries
    # ------------------------------------------------------------------

    def _valid_year(self, year: int) -> bool:
        if FIRST_YEAR <= year <= LAST_YEAR:
            return True
        logger.warning(f"Year {year} outside {FIRST_YEAR}-{LAST_YEAR}")
        return False

    def get_top_countries_by_population(self, year: int, top_n: int = 10,
                                        use_parallel: bool = True) -> List[Tuple[str, int]]:
        if top_n <= 0 or not self._valid_year(year):
            return []
        result = self.engine.run_query(
            QueryKind.THRESHOLD_RANK, serial=not use_parallel,
            label_fn=_code, value_fn=lambda r: _lookup(r, year),
            threshold=0, inclusive=False, top_k=top_n,
        )
        return list(result.value)

    def calculate_global_population_growth(self, start_year: int, end_year: int,
                                           use_parallel: bool = True) -> float:
        """Percentage change of the summed population between two years"""
        if not (self._valid_year(start_year) and self._valid_year(end_year)):
            return 0.0

        def per_row(partial, record):
            return (partial[0] + record.populations.get(start_year, 0),
                    partial[1] + record.populations.get(end_year, 0))

        result = self.engine.run_query(
            QueryKind.CUSTOM, serial=not use_parallel,
            per_row_op=per_row,
            combine=lambda a, b: (a[0] + b[0], a[1] + b[1]),
            identity=lambda: (0, 0),
        )
        start_population, end_population = result.value
        if start_population == 0:
            return 0.0
        return (end_population - start_population) / start_population * 100.0

    def calculate_country_growth_rates(self, start_year: int, end_year: int,
                                       use_parallel: bool = True) -> List[Tuple[str, float]]:
        if not (self._valid_year(start_year) and self._valid_year(end_year)):
            return []
        result = self.engine.run_query(
            QueryKind.GROWTH_RATES, serial=not use_parallel,
            label_fn=_code, lookup_fn=_lookup, start_key=start_year, end_key=end_year,
        )
        return list(result.value)

    def calculate_total_world_population(self, year: int, use_parallel: bool = True) -> int:
        if not self._valid_year(year):
            return 0
        result = self.engine.run_query(
            QueryKind.SUM_AVERAGE, serial=not use_parallel,
            value_fn=lambda r: _lookup(r, year),
        )
        return int(result.value.total)

    def find_countries_with_population_above(self, threshold: int, year: int,
                                             use_parallel: bool = True) -> List[Tuple[str, int]]:
        if not self._valid_year(year):
            return []
        result = self.engine.run_query(
            QueryKind.THRESHOLD_RANK, serial=not use_parallel,
            label_fn=_code, value_fn=lambda r: _lookup(r, year), threshold=threshold,
        )
        return list(result.value)

    def comprehensive_analysis(self, use_parallel: bool = True, year: int = 2020,
                               base_year: int = 1960, large_threshold: int = 100_000_000) -> dict:
        """Run the standard set of population queries in one go"""
        return {
            'countries_loaded': self.get_country_count(),
            'top_countries': self.get_top_countries_by_population(year, 10, use_parallel),
            'global_growth': self.calculate_global_population_growth(base_year, year, use_parallel),
            'large_countries': self.find_countries_with_population_above(large_threshold, year, use_parallel),
            'world_population': self.calculate_total_world_population(year, use_parallel),
            'top_growth_rates': self.calculate_country_growth_rates(base_year, year, use_parallel)[:5],
        }
