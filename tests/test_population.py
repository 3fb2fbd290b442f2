"""
Tests for the world population analyzer
"""

import pytest

from tablereduce.config import EngineConfig
from tablereduce.coordinator.engine import AnalyticsEngine
from tablereduce.samples.population import (
    POPULATION_SCHEMA,
    PopulationAnalyzer,
    PopulationRecord,
)


@pytest.fixture
def analyzer(population_csv):
    analyzer = PopulationAnalyzer(config=EngineConfig(workers=3))
    analyzer.load_from_csv(population_csv)
    return analyzer


def record(code, populations):
    return PopulationRecord(code, code, 'Population, total', 'SP.POP.TOTL', populations)


class TestLoading:

    def test_only_population_rows_are_loaded(self, population_csv):
        analyzer = PopulationAnalyzer(config=EngineConfig(workers=2))
        row_count, warnings = analyzer.load_from_csv(population_csv)

        assert row_count == 3
        assert warnings == []
        assert analyzer.get_all_countries() == ['CHN', 'TUV', 'USA']

    def test_lookups(self, analyzer):
        assert analyzer.get_population('USA', 2020) == 150
        assert analyzer.get_population('USA', 1999) is None
        assert analyzer.get_population('XXX', 2020) is None
        assert analyzer.get_population_by_name('China', 2000) == 200
        assert analyzer.get_country_name('TUV') == 'Tuvalu'
        assert analyzer.get_country_name('XXX') == ''
        assert analyzer.get_country_population_history('USA') == {1960: 80, 2000: 100, 2020: 150}
        assert analyzer.get_country_count() == 3

    def test_available_years(self, analyzer):
        years = analyzer.get_available_years()
        assert years[0] == 1960
        assert years[-1] == 2023
        assert len(years) == 64

    def test_missing_file(self, temp_dir):
        analyzer = PopulationAnalyzer()
        row_count, warnings = analyzer.load_from_csv(f"{temp_dir}/absent.csv")

        assert row_count == 0
        assert len(warnings) == 1
        assert analyzer.get_top_countries_by_population(2020) == []


class TestQueries:

    @pytest.mark.parametrize("use_parallel", [True, False])
    def test_top_countries(self, analyzer, use_parallel):
        assert analyzer.get_top_countries_by_population(2020, 2, use_parallel) == [('CHN', 180), ('USA', 150)]

    def test_top_countries_skips_missing_years(self, analyzer):
        assert analyzer.get_top_countries_by_population(1960) == [('CHN', 120), ('USA', 80)]

    def test_growth_rate_scenario(self, analyzer):
        assert analyzer.calculate_country_growth_rates(2000, 2020) == [('USA', 50.0), ('CHN', -10.0)]

    def test_global_growth(self, analyzer):
        # (150 + 180 + 11) vs (80 + 120)
        assert analyzer.calculate_global_population_growth(1960, 2020) == pytest.approx(70.5)

    def test_world_population(self, analyzer):
        assert analyzer.calculate_total_world_population(2020) == 341
        assert analyzer.calculate_total_world_population(2020, use_parallel=False) == 341

    def test_countries_above_threshold(self, analyzer):
        assert analyzer.find_countries_with_population_above(150, 2020) == [('CHN', 180), ('USA', 150)]
        assert analyzer.find_countries_with_population_above(1000, 2020) == []

    @pytest.mark.parametrize("year", [1959, 2024])
    def test_out_of_range_year_returns_empty(self, analyzer, year):
        assert analyzer.get_top_countries_by_population(year) == []
        assert analyzer.calculate_total_world_population(year) == 0
        assert analyzer.calculate_global_population_growth(1960, year) == 0.0
        assert analyzer.calculate_country_growth_rates(1960, year) == []
        assert analyzer.find_countries_with_population_above(0, year) == []

    def test_non_positive_top_n(self, analyzer):
        assert analyzer.get_top_countries_by_population(2020, 0) == []

    def test_comprehensive_analysis_matches_between_modes(self, analyzer):
        parallel = analyzer.comprehensive_analysis(use_parallel=True, year=2020, base_year=2000)
        serial = analyzer.comprehensive_analysis(use_parallel=False, year=2020, base_year=2000)

        assert parallel == serial
        assert parallel['countries_loaded'] == 3
        assert parallel['world_population'] == 341
        assert parallel['top_growth_rates'] == [('USA', 50.0), ('CHN', -10.0)]
        assert parallel['large_countries'] == []


class TestPrebuiltRows:

    def test_analyzer_over_rows_loaded_in_memory(self):
        engine = AnalyticsEngine(POPULATION_SCHEMA, config=EngineConfig(workers=2))
        engine.load_rows([
            record('USA', {2000: 100, 2020: 150}),
            record('CHN', {2000: 200, 2020: 180}),
        ])
        analyzer = PopulationAnalyzer(engine=engine)

        assert analyzer.get_country_count() == 2
        assert analyzer.calculate_country_growth_rates(2000, 2020) == [('USA', 50.0), ('CHN', -10.0)]
