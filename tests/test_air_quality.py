"""
Tests for the air quality analyzer
"""

import pytest

from tablereduce.config import EngineConfig
from tablereduce.samples.air_quality import AirQualityAnalyzer


@pytest.fixture
def analyzer(air_quality_dir):
    analyzer = AirQualityAnalyzer(config=EngineConfig(workers=2, backend='thread'))
    analyzer.load_data(air_quality_dir)
    return analyzer


class TestAirQualityAnalyzer:

    def test_load_skips_headers_and_malformed_lines(self, air_quality_dir):
        analyzer = AirQualityAnalyzer(config=EngineConfig(workers=2))
        row_count, warnings = analyzer.load_data(air_quality_dir)

        assert row_count == 5
        assert warnings == []

    def test_quoted_site_name_is_one_field(self, analyzer):
        records = analyzer.get_aqi_data_for_date('2020-08-16')
        assert sorted(r.site_name for r in records) == ['Fresno, CA', 'Visalia, CA']
        assert all(r.full_site_id == '840060190011' for r in records)

    @pytest.mark.parametrize("use_parallel", [True, False])
    def test_records_for_date(self, analyzer, use_parallel):
        records = analyzer.get_aqi_data_for_date('2020-08-15', use_parallel=use_parallel)
        assert sorted(r.aqi for r in records) == [40, 100, 160]
        assert analyzer.get_aqi_data_for_date('2021-01-01') == []

    def test_record_properties(self, analyzer):
        record = analyzer.get_aqi_data_for_date('2020-08-16')[0]
        assert record.date == '2020-08-16'
        assert record.hour == 1

    def test_days_above_threshold(self, analyzer):
        assert analyzer.get_days_with_aqi_above(100) == ['2020-08-15']
        assert analyzer.get_days_with_aqi_above(10) == ['2020-08-15', '2020-08-16']
        assert analyzer.get_days_with_aqi_above(500) == []

    def test_average_for_date(self, analyzer):
        assert analyzer.get_average_aqi_for_date('2020-08-15') == pytest.approx(100.0)
        assert analyzer.get_average_aqi_for_date('2020-08-16', use_parallel=False) == pytest.approx(70.0)
        assert analyzer.get_average_aqi_for_date('1999-01-01') == 0.0

    def test_top_readings(self, analyzer):
        assert analyzer.get_top_readings_above(100) == [
            ('Visalia, CA @ 2020-08-15T01:00', 160),
            ('Fresno, CA @ 2020-08-15T02:00', 100),
        ]
        assert analyzer.get_top_readings_above(0, top_k=1) == [('Visalia, CA @ 2020-08-15T01:00', 160)]
        assert analyzer.get_top_readings_above(0, top_k=0) == []

    def test_statistics(self, analyzer):
        stats = analyzer.get_data_statistics()

        assert stats.total_records == 5
        assert stats.first_date == '2020-08-15'
        assert stats.last_date == '2020-08-16'
        assert (stats.min_aqi, stats.max_aqi) == (40, 160)
        assert stats.unique_dates == 2
        assert stats.parameter_counts == (('OZONE', 1), ('PM2.5', 4))
        assert analyzer.get_data_statistics(use_parallel=False) == stats

    def test_missing_directory(self, temp_dir):
        analyzer = AirQualityAnalyzer()
        row_count, warnings = analyzer.load_data(f"{temp_dir}/missing")

        assert row_count == 0
        assert len(warnings) == 1
        stats = analyzer.get_data_statistics()
        assert stats.total_records == 0
        assert stats.first_date is None
        assert stats.max_aqi is None
