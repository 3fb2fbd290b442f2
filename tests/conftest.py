"""
Pytest configuration and shared fixtures
"""

import os
import shutil
import tempfile
from dataclasses import dataclass

import pytest

from tablereduce.common.schema import FieldSpec, Schema, to_int
from tablereduce.samples.population import FIRST_YEAR, LAST_YEAR


@dataclass(frozen=True)
class Reading:
    """Small row type used across engine tests"""
    site: str
    day: str
    value: int


READING_SCHEMA = Schema(
    name='reading',
    row_type=Reading,
    fields=(
        FieldSpec('site', 0),
        FieldSpec('day', 1),
        FieldSpec('value', 2, to_int),
    ),
    min_columns=3,
    skip_markers=('site,day,value',),
)


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def reading_schema():
    return READING_SCHEMA


@pytest.fixture
def readings():
    """Twenty in-memory rows with distinct values"""
    return [Reading(site=f"S{i % 4}", day=f"2020-08-{1 + i % 5:02d}", value=i * 10) for i in range(20)]


def population_line(name, code, values, indicator='Population, total'):
    """One World Bank style row with every year column present"""
    cells = [f'"{values[year]}"' if year in values else '""' for year in range(FIRST_YEAR, LAST_YEAR + 1)]
    return f'"{name}","{code}","{indicator}","SP.POP.TOTL",' + ','.join(cells) + ',\n'


@pytest.fixture
def population_csv(temp_dir):
    """Population file with metadata preamble, three countries and one other indicator row"""
    header_years = ','.join(f'"{year}"' for year in range(FIRST_YEAR, LAST_YEAR + 1))
    lines = [
        '"Data Source","World Development Indicators",\n',
        '\n',
        '"Last Updated Date","2024-06-28",\n',
        '\n',
        f'"Country Name","Country Code","Indicator Name","Indicator Code",{header_years},\n',
        population_line('United States', 'USA', {1960: 80, 2000: 100, 2020: 150}),
        population_line('China', 'CHN', {1960: 120, 2000: 200, 2020: 180}),
        population_line('Tuvalu', 'TUV', {2020: 11}),
        population_line('United States', 'USA', {2020: 3}, indicator='Population growth (annual %)'),
        '"Broken","BRK","Population, total"\n',
    ]
    path = os.path.join(temp_dir, 'population.csv')
    with open(path, 'w') as f:
        f.writelines(lines)
    return path


AIR_HEADER = ("latitude,longitude,datetime,parameter,value,unit,raw_concentration,"
              "aqi,aqi_category,site_name,agency_name,site_id,full_site_id\n")


def air_line(datetime, aqi, site='Fresno', parameter='PM2.5'):
    return (f'36.78,-119.77,{datetime},{parameter},{aqi * 0.4:.1f},UG/M3,{aqi * 0.4:.1f},'
            f'{aqi},2,"{site}, CA","Air District",060190011,840060190011\n')


@pytest.fixture
def air_quality_dir(temp_dir):
    """Two day directories, one header per file and one malformed line"""
    root = os.path.join(temp_dir, 'airnow')
    day1 = os.path.join(root, '20200815')
    day2 = os.path.join(root, '20200816')
    os.makedirs(day1)
    os.makedirs(day2)

    with open(os.path.join(day1, '20200815-01.csv'), 'w') as f:
        f.write(AIR_HEADER)
        f.write(air_line('2020-08-15T01:00', 40, site='Fresno'))
        f.write(air_line('2020-08-15T01:00', 160, site='Visalia', parameter='OZONE'))
    with open(os.path.join(day1, '20200815-02.csv'), 'w') as f:
        f.write(AIR_HEADER)
        f.write(air_line('2020-08-15T02:00', 100, site='Fresno'))
        f.write('36.78,-119.77,2020-08-15T02:00,PM2.5,not-a-number\n')
    with open(os.path.join(day2, '20200816-01.csv'), 'w') as f:
        f.write(AIR_HEADER)
        f.write(air_line('2020-08-16T01:00', 60, site='Fresno'))
        f.write(air_line('2020-08-16T01:00', 80, site='Visalia'))
    with open(os.path.join(day2, 'notes.txt'), 'w') as f:
        f.write('ignored: wrong suffix\n')
    return root
