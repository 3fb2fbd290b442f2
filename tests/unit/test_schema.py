"""
Unit tests for Schema, the field converters and SchemaLoader
"""

import os
from dataclasses import dataclass

import pytest

from tablereduce.common.schema import (
    FieldSpec,
    Schema,
    to_float,
    to_int,
    to_positive_int_or_none,
)
from tablereduce.common.schema_loader import SchemaLoader
from tablereduce.exceptions import ParseSkip

WEATHER_SCHEMA_FILE = os.path.join(os.path.dirname(__file__), '..', '..', 'examples', 'weather_schema.py')


@dataclass(frozen=True)
class Point:
    label: str
    x: float
    y: int


POINT_SCHEMA = Schema(
    name='point',
    row_type=Point,
    fields=(FieldSpec('label', 0), FieldSpec('x', 1, to_float), FieldSpec('y', 2, to_int)),
    min_columns=3,
    skip_markers=('HEADER',),
)


class TestConverters:
    """Tests for the cell converters"""

    def test_to_int_accepts_decimal_text(self):
        assert to_int("45.0") == 45
        assert to_int("7") == 7

    def test_to_int_rejects_garbage(self):
        with pytest.raises(ValueError):
            to_int("abc")

    def test_to_float(self):
        assert to_float("1.5") == 1.5

    def test_optional_positive_int(self):
        assert to_positive_int_or_none("") is None
        assert to_positive_int_or_none("0") is None
        assert to_positive_int_or_none("-3") is None
        assert to_positive_int_or_none("n/a") is None
        assert to_positive_int_or_none("1200") == 1200


class TestSchema:
    """Tests for row construction"""

    def test_builds_typed_row(self):
        row = POINT_SCHEMA.build_row(['p', '1.5', '2'])
        assert row == Point('p', 1.5, 2)

    def test_extra_columns_are_ignored(self):
        assert POINT_SCHEMA.build_row(['p', '1', '2', 'extra']) == Point('p', 1.0, 2)

    def test_too_few_fields_raises_parse_skip(self):
        with pytest.raises(ParseSkip):
            POINT_SCHEMA.build_row(['p', '1'])

    def test_conversion_failure_raises_parse_skip(self):
        with pytest.raises(ParseSkip):
            POINT_SCHEMA.build_row(['p', 'x', '2'])

    def test_accept_filter_rejects_line(self):
        schema = Schema(
            name='filtered', row_type=Point, fields=POINT_SCHEMA.fields,
            min_columns=3, accept=lambda fields: fields[0] != 'skip',
        )
        with pytest.raises(ParseSkip):
            schema.build_row(['skip', '1', '2'])
        assert schema.build_row(['keep', '1', '2']).label == 'keep'

    def test_lookup_converter_fault_raises_parse_skip(self):
        categories = {'A': 1}
        schema = Schema(
            name='lookup', row_type=Point,
            fields=(FieldSpec('label', 0), FieldSpec('x', 1, to_float), FieldSpec('y', 2, lambda s: categories[s])),
            min_columns=3,
        )
        assert schema.build_row(['p', '1', 'A']) == Point('p', 1.0, 1)
        with pytest.raises(ParseSkip) as exc_info:
            schema.build_row(['p', '1', 'unknown'])
        assert isinstance(exc_info.value.__cause__, KeyError)

    def test_faulty_accept_filter_raises_parse_skip(self):
        schema = Schema(
            name='filtered', row_type=Point, fields=POINT_SCHEMA.fields,
            min_columns=3, accept=lambda fields: fields[7] == 'x',
        )
        with pytest.raises(ParseSkip):
            schema.build_row(['p', '1', '2'])

    def test_faulty_derive_hook_raises_parse_skip(self):
        schema = Schema(
            name='derived', row_type=Point, fields=POINT_SCHEMA.fields[:2],
            min_columns=3, derive=lambda fields: {'y': {'lo': 0}[fields[2]]},
        )
        assert schema.build_row(['p', '1', 'lo']) == Point('p', 1.0, 0)
        with pytest.raises(ParseSkip):
            schema.build_row(['p', '1', 'hi'])

    def test_row_type_rejection_raises_parse_skip(self):
        @dataclass(frozen=True)
        class Positive:
            label: str
            x: float
            y: int

            def __post_init__(self):
                if self.y <= 0:
                    raise RuntimeError('y must be positive')

        schema = Schema(name='positive', row_type=Positive, fields=POINT_SCHEMA.fields, min_columns=3)
        with pytest.raises(ParseSkip):
            schema.build_row(['p', '1', '0'])
        assert schema.parse('p,1,0') is None

    def test_parse_returns_none_for_metadata_blank_and_bad_lines(self):
        assert POINT_SCHEMA.parse("HEADER,x,y") is None
        assert POINT_SCHEMA.parse("   \n") is None
        assert POINT_SCHEMA.parse("p,oops,1") is None
        assert POINT_SCHEMA.parse('"a, b",3,4\n') == Point('a, b', 3.0, 4)

    def test_field_names(self):
        assert POINT_SCHEMA.field_names == ('label', 'x', 'y')

    def test_column_beyond_min_columns_is_rejected(self):
        with pytest.raises(ValueError):
            Schema(name='bad', row_type=Point, fields=(FieldSpec('label', 5),), min_columns=3)

    def test_min_columns_must_be_positive(self):
        with pytest.raises(ValueError):
            Schema(name='bad', row_type=Point, fields=(), min_columns=0)


class TestSchemaLoader:
    """Tests for loading schemas from user files"""

    def test_loads_schema_from_file(self, temp_dir):
        path = os.path.join(temp_dir, 'my_schema.py')
        with open(path, 'w') as f:
            f.write(
                "from dataclasses import dataclass\n"
                "from tablereduce.common.schema import FieldSpec, Schema, to_int\n"
                "\n"
                "@dataclass(frozen=True)\n"
                "class Row:\n"
                "    name: str\n"
                "    count: int\n"
                "\n"
                "SCHEMA = Schema(name='user', row_type=Row,\n"
                "                fields=(FieldSpec('name', 0), FieldSpec('count', 1, to_int)),\n"
                "                min_columns=2)\n"
            )

        schema = SchemaLoader(path).get_schema()

        assert schema.name == 'user'
        assert schema.build_row(['a', '3']).count == 3

    def test_loads_bundled_weather_example(self, temp_dir):
        """The example schema loads and its helper runs a query"""
        from tablereduce.coordinator.engine import AnalyticsEngine

        loader = SchemaLoader(WEATHER_SCHEMA_FILE)
        schema = loader.get_schema()
        data_path = os.path.join(temp_dir, 'weather.csv')
        with open(data_path, 'w') as f:
            f.write("Temperature,Humidity,Pressure\n20.0,40,1012\n30.0,55,1009\nbad,row,here\n")

        engine = AnalyticsEngine(schema)
        row_count, _warnings = engine.load_from_files([data_path])

        assert schema.name == 'weather'
        assert row_count == 2
        assert loader.module.average_temperature(engine) == pytest.approx(25.0)

    def test_raises_error_for_nonexistent_file(self):
        with pytest.raises(FileNotFoundError):
            SchemaLoader('/nonexistent/schema.py').load_module()

    def test_raises_error_when_attribute_missing(self, temp_dir):
        path = os.path.join(temp_dir, 'empty_schema.py')
        with open(path, 'w') as f:
            f.write("VALUE = 1\n")

        with pytest.raises(AttributeError):
            SchemaLoader(path).get_schema()

    def test_raises_error_when_attribute_is_not_schema(self, temp_dir):
        path = os.path.join(temp_dir, 'wrong_schema.py')
        with open(path, 'w') as f:
            f.write("SCHEMA = {'name': 'not a schema'}\n")

        with pytest.raises(TypeError):
            SchemaLoader(path).get_schema()
