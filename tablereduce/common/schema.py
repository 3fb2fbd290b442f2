"""
Schema descriptors and the row-builder stage.

A schema names the row type for one dataset layout, which column feeds each
field and how the raw string is converted. The engine itself never looks at
field names; everything domain specific lives in a Schema instance.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from tablereduce.common.record_parser import parse_line
from tablereduce.exceptions import ParseSkip

logger = logging.getLogger(__name__)


def to_float(value: str) -> float:
    return float(value)


def to_int(value: str) -> int:
    """Integer conversion that also accepts '45.0' and truncates like stoi"""
    try:
        return int(value)
    except ValueError:
        return int(float(value))


def to_positive_int_or_none(value: str) -> Optional[int]:
    """Optional cell: empty, invalid and non-positive values become None"""
    if not value:
        return None
    try:
        number = to_int(value)
    except (ValueError, OverflowError):
        return None
    return number if number > 0 else None


@dataclass(frozen=True)
class FieldSpec:
    """One typed field taken from a fixed column"""
    name: str
    column: int
    convert: Callable[[str], Any] = str


@dataclass(frozen=True)
class Schema:
    """
    Field layout of one dataset

    Attributes:
        name: Human readable schema name
        row_type: Immutable type constructed with one keyword per field
        fields: Field specs, in any order
        min_columns: Lines with fewer fields are skipped
        skip_markers: Substrings identifying header/metadata lines
        accept: Optional predicate over the raw fields; False skips the line
        derive: Optional hook returning extra constructor arguments
        delimiter: Field separator
    """
    name: str
    row_type: type
    fields: Tuple[FieldSpec, ...]
    min_columns: int
    skip_markers: Tuple[str, ...] = ()
    accept: Optional[Callable[[List[str]], bool]] = None
    derive: Optional[Callable[[List[str]], Dict[str, Any]]] = None
    delimiter: str = ','
    field_names: Tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.min_columns < 1:
            raise ValueError(f"Schema {self.name}: min_columns must be >= 1")
        for spec in self.fields:
            if spec.column >= self.min_columns:
                raise ValueError(
                    f"Schema {self.name}: field '{spec.name}' reads column {spec.column} "
                    f"beyond min_columns={self.min_columns}"
                )
        object.__setattr__(self, 'field_names', tuple(spec.name for spec in self.fields))

    def is_metadata(self, line: str) -> bool:
        """Check whether a line is a header/metadata line rather than data"""
        return any(marker in line for marker in self.skip_markers)

    def build_row(self, raw_fields: List[str]):
        """
        Convert raw field strings into a row

        Any fault raised by the filter, a converter, the derive hook or the
        row type itself is downgraded to ParseSkip for that line.

        Raises:
            ParseSkip: Too few fields, a failed conversion, or a rejected line
        """
        if len(raw_fields) < self.min_columns:
            raise ParseSkip(f"expected at least {self.min_columns} fields, got {len(raw_fields)}")

        try:
            if self.accept is not None and not self.accept(raw_fields):
                raise ParseSkip("line rejected by schema filter")

            values = {}
            for spec in self.fields:
                values[spec.name] = spec.convert(raw_fields[spec.column])
            if self.derive is not None:
                values.update(self.derive(raw_fields))
            return self.row_type(**values)
        except ParseSkip:
            raise
        except Exception as e:
            raise ParseSkip(f"row construction failed: {type(e).__name__}: {e}") from e

    def parse(self, line: str):
        """
        Parse one raw line into a row

        Returns:
            The row, or None for blank lines, metadata lines and ParseSkips
        """
        if not line.strip() or self.is_metadata(line):
            return None
        try:
            return self.build_row(parse_line(line, delimiter=self.delimiter))
        except ParseSkip:
            return None
