"""
Record Parser
Splits one delimited text line into field strings, honoring quoted fields
"""

from typing import List


def _strip_quotes(field: str, quote: str) -> str:
    """Remove at most one leading and one trailing quote character"""
    if field.startswith(quote):
        field = field[1:]
    if field.endswith(quote):
        field = field[:-1]
    return field


def parse_line(line: str, delimiter: str = ',', quote: str = '"') -> List[str]:
    """
    Parse a single delimited line into raw field strings

    The scan is strictly sequential: a quote toggles the in-quotes state and
    a delimiter only ends a field outside quotes. Embedded escaped quotes are
    not unescaped.

    Args:
        line: Raw input line (a trailing newline is ignored)
        delimiter: Field separator character
        quote: Quote character wrapping fields that contain the delimiter

    Returns:
        List of field strings. An empty line yields [''].
    """
    line = line.rstrip('\r\n')

    fields = []
    current = []
    in_quotes = False

    for char in line:
        if char == quote:
            in_quotes = not in_quotes
            current.append(char)
        elif char == delimiter and not in_quotes:
            fields.append(_strip_quotes(''.join(current), quote))
            current = []
        else:
            current.append(char)

    # Last field is emitted even without a trailing delimiter
    fields.append(_strip_quotes(''.join(current), quote))
    return fields
