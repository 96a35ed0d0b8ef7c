"""
Canonical list encoding for multi-valued columns.

Flag sets (e.g. heating types) and resource uuid lists are stored as the
length-prefixed list format that the website's rendering layer reads, i.e.
the PHP serialization of a list of strings:

    ['Wohnen', 'Gewerbe'] -> a:2:{i:0;s:6:"Wohnen";i:1;s:7:"Gewerbe";}

String lengths are UTF-8 byte lengths. Values are compared byte-for-byte
during diffing, so the encoding must stay stable.
"""

import re
from typing import List

_HEADER = re.compile(rb"a:(\d+):\{")
_INDEX = re.compile(rb'i:(\d+);s:(\d+):"')


def serialize_list(values: List[str]) -> str:
    """
    Encode a list of strings.

    Args:
        values: Strings in the order they should be stored

    Returns:
        Encoded list
    """
    parts = [f"a:{len(values)}:{{"]
    for index, value in enumerate(values):
        parts.append(f'i:{index};s:{len(value.encode("utf-8"))}:"{value}";')
    parts.append("}")
    return "".join(parts)


def unserialize_list(data: str) -> List[str]:
    """
    Decode a list produced by serialize_list().

    Raises:
        ValueError: If the input is not a well-formed encoded list
    """
    raw = data.encode("utf-8")
    header = _HEADER.match(raw)
    if not header:
        raise ValueError(f"Not an encoded list: {data[:40]!r}")

    count = int(header.group(1))
    pos = header.end()
    values = []

    for expected_index in range(count):
        match = _INDEX.match(raw, pos)
        if not match or int(match.group(1)) != expected_index:
            raise ValueError(f"Malformed list entry at byte {pos}")

        pos = match.end()
        length = int(match.group(2))
        value = raw[pos:pos + length]
        if raw[pos + length:pos + length + 2] != b'";':
            raise ValueError(f"Length mismatch for list entry {expected_index}")

        values.append(value.decode("utf-8"))
        pos += length + 2

    if raw[pos:] != b"}":
        raise ValueError("Trailing data after encoded list")

    return values
