"""
Input parsers module.
"""

from parsers.serial_list_parser import (
    parse_serial_list,
    ParsedSerialList,
)

__all__ = [
    "parse_serial_list",
    "ParsedSerialList",
]
