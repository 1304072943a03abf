"""Byte stream helpers for reading subprocess output.

Text written by a tool running in text mode on Windows arrives with `\r\n`
terminators, and some pipelines double it up into a lone `\r`. Everything
here works on bytes and folds any of those back to a single `\n`.
"""
import re
from typing import BinaryIO, List

_TERMINATOR = re.compile(rb'\r\n|\r|\n')


def split_lines(data: bytes) -> List[bytes]:
    if not data:
        return []
    parts = _TERMINATOR.split(data)
    # a trailing terminator leaves an empty tail that readline() would not yield
    if parts[-1] == b'':
        parts.pop()
    return parts


def normalize_line_endings(data: bytes) -> bytes:
    """Re-join lines with a single `\\n`, without a trailing one."""
    return b'\n'.join(split_lines(data))


def read_stream(stream: BinaryIO, normalize: bool = False) -> bytes:
    data = stream.read()
    if normalize:
        return normalize_line_endings(data)
    return data


def decode_lines(data: bytes, encoding: str = 'utf-8') -> List[str]:
    return [line.decode(encoding, errors='replace') for line in split_lines(data)]
