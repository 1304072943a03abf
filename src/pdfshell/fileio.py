import os
from typing import List

import aiofiles

from .streams import decode_lines, read_stream


def read_bytes(path: str) -> bytes:
    with open(path, 'rb') as f:
        return f.read()


def read_lines(path: str, encoding: str = 'utf-8') -> List[str]:
    with open(path, 'rb') as f:
        data = read_stream(f, normalize=True)
    return decode_lines(data, encoding=encoding)


def _prepare(path: str) -> str:
    path = os.path.abspath(path)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    return path


def write_bytes(path: str, data: bytes) -> str:
    """Write `data` to `path`, replacing any existing file. Returns the absolute path."""
    path = _prepare(path)
    with open(path, 'wb') as f:
        f.write(data)
    return path


async def save_bytes_to_file(b: bytes, filename: str) -> str:
    path = _prepare(filename)
    async with aiofiles.open(path, 'wb') as f:
        await f.write(b)
    return path
