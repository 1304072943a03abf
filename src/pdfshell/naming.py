import hashlib
import os
import re

_UNSAFE = re.compile(r'[^A-Za-z0-9._-]+')


def sha256_bytes(b: bytes) -> str:
    return hashlib.sha256(b).hexdigest()


def sha256_file(path: str, chunk_size: int = 1 << 20) -> str:
    h = hashlib.sha256()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(chunk_size), b''):
            h.update(chunk)
    return h.hexdigest()


def safe_stem(name: str) -> str:
    """File stem of `name` with anything but letters, digits, `.`, `_` and `-` replaced by `_`."""
    stem = os.path.splitext(os.path.basename(name))[0]
    cleaned = _UNSAFE.sub('_', stem).strip('._')
    return cleaned or 'document'


def output_name(pdf_path: str, suffix: str = '', ext: str = '.png') -> str:
    if ext and not ext.startswith('.'):
        ext = '.' + ext
    return f'{safe_stem(pdf_path)}{suffix}{ext}'
