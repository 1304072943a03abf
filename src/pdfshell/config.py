import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_DB_NAME = 'pdf_catalog.db'


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f'{name} must be an integer, got {raw!r}')


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f'{name} must be a number, got {raw!r}')


@dataclass
class Settings:
    pdftoppm: str = 'pdftoppm'
    pdfinfo: str = 'pdfinfo'
    dpi: int = 150
    thumb_size: int = 256
    timeout: Optional[float] = 60.0
    db_path: str = DEFAULT_DB_NAME
    log_dir: str = 'logs'


def load_settings(dotenv: bool = True) -> Settings:
    """Build settings from the environment.

    With `dotenv` set, a `.env` file in the working directory (or a parent) is
    loaded first via python-dotenv. Existing environment variables win.
    A timeout of 0 disables the subprocess timeout.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    timeout = _float_env('PDFSHELL_TIMEOUT', 60.0)
    return Settings(
        pdftoppm=os.getenv('PDFSHELL_PDFTOPPM') or 'pdftoppm',
        pdfinfo=os.getenv('PDFSHELL_PDFINFO') or 'pdfinfo',
        dpi=_int_env('PDFSHELL_DPI', 150),
        thumb_size=_int_env('PDFSHELL_THUMB_SIZE', 256),
        timeout=timeout if timeout > 0 else None,
        db_path=os.path.abspath(os.getenv('PDFSHELL_DB') or DEFAULT_DB_NAME),
        log_dir=os.getenv('PDFSHELL_LOG_DIR') or 'logs',
    )
