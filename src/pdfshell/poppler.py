"""Wrappers around the poppler command line tools.

Each call spawns one process, pipes the whole PDF to its stdin and waits for
all of its output. Nothing is passed through a shell.
"""
import logging
import subprocess
from typing import List, Optional

from .config import Settings, load_settings
from .errors import EncryptedPDFError, MalformedPDFError, ToolFailedError, ToolNotFoundError, ToolTimeoutError
from .fileio import read_bytes
from .streams import decode_lines

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'
PDF_SIGNATURE = b'%PDF-'

# poppler exit codes: 1 error opening the PDF, 2 error opening an output file,
# 3 permissions error, 99 anything else
_EXIT_OPEN_FAILED = 1


def is_png(data: bytes) -> bool:
    return data[:len(PNG_SIGNATURE)] == PNG_SIGNATURE


def looks_like_pdf(data: bytes) -> bool:
    # readers accept the header anywhere in the first 1024 bytes
    return PDF_SIGNATURE in data[:1024]


def run_tool(cmd: List[str], data: bytes, timeout: Optional[float] = None) -> bytes:
    """Run `cmd` with `data` on stdin and return its raw stdout.

    Raises ToolNotFoundError, ToolTimeoutError, EncryptedPDFError (the input
    needs a password), MalformedPDFError (the tool could not open its input)
    or ToolFailedError (any other non-zero exit).
    """
    logger.debug('Running %s (%d bytes on stdin)', ' '.join(cmd), len(data))
    try:
        res = subprocess.run(cmd, input=data, capture_output=True, timeout=timeout)
    except FileNotFoundError:
        raise ToolNotFoundError(cmd[0])
    except subprocess.TimeoutExpired:
        raise ToolTimeoutError(cmd, timeout)
    if res.returncode == _EXIT_OPEN_FAILED and b'password' in res.stderr.lower():
        raise EncryptedPDFError(cmd, res.returncode, res.stderr)
    if res.returncode == _EXIT_OPEN_FAILED:
        raise MalformedPDFError(cmd, res.returncode, res.stderr)
    if res.returncode != 0:
        raise ToolFailedError(cmd, res.returncode, res.stderr)
    return res.stdout


def _check_pdf(pdf: bytes, tool: str):
    if not looks_like_pdf(pdf):
        raise MalformedPDFError([tool], None, message='input does not start with a PDF header')


def _check_png(cmd: List[str], out: bytes) -> bytes:
    if not out:
        raise ToolFailedError(cmd, 0, message=f'{cmd[0]} produced no output')
    if not is_png(out):
        raise ToolFailedError(cmd, 0, message=f'{cmd[0]} output is not a PNG image')
    return out


def rasterize_to_png(pdf: bytes, dpi: Optional[int] = None, page: int = 1,
                     settings: Optional[Settings] = None) -> bytes:
    """Render one page of `pdf` to PNG bytes at `dpi` (defaults to the configured DPI)."""
    settings = settings or load_settings(dotenv=False)
    _check_pdf(pdf, settings.pdftoppm)
    dpi = dpi or settings.dpi
    cmd = [settings.pdftoppm, '-png', '-r', str(dpi), '-f', str(page), '-l', str(page), '-singlefile', '-']
    return _check_png(cmd, run_tool(cmd, pdf, timeout=settings.timeout))


def rasterize_to_thumbnail(pdf: bytes, size: Optional[int] = None, page: int = 1,
                           settings: Optional[Settings] = None) -> bytes:
    """Render one page scaled so its longest side is `size` pixels."""
    settings = settings or load_settings(dotenv=False)
    _check_pdf(pdf, settings.pdftoppm)
    size = size or settings.thumb_size
    cmd = [settings.pdftoppm, '-png', '-scale-to', str(size), '-f', str(page), '-l', str(page), '-singlefile', '-']
    return _check_png(cmd, run_tool(cmd, pdf, timeout=settings.timeout))


def read_metadata_lines(pdf: bytes, settings: Optional[Settings] = None) -> List[str]:
    settings = settings or load_settings(dotenv=False)
    _check_pdf(pdf, settings.pdfinfo)
    cmd = [settings.pdfinfo, '-']
    out = run_tool(cmd, pdf, timeout=settings.timeout)
    lines = decode_lines(out)
    if not lines:
        raise ToolFailedError(cmd, 0, message=f'{cmd[0]} produced no output')
    return lines


def png_from_file(path: str, dpi: Optional[int] = None, page: int = 1,
                  settings: Optional[Settings] = None) -> bytes:
    return rasterize_to_png(read_bytes(path), dpi=dpi, page=page, settings=settings)


def thumbnail_from_file(path: str, size: Optional[int] = None, page: int = 1,
                        settings: Optional[Settings] = None) -> bytes:
    return rasterize_to_thumbnail(read_bytes(path), size=size, page=page, settings=settings)


def metadata_from_file(path: str, settings: Optional[Settings] = None) -> List[str]:
    return read_metadata_lines(read_bytes(path), settings=settings)
