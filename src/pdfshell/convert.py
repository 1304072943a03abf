"""Convert PDFs to a full-size PNG of the first page plus a thumbnail.

Outputs go to <out_dir>/<stem>.png and <out_dir>/<stem>_thumb.png. Batch
runs mirror each PDF's folder below the root under <out_dir>, and add the
first 8 hex digits of the file's sha256 to the stem when two PDFs in one
folder map to the same name. They also append one line per file to
<log_dir>/convert.log:

    OK,report.pdf
    SKIP,report.pdf
    ERROR,broken.pdf,pdftoppm exited with status 1: ...
"""
import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from tqdm import tqdm

from .catalog import init_db, insert_record
from .config import Settings, load_settings
from .errors import PdfShellError
from .fileio import read_bytes, write_bytes
from .listing import list_pdfs
from .metadata import metadata_or_default
from .naming import safe_stem, sha256_bytes, sha256_file
from .poppler import rasterize_to_png, rasterize_to_thumbnail

logger = logging.getLogger(__name__)

THUMB_SUFFIX = '_thumb'


@dataclass
class ConversionResult:
    pdf_path: str
    png_path: str = ''
    thumb_path: str = ''
    sha256: str = ''
    size: int = 0
    skipped: bool = False
    error: str = ''

    @property
    def ok(self) -> bool:
        return not self.error


def convert_pdf(pdf_path: str, out_dir: str, dpi: Optional[int] = None, thumb_size: Optional[int] = None,
                overwrite: bool = False, stem: Optional[str] = None,
                settings: Optional[Settings] = None) -> ConversionResult:
    """Rasterize `pdf_path` into `out_dir`. Tool errors propagate.

    `stem` names the outputs, by default the sanitized stem of `pdf_path`.
    """
    settings = settings or load_settings(dotenv=False)
    stem = stem or safe_stem(pdf_path)
    png_path = os.path.join(out_dir, f'{stem}.png')
    thumb_path = os.path.join(out_dir, f'{stem}{THUMB_SUFFIX}.png')
    result = ConversionResult(pdf_path, png_path, thumb_path)

    # skip if already rasterized
    if not overwrite and os.path.exists(png_path) and os.path.exists(thumb_path):
        logger.info('Skipping %s: images already exist in %s', os.path.basename(pdf_path), out_dir)
        result.skipped = True
        return result

    data = read_bytes(pdf_path)
    result.sha256 = sha256_bytes(data)
    result.size = len(data)
    write_bytes(png_path, rasterize_to_png(data, dpi=dpi, settings=settings))
    write_bytes(thumb_path, rasterize_to_thumbnail(data, size=thumb_size, settings=settings))
    return result


def _log_line(log_path: str, *fields: str):
    line = ','.join(f.replace('\n', ' ').replace('\r', ' ') for f in fields)
    with open(log_path, 'a', encoding='utf-8') as lf:
        lf.write(line + '\n')


def _target(pdf_path: str, root: str, out_dir: str, claimed: set):
    rel = os.path.relpath(os.path.dirname(pdf_path), root)
    target_dir = out_dir if rel == os.curdir else os.path.join(out_dir, rel)
    stem = safe_stem(pdf_path)
    # lowered so case-insensitive filesystems do not merge outputs either
    key = os.path.join(target_dir, stem).lower()
    if key in claimed:
        stem = f'{stem}_{sha256_file(pdf_path)[:8]}'
        key = os.path.join(target_dir, stem).lower()
    claimed.add(key)
    return target_dir, stem


def convert_tree(root: str, out_dir: str, dpi: Optional[int] = None, thumb_size: Optional[int] = None,
                 strategy: str = 'shell', limit: Optional[int] = None, overwrite: bool = False,
                 catalog: bool = False, progress: bool = True,
                 settings: Optional[Settings] = None) -> List[ConversionResult]:
    """Convert every PDF under `root`, one at a time.

    A failure on one file is logged and recorded in its result; the batch
    carries on. With `catalog` set, converted files and their metadata are
    recorded in the sqlite catalog at `settings.db_path`.
    """
    settings = settings or load_settings(dotenv=False)
    os.makedirs(out_dir, exist_ok=True)
    os.makedirs(settings.log_dir, exist_ok=True)
    log_path = os.path.join(settings.log_dir, 'convert.log')
    if catalog:
        init_db(settings.db_path)

    pdf_files = list_pdfs(root, strategy=strategy)
    if limit:
        pdf_files = pdf_files[:limit]
    logger.info('Found %d PDF(s) under %s', len(pdf_files), root)

    root = os.path.abspath(root)
    claimed = set()
    results = []
    for p in tqdm(pdf_files, desc='Converting', unit='pdf', disable=not progress):
        name = os.path.basename(p)
        try:
            target_dir, stem = _target(p, root, out_dir, claimed)
            res = convert_pdf(p, target_dir, dpi=dpi, thumb_size=thumb_size, overwrite=overwrite,
                              stem=stem, settings=settings)
        except (PdfShellError, OSError) as e:
            logger.error('Failed to convert %s: %s', p, e)
            _log_line(log_path, 'ERROR', name, str(e))
            results.append(ConversionResult(p, error=str(e)))
            continue

        _log_line(log_path, 'SKIP' if res.skipped else 'OK', name)
        if catalog and not res.skipped:
            meta = metadata_or_default(p, settings=settings)
            if not insert_record(settings.db_path, p, res.sha256, res.size, meta):
                logger.debug('%s already catalogued', name)
        results.append(res)
    return results
