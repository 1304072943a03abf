import logging
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from PyPDF2 import PdfReader
from PyPDF2.errors import DependencyError, PdfReadError

from .config import Settings
from .errors import EncryptedPDFError, MalformedPDFError, PdfShellError, ToolNotFoundError
from .poppler import metadata_from_file

logger = logging.getLogger(__name__)

_PAGE_SIZE = re.compile(r'([\d.]+)\s*x\s*([\d.]+)\s*pts')


@dataclass
class PdfMetadata:
    title: str = ''
    author: str = ''
    creator: str = ''
    producer: str = ''
    creation_date: str = ''
    pdf_version: str = ''
    pages: int = 0
    encrypted: bool = False
    page_width: Optional[float] = None
    page_height: Optional[float] = None
    page_rotation: int = 0
    source: str = 'pdfinfo'
    raw: Dict[str, str] = field(default_factory=dict)

    @property
    def paper_size(self) -> str:
        if self.page_width is None or self.page_height is None:
            return ''
        return f'{self.page_width:g} x {self.page_height:g} pts'

    @property
    def orientation(self) -> str:
        if self.page_width is None or self.page_height is None:
            return ''
        width, height = self.page_width, self.page_height
        if self.page_rotation % 180 == 90:
            width, height = height, width
        return 'landscape' if width > height else 'portrait'

    def as_dict(self) -> Dict[str, object]:
        return {
            'title': self.title,
            'author': self.author,
            'creator': self.creator,
            'producer': self.producer,
            'creation_date': self.creation_date,
            'pdf_version': self.pdf_version,
            'pages': self.pages,
            'encrypted': self.encrypted,
            'paper_size': self.paper_size,
            'orientation': self.orientation,
        }


def _to_int(value: str) -> int:
    try:
        return int(value.split()[0])
    except (ValueError, IndexError):
        return 0


def parse_pdfinfo(lines: Iterable[str]) -> PdfMetadata:
    """Build a PdfMetadata from `pdfinfo` output lines (`Key:   value`)."""
    raw: Dict[str, str] = {}
    for line in lines:
        key, sep, value = line.partition(':')
        if not sep or not key.strip():
            continue
        raw[key.strip()] = value.strip()

    meta = PdfMetadata(raw=raw)
    meta.title = raw.get('Title', '')
    meta.author = raw.get('Author', '')
    meta.creator = raw.get('Creator', '')
    meta.producer = raw.get('Producer', '')
    meta.creation_date = raw.get('CreationDate', '')
    meta.pdf_version = raw.get('PDF version', '')
    meta.pages = _to_int(raw.get('Pages', ''))
    meta.encrypted = raw.get('Encrypted', 'no').lower().startswith('yes')
    meta.page_rotation = _to_int(raw.get('Page rot', ''))
    m = _PAGE_SIZE.search(raw.get('Page size', ''))
    if m:
        meta.page_width = float(m.group(1))
        meta.page_height = float(m.group(2))
    return meta


def read_with_pypdf(path: str) -> PdfMetadata:
    try:
        reader = PdfReader(path)
    except PdfReadError as e:
        raise MalformedPDFError(['PyPDF2', path], None, message=str(e))

    meta = PdfMetadata(source='PyPDF2')
    meta.encrypted = reader.is_encrypted
    meta.pdf_version = reader.pdf_header.replace('%PDF-', '')
    if reader.is_encrypted:
        try:
            opened = reader.decrypt('')
        except (DependencyError, PdfReadError, NotImplementedError) as e:
            logger.debug('Cannot open encrypted %s without a password: %s', path, e)
            return meta
        if not opened:
            logger.debug('%s needs a user password', path)
            return meta

    info = reader.metadata
    if info is not None:
        meta.raw = {str(k).lstrip('/'): str(v) for k, v in info.items()}
        meta.title = info.title or ''
        meta.author = info.author or ''
        meta.creator = info.creator or ''
        meta.producer = info.producer or ''
        meta.creation_date = str(info.get('/CreationDate', ''))
    meta.pages = len(reader.pages)
    if meta.pages:
        first = reader.pages[0]
        meta.page_width = float(first.mediabox.width)
        meta.page_height = float(first.mediabox.height)
        meta.page_rotation = int(first.get('/Rotate', 0) or 0)
    return meta


def extract_metadata(path: str, settings: Optional[Settings] = None) -> PdfMetadata:
    """Read document properties with pdfinfo.

    Falls back to PyPDF2 when pdfinfo is not installed, and for password
    protected files, which pdfinfo refuses to open but PyPDF2 can still
    report as encrypted.
    """
    try:
        return parse_pdfinfo(metadata_from_file(path, settings=settings))
    except ToolNotFoundError as e:
        logger.warning('%s; reading %s with PyPDF2 instead', e, path)
        return read_with_pypdf(path)
    except EncryptedPDFError:
        logger.info('%s is password protected; reading what PyPDF2 can', path)
        return read_with_pypdf(path)


def metadata_or_default(path: str, default=None, settings: Optional[Settings] = None):
    try:
        return extract_metadata(path, settings=settings)
    except (PdfShellError, OSError) as e:
        logger.warning('Could not read metadata from %s: %s', path, e)
        return default
