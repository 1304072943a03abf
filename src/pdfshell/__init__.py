from .errors import EncryptedPDFError, MalformedPDFError, PdfShellError, ToolFailedError, ToolNotFoundError, ToolTimeoutError
from .listing import PdfFileEntry, list_pdfs, list_pdfs_shell, list_pdfs_walk
from .metadata import PdfMetadata, extract_metadata, parse_pdfinfo
from .poppler import read_metadata_lines, rasterize_to_png, rasterize_to_thumbnail

__all__ = [
    'EncryptedPDFError', 'MalformedPDFError', 'PdfShellError', 'ToolFailedError', 'ToolNotFoundError', 'ToolTimeoutError',
    'PdfFileEntry', 'list_pdfs', 'list_pdfs_shell', 'list_pdfs_walk',
    'PdfMetadata', 'extract_metadata', 'parse_pdfinfo',
    'read_metadata_lines', 'rasterize_to_png', 'rasterize_to_thumbnail',
]
