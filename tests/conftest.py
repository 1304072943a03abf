import os
import shutil
import stat
import sys

import pytest

from pdfshell.config import Settings


def make_pdf(width: int = 612, height: int = 792, title: bytes = b'Test document') -> bytes:
    content = b'0 0 1 rg 10 10 50 50 re f'
    objects = [
        b'<< /Type /Catalog /Pages 2 0 R >>',
        b'<< /Type /Pages /Kids [3 0 R] /Count 1 >>',
        b'<< /Type /Page /Parent 2 0 R /MediaBox [0 0 %d %d] /Contents 4 0 R /Resources << >> >>' % (width, height),
        b'<< /Length %d >>\nstream\n' % len(content) + content + b'\nendstream',
        b'<< /Title (' + title + b') /Author (pdfshell) /Producer (pytest) >>',
    ]
    out = b'%PDF-1.4\n'
    offsets = []
    for num, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += b'%d 0 obj\n' % num + body + b'\nendobj\n'
    xref = len(out)
    out += b'xref\n0 %d\n' % (len(objects) + 1)
    out += b'0000000000 65535 f \n'
    for off in offsets:
        out += b'%010d 00000 n \n' % off
    out += b'trailer\n<< /Size %d /Root 1 0 R /Info 5 0 R >>\n' % (len(objects) + 1)
    out += b'startxref\n%d\n' % xref
    out += b'%%EOF\n'
    return out


@pytest.fixture
def pdf_bytes():
    return make_pdf()


@pytest.fixture
def pdf_file(tmp_path, pdf_bytes):
    p = tmp_path / 'sample.pdf'
    p.write_bytes(pdf_bytes)
    return p


needs_posix = pytest.mark.skipif(sys.platform == 'win32', reason='fake tools are sh scripts')
needs_poppler = pytest.mark.skipif(not (shutil.which('pdftoppm') and shutil.which('pdfinfo')),
                                   reason='poppler-utils not installed')


@pytest.fixture
def make_tool(tmp_path):
    """Write an executable sh script standing in for a poppler binary."""
    bin_dir = tmp_path / 'bin'
    bin_dir.mkdir()

    def _make(name: str, body: str) -> str:
        path = bin_dir / name
        path.write_text('#!/bin/sh\n' + body + '\n')
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


@pytest.fixture
def fake_settings(tmp_path, make_tool):
    args_file = tmp_path / 'args.txt'
    pdftoppm = make_tool('pdftoppm', f'echo "$@" >> "{args_file}"\ncat > /dev/null\nprintf \'\\211PNG\\r\\n\\032\\nfake\'')
    pdfinfo = make_tool('pdfinfo', 'cat > /dev/null\n'
                                   'printf \'Title:          Report\\r\\n\'\n'
                                   'printf \'Author:         Jane Roe\\r\\n\'\n'
                                   'printf \'Pages:          3\\r\\n\'\n'
                                   'printf \'Page size:      842 x 595 pts (A4)\\r\\n\'\n'
                                   'printf \'PDF version:    1.7\\r\\n\'')
    settings = Settings(pdftoppm=pdftoppm, pdfinfo=pdfinfo, dpi=72, thumb_size=64, timeout=10,
                        db_path=str(tmp_path / 'catalog.db'), log_dir=str(tmp_path / 'logs'))
    settings.args_file = str(args_file)
    return settings


@pytest.fixture
def pdf_tree(tmp_path, pdf_bytes):
    root = tmp_path / 'tree'
    (root / 'sub' / 'deeper').mkdir(parents=True)
    (root / 'a.pdf').write_bytes(pdf_bytes)
    (root / 'B.PDF').write_bytes(pdf_bytes)
    (root / 'sub' / 'c.Pdf').write_bytes(pdf_bytes + b'%padding\n')
    (root / 'sub' / 'deeper' / 'with space.pdf').write_bytes(pdf_bytes)
    (root / 'sub' / 'notes.txt').write_text('not a pdf')
    (root / 'sub' / 'pdf').write_text('no extension')
    return root


@pytest.fixture
def tree_paths(pdf_tree):
    root = pdf_tree
    return sorted(os.path.normpath(os.path.join(str(root), p)) for p in (
        'a.pdf', 'B.PDF', os.path.join('sub', 'c.Pdf'), os.path.join('sub', 'deeper', 'with space.pdf')))
