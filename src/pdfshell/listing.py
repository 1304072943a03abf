"""Enumerate PDF files under a directory tree.

Two strategies produce the same result: `shell` asks the platform's own
listing command (PowerShell on Windows, `find` elsewhere), which is faster
on large trees and does not recurse in Python, and `walk` uses os.walk.
Both return paths sorted, absolute and normalized.
"""
import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from typing import List, Union

from .errors import ToolFailedError, ToolNotFoundError
from .streams import split_lines

logger = logging.getLogger(__name__)

STRATEGIES = ('shell', 'walk')


@dataclass(frozen=True)
class PdfFileEntry:
    path: str
    size: int
    mtime: float


def is_pdf_name(name: str) -> bool:
    return name.lower().endswith('.pdf')


def _entry(path: str) -> PdfFileEntry:
    st = os.stat(path)
    return PdfFileEntry(path, st.st_size, st.st_mtime)


def list_pdfs_walk(root: str, with_stats: bool = False) -> List[Union[str, PdfFileEntry]]:
    root = os.path.abspath(root)

    def on_error(err: OSError):
        logger.warning('Skipping %s: %s', err.filename, err.strerror)

    paths = []
    for dirpath, _dirnames, filenames in os.walk(root, onerror=on_error):
        for name in filenames:
            if not is_pdf_name(name):
                continue
            full = os.path.join(dirpath, name)
            # find -type f and Get-ChildItem -File leave out symlinks
            if os.path.islink(full):
                continue
            paths.append(os.path.normpath(full))
    paths.sort()
    if with_stats:
        return [_entry(p) for p in paths]
    return paths


def _powershell_command(root: str, with_stats: bool) -> List[str]:
    literal = "'" + root.replace("'", "''") + "'"
    if with_stats:
        emit = ('ForEach-Object { "{0}`t{1}`t{2}" -f $_.FullName, $_.Length, '
                '([DateTimeOffset]$_.LastWriteTimeUtc).ToUnixTimeMilliseconds() }')
    else:
        emit = 'ForEach-Object { $_.FullName }'
    script = ('[Console]::OutputEncoding = [System.Text.Encoding]::UTF8; '
              f'Get-ChildItem -LiteralPath {literal} -Recurse -File -Filter *.pdf -ErrorAction SilentlyContinue | '
              "Where-Object { $_.Extension -ieq '.pdf' } | "
              'Where-Object { -not ($_.Attributes -band [IO.FileAttributes]::ReparsePoint) } | ' + emit)
    return ['powershell', '-NoProfile', '-NonInteractive', '-Command', script]


def _find_command(root: str, with_stats: bool) -> List[str]:
    cmd = ['find', '-H', root, '-type', 'f', '-iname', '*.pdf']
    if with_stats and sys.platform.startswith('linux'):
        cmd += ['-printf', '%p\t%s\t%T@\n']
    return cmd


def shell_command(root: str, with_stats: bool = False) -> List[str]:
    root = os.path.abspath(root)
    if sys.platform == 'win32':
        return _powershell_command(root, with_stats)
    return _find_command(root, with_stats)


def _parse_stats_line(line: str, millis: bool) -> PdfFileEntry:
    path, size, mtime = line.rsplit('\t', 2)
    stamp = float(mtime)
    if millis:
        stamp /= 1000.0
    return PdfFileEntry(os.path.normpath(path), int(size), stamp)


def list_pdfs_shell(root: str, with_stats: bool = False) -> List[Union[str, PdfFileEntry]]:
    cmd = shell_command(root, with_stats)
    logger.debug('Listing PDFs with %s', cmd[0])
    try:
        res = subprocess.run(cmd, capture_output=True)
    except FileNotFoundError:
        raise ToolNotFoundError(cmd[0])
    if res.returncode != 0:
        if not res.stdout:
            raise ToolFailedError(cmd, res.returncode, res.stderr)
        # find exits 1 after permission errors but still lists what it could read
        logger.warning('%s reported errors: %s', cmd[0],
                       res.stderr.decode('utf-8', errors='replace').strip())

    raw = [line for line in split_lines(res.stdout) if line.strip()]
    if cmd[0] == 'powershell':
        lines = [line.decode('utf-8', errors='replace') for line in raw]
    else:
        # POSIX names are arbitrary bytes, decode them the way os.walk does
        lines = [os.fsdecode(line) for line in raw]
    parses_stats = with_stats and ('-printf' in cmd or cmd[0] == 'powershell')
    if parses_stats:
        entries = [_parse_stats_line(line, millis=cmd[0] == 'powershell') for line in lines]
        # -Filter also matches 8.3 short names such as X~1.PDF for x.pdfx
        entries = [e for e in entries if is_pdf_name(e.path)]
        return sorted(entries, key=lambda e: e.path)

    paths = sorted(os.path.normpath(line) for line in lines if is_pdf_name(line))
    if with_stats:
        return [_entry(p) for p in paths]
    return paths


def list_pdfs(root: str, strategy: str = 'shell', with_stats: bool = False) -> List[Union[str, PdfFileEntry]]:
    if strategy not in STRATEGIES:
        raise ValueError(f'unknown listing strategy {strategy!r}, expected one of {STRATEGIES}')
    if not os.path.isdir(root):
        raise NotADirectoryError(root)
    if strategy == 'shell':
        try:
            return list_pdfs_shell(root, with_stats=with_stats)
        except ToolNotFoundError as e:
            logger.warning('%s; falling back to a directory walk', e)
    return list_pdfs_walk(root, with_stats=with_stats)
