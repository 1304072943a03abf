import os
import shutil
import subprocess
import sys

import pytest

import pdfshell.listing as listing
from pdfshell.errors import ToolFailedError
from pdfshell.listing import PdfFileEntry, list_pdfs, list_pdfs_shell, list_pdfs_walk, shell_command

has_shell_lister = pytest.mark.skipif(
    not shutil.which('powershell' if sys.platform == 'win32' else 'find'), reason='no find/PowerShell')


def test_walk_is_case_insensitive(pdf_tree, tree_paths):
    assert list_pdfs_walk(str(pdf_tree)) == tree_paths


def test_walk_with_stats(pdf_tree, tree_paths):
    entries = list_pdfs_walk(str(pdf_tree), with_stats=True)
    assert [e.path for e in entries] == tree_paths
    assert all(isinstance(e, PdfFileEntry) and e.size > 0 and e.mtime > 0 for e in entries)


@has_shell_lister
def test_shell_matches_walk(pdf_tree):
    assert list_pdfs_shell(str(pdf_tree)) == list_pdfs_walk(str(pdf_tree))


@has_shell_lister
def test_shell_stats_match_walk(pdf_tree):
    shell = list_pdfs_shell(str(pdf_tree), with_stats=True)
    walk = list_pdfs_walk(str(pdf_tree), with_stats=True)
    assert [(e.path, e.size) for e in shell] == [(e.path, e.size) for e in walk]
    for s, w in zip(shell, walk):
        assert s.mtime == pytest.approx(w.mtime, abs=1.0)


@has_shell_lister
def test_shell_handles_quotes_in_root(tmp_path, pdf_bytes):
    root = tmp_path / "it's here"
    root.mkdir()
    (root / 'x.pdf').write_bytes(pdf_bytes)
    assert list_pdfs_shell(str(root)) == list_pdfs_walk(str(root))


@pytest.mark.skipif(sys.platform == 'win32', reason='find is used outside Windows')
def test_find_command_is_an_argument_list(tmp_path):
    cmd = shell_command(str(tmp_path / 'a; rm -rf x'))
    assert cmd[:2] == ['find', '-H']
    assert cmd[2].endswith('a; rm -rf x')
    assert cmd[3:7] == ['-type', 'f', '-iname', '*.pdf']


def test_empty_tree(tmp_path):
    assert list_pdfs(str(tmp_path), strategy='walk') == []


def test_unknown_strategy(tmp_path):
    with pytest.raises(ValueError):
        list_pdfs(str(tmp_path), strategy='magic')


def test_root_must_be_a_directory(tmp_path):
    with pytest.raises(NotADirectoryError):
        list_pdfs(str(tmp_path / 'missing'))


def test_falls_back_to_walk_when_command_missing(pdf_tree, tree_paths, monkeypatch):
    def missing(*args, **kwargs):
        raise FileNotFoundError('find')

    monkeypatch.setattr(listing.subprocess, 'run', missing)
    assert list_pdfs(str(pdf_tree), strategy='shell') == tree_paths


def test_shell_parses_crlf_output(pdf_tree, tree_paths, monkeypatch):
    out = ''.join(p + '\r\n' for p in reversed(tree_paths)).encode('utf-8')

    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 0, stdout=out, stderr=b'')

    monkeypatch.setattr(listing.subprocess, 'run', fake_run)
    monkeypatch.setattr(listing.sys, 'platform', 'linux')
    assert list_pdfs_shell(str(pdf_tree)) == tree_paths


def test_shell_parses_powershell_stats(monkeypatch, tmp_path):
    out = (f'{tmp_path}\\b.pdf\t20\t1700000000500\r\n'
           f'{tmp_path}\\x.pdfx\t30\t1700000000000\r\n'
           f'{tmp_path}\\a.pdf\t10\t1700000000000\r\n').encode('utf-8')

    def fake_run(cmd, **kwargs):
        assert cmd[0] == 'powershell'
        assert '-LiteralPath' in cmd[-1]
        assert "$_.Extension -ieq '.pdf'" in cmd[-1]
        return subprocess.CompletedProcess(cmd, 0, stdout=out, stderr=b'')

    monkeypatch.setattr(listing.subprocess, 'run', fake_run)
    monkeypatch.setattr(listing.sys, 'platform', 'win32')
    entries = list_pdfs_shell(str(tmp_path), with_stats=True)
    assert [e.size for e in entries] == [10, 20]
    assert entries[1].mtime == pytest.approx(1700000000.5)


def test_partial_output_is_kept_on_errors(pdf_tree, tree_paths, monkeypatch):
    out = '\n'.join(tree_paths).encode('utf-8') + b'\n'

    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout=out, stderr=b"find: 'locked': Permission denied\n")

    monkeypatch.setattr(listing.subprocess, 'run', fake_run)
    monkeypatch.setattr(listing.sys, 'platform', 'linux')
    assert list_pdfs_shell(str(pdf_tree)) == tree_paths


def test_failure_without_output_raises(tmp_path, monkeypatch):
    def fake_run(cmd, **kwargs):
        return subprocess.CompletedProcess(cmd, 1, stdout=b'', stderr=b'find: bad option\n')

    monkeypatch.setattr(listing.subprocess, 'run', fake_run)
    with pytest.raises(ToolFailedError, match='bad option'):
        list_pdfs_shell(str(tmp_path))


@pytest.mark.skipif(not sys.platform.startswith('linux') or not shutil.which('find'),
                    reason='needs a filesystem that stores arbitrary bytes in names')
def test_shell_matches_walk_for_non_utf8_names(tmp_path, pdf_bytes):
    root = tmp_path / 'latin1'
    root.mkdir()
    raw_name = os.path.join(os.fsencode(str(root)), b'caf\xe9.pdf')
    with open(raw_name, 'wb') as f:
        f.write(pdf_bytes)

    shell = list_pdfs_shell(str(root))
    assert shell == list_pdfs_walk(str(root))
    assert os.path.exists(shell[0])
    stats = list_pdfs_shell(str(root), with_stats=True)
    assert stats[0].path == shell[0]
    assert stats[0].size == len(pdf_bytes)
