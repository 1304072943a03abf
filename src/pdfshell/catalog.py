import os
import sqlite3
from typing import Optional

from .metadata import PdfMetadata


def init_db(db_path: str):
    parent = os.path.dirname(os.path.abspath(db_path))
    os.makedirs(parent, exist_ok=True)
    conn = sqlite3.connect(db_path)
    cur = conn.cursor()
    cur.execute('''
    CREATE TABLE IF NOT EXISTS pdfs (
        id INTEGER PRIMARY KEY,
        filename TEXT,
        path TEXT,
        sha256 TEXT UNIQUE,
        size INTEGER,
        title TEXT,
        author TEXT,
        producer TEXT,
        creation_date TEXT,
        pdf_version TEXT,
        pages INTEGER,
        encrypted INTEGER,
        paper_size TEXT,
        orientation TEXT
    )
    ''')
    conn.commit()
    conn.close()


def insert_record(db_path: str, path: str, sha256: str, size: int, meta: Optional[PdfMetadata] = None) -> bool:
    """Add a processed PDF. Returns False when the same content is already catalogued."""
    meta = meta or PdfMetadata(source='')
    conn = sqlite3.connect(db_path)
    cur = conn.cursor()
    try:
        cur.execute('INSERT INTO pdfs (filename, path, sha256, size, title, author, producer, creation_date, '
                    'pdf_version, pages, encrypted, paper_size, orientation) '
                    'VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)',
                    (os.path.basename(path), path, sha256, size, meta.title, meta.author, meta.producer,
                     meta.creation_date, meta.pdf_version, meta.pages, int(meta.encrypted),
                     meta.paper_size, meta.orientation))
        conn.commit()
        return True
    except sqlite3.IntegrityError:
        # duplicate sha256
        return False
    finally:
        conn.close()


def find_by_sha(db_path: str, sha256: str):
    conn = sqlite3.connect(db_path)
    cur = conn.cursor()
    cur.execute('SELECT id, filename, path, sha256, size, title, author, producer, creation_date, '
                'pdf_version, pages, encrypted, paper_size, orientation FROM pdfs WHERE sha256=?', (sha256,))
    row = cur.fetchone()
    conn.close()
    return row
