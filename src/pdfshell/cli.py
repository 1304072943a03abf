import argparse
import logging
import os
import sys
from datetime import datetime

from .config import load_settings
from .convert import convert_tree
from .errors import PdfShellError
from .fileio import write_bytes
from .listing import STRATEGIES, PdfFileEntry, list_pdfs
from .metadata import extract_metadata
from .naming import output_name
from .poppler import metadata_from_file, png_from_file, thumbnail_from_file

logger = logging.getLogger('pdfshell')


def cmd_list(args, settings) -> int:
    for item in list_pdfs(args.root, strategy=args.strategy, with_stats=args.stats):
        if isinstance(item, PdfFileEntry):
            stamp = datetime.fromtimestamp(item.mtime).isoformat(timespec='seconds')
            print(f'{item.path}\t{item.size}\t{stamp}')
        else:
            print(item)
    return 0


def cmd_png(args, settings) -> int:
    data = png_from_file(args.pdf, dpi=args.dpi, page=args.page, settings=settings)
    out = args.output or output_name(args.pdf)
    path = write_bytes(out, data)
    logger.info('Wrote %s (%d bytes)', path, len(data))
    return 0


def cmd_thumb(args, settings) -> int:
    data = thumbnail_from_file(args.pdf, size=args.size, page=args.page, settings=settings)
    out = args.output or output_name(args.pdf, '_thumb')
    path = write_bytes(out, data)
    logger.info('Wrote %s (%d bytes)', path, len(data))
    return 0


def cmd_info(args, settings) -> int:
    if args.raw:
        for line in metadata_from_file(args.pdf, settings=settings):
            print(line)
        return 0
    meta = extract_metadata(args.pdf, settings=settings)
    for key, value in meta.as_dict().items():
        print(f'{key}: {value}')
    return 0


def cmd_convert(args, settings) -> int:
    results = convert_tree(args.root, args.output_dir, dpi=args.dpi, thumb_size=args.size,
                           strategy=args.strategy, limit=args.limit, overwrite=args.overwrite,
                           catalog=args.catalog, progress=not args.no_progress, settings=settings)
    failed = [r for r in results if not r.ok]
    skipped = sum(1 for r in results if r.skipped)
    print(f'Converted {len(results) - len(failed) - skipped}, skipped {skipped}, failed {len(failed)}')
    if failed:
        print(f'See {os.path.join(settings.log_dir, "convert.log")} for errors.')
        return 2
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='pdfshell', description='Convert PDFs to PNG and read their metadata with poppler')
    p.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    sub = p.add_subparsers(dest='command', required=True)

    ls = sub.add_parser('list', help='List PDF files under a directory')
    ls.add_argument('root')
    ls.add_argument('--strategy', choices=STRATEGIES, default='shell',
                    help='shell: use find/PowerShell (fast); walk: walk the tree in Python')
    ls.add_argument('--stats', action='store_true', help='Include size and modification time')
    ls.set_defaults(func=cmd_list)

    png = sub.add_parser('png', help='Render one page of a PDF to PNG')
    png.add_argument('pdf')
    png.add_argument('--output', '-o', help='Output file (default: <stem>.png)')
    png.add_argument('--dpi', type=int, default=None)
    png.add_argument('--page', type=int, default=1)
    png.set_defaults(func=cmd_png)

    th = sub.add_parser('thumb', help='Render a PNG thumbnail of one page')
    th.add_argument('pdf')
    th.add_argument('--output', '-o', help='Output file (default: <stem>_thumb.png)')
    th.add_argument('--size', type=int, default=None, help='Longest side in pixels')
    th.add_argument('--page', type=int, default=1)
    th.set_defaults(func=cmd_thumb)

    info = sub.add_parser('info', help='Show PDF metadata')
    info.add_argument('pdf')
    info.add_argument('--raw', action='store_true', help='Print pdfinfo output as is')
    info.set_defaults(func=cmd_info)

    conv = sub.add_parser('convert', help='Render a PNG and a thumbnail for every PDF under a directory')
    conv.add_argument('root')
    conv.add_argument('--output-dir', default='data/images')
    conv.add_argument('--dpi', type=int, default=None)
    conv.add_argument('--size', type=int, default=None, help='Thumbnail size in pixels')
    conv.add_argument('--strategy', choices=STRATEGIES, default='shell')
    conv.add_argument('--limit', type=int, default=None, help='Process only the first N PDFs')
    conv.add_argument('--overwrite', action='store_true', help='Re-render files that already have images')
    conv.add_argument('--catalog', action='store_true', help='Record converted files in the sqlite catalog')
    conv.add_argument('--no-progress', action='store_true')
    conv.set_defaults(func=cmd_convert)
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    try:
        # load environment variables from .env if present
        settings = load_settings(dotenv=True)
    except ValueError as e:
        logger.error('Invalid configuration: %s', e)
        return 1
    try:
        return args.func(args, settings)
    except PdfShellError as e:
        logger.error('%s', e)
        return 1
    except FileNotFoundError as e:
        logger.error('No such file: %s', e.filename)
        return 1


if __name__ == '__main__':
    sys.exit(main())
