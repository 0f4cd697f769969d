#!/bin/env python3

import sys
import argparse
from pathlib import Path

from loguru import logger

from axmldec import __version__
from axmldec.axml_parse import decode_file
from axmldec.errors import ResParserError

fmt = "{level}:\t{message}"


def setup_logging(verbose: bool) -> None:
    logger.remove()  # All configured handlers are removed
    logger.add(sys.stderr, format=fmt, level="DEBUG" if verbose else "WARNING")


def print_manifest(path: Path, pretty: bool, output=None) -> bool:
    try:
        xml = decode_file(path, pretty=pretty)
    except (OSError, ResParserError) as e:
        logger.error("{}: {}", path, e)
        return False

    if output is not None:
        Path(output).write_bytes(xml)
    else:
        sys.stdout.write(xml.decode("utf-8"))
        if not xml.endswith(b"\n"):
            sys.stdout.write("\n")
        sys.stdout.flush()
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="axmldec",
        description="Decode Android binary XML (AndroidManifest.xml) into text XML",
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("-f", "--file", type=Path, help="binary XML file to decode")
    source.add_argument("-d", "--dir", type=Path, help="decode every file in this directory")
    parser.add_argument("-o", "--output", help="write the XML to this file (only with --file)")
    parser.add_argument("--pretty", action="store_true", help="pretty print the XML")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.output and args.dir:
        parser.error("--output can only be used with --file")

    setup_logging(args.verbose)

    if args.file is not None:
        return 0 if print_manifest(args.file, args.pretty, args.output) else 1

    ok = True
    for path in sorted(args.dir.iterdir()):
        if not path.is_file():
            continue
        print("---------- {} ----------".format(path), flush=True)
        ok = print_manifest(path, args.pretty) and ok
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
