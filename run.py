# -*- coding: utf-8 -*-

"""
Command line entry point for the ESON Toolkit.

    python run.py patch DOCUMENT PATCH   apply a JSON patch file to a document
    python run.py search DOCUMENT TEXT   list the matches of TEXT in a document
"""

import argparse
import json
import logging
import sys

from eson_toolkit.core.json_pointer import compile_json_pointer
from eson_toolkit.core.patch import immutable_json_patch
from eson_toolkit.core.services import EditorService
from eson_toolkit.logging_config import setup_logging


def _load(path):
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _dump(data):
    json.dump(data, sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")


def cmd_patch(args):
    document = _load(args.document)
    operations = _load(args.patch)
    if not isinstance(operations, list):
        logging.error("Patch file %s does not contain an array", args.patch)
        return 2

    result = immutable_json_patch(document, operations)
    _dump({
        "json": result.json,
        "revert": result.revert,
        "error": str(result.error) if result.error is not None else None,
    })
    return 0 if result.success else 1


def cmd_search(args):
    editor = EditorService(_load(args.document), history=False)
    result = editor.search(args.text)
    _dump([
        {"path": compile_json_pointer(match.path), "area": match.area}
        for match in result.matches
    ])
    return 0


def build_parser():
    parser = argparse.ArgumentParser(prog="eson-toolkit", description=__doc__.strip().splitlines()[0])
    sub = parser.add_subparsers(dest="command", required=True)

    patch_parser = sub.add_parser("patch", help="apply a JSON patch to a document")
    patch_parser.add_argument("document", help="JSON document file")
    patch_parser.add_argument("patch", help="JSON file holding an array of patch operations")
    patch_parser.set_defaults(func=cmd_patch)

    search_parser = sub.add_parser("search", help="search property names and values")
    search_parser.add_argument("document", help="JSON document file")
    search_parser.add_argument("text", help="case-insensitive text to search")
    search_parser.set_defaults(func=cmd_search)
    return parser


def main(argv=None):
    """
    Configure logging, parse arguments and run the requested command.
    """
    setup_logging()
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (OSError, ValueError) as exc:
        logging.error("Could not read input: %s", exc)
        return 2


if __name__ == '__main__':
    code = main()
    logging.info("===== Application terminated =====")
    sys.exit(code)
