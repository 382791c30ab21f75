#!/usr/bin/env python3
"""
Command line entry point: extract entities from text and ground them in a PDF
"""
import argparse
import asyncio
import json
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional
import logging

from govdoc_ner.config import NERBackendConfig, config
from govdoc_ner.grounding.entity_grounder import EntityGrounder
from govdoc_ner.ner.orchestrator import ExtractionOrchestrator
from govdoc_ner.processors.page_index import crop_pages, extract_pages
from govdoc_ner.schemas import Bounds, GroundingRequest, MatchResult
from govdoc_ner.utils.error_handler import PDFProcessingError
from govdoc_ner.utils.log_utils import setup_logging

logger = logging.getLogger(__name__)


def _backends(args) -> NERBackendConfig:
    backends = NERBackendConfig.from_env()
    if args.primary_url:
        backends = replace(backends, primary_url=args.primary_url)
    if args.secondary_key:
        backends = replace(backends, secondary_key=args.secondary_key)
    return backends


def parse_bounds(value: str) -> Bounds:
    """'x,y,width,height' -> Bounds"""
    try:
        x, y, width, height = (float(part) for part in value.split(","))
        return Bounds(x=x, y=y, width=width, height=height)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid bounds {value!r}: expected X,Y,W,H") from e


def _print_json(data: Any):
    print(json.dumps(data, ensure_ascii=False, indent=2))


def _serialize_matches(matches: Dict[str, List[MatchResult]]) -> Dict[str, List[Dict]]:
    return {
        key: [match.model_dump(mode="json", by_alias=True) for match in results]
        for key, results in matches.items()
    }


def extract_command(args) -> int:
    """Extract entities from text and print the extraction result"""
    if args.file:
        text = Path(args.file).read_text(encoding="utf-8")
    else:
        text = args.text

    orchestrator = ExtractionOrchestrator(_backends(args))
    result = asyncio.run(orchestrator.extract_entities(text))
    _print_json(result.model_dump(mode="json", by_alias=True))
    return 0


def ground_command(args) -> int:
    """Ground entity values in the text items of a PDF"""
    pages = extract_pages(args.pdf)
    if args.bounds is not None:
        pages = crop_pages(pages, args.bounds)
    grounder = EntityGrounder()

    request = GroundingRequest(
        dates=args.date or [],
        names=args.name or [],
        amounts=args.amount or [],
        key_phrases=args.phrase or [],
    )
    matches = grounder.ground_entities(request, pages)

    if args.extract:
        full_text = "\n".join(page.full_text for page in pages)
        orchestrator = ExtractionOrchestrator(_backends(args))
        result = asyncio.run(orchestrator.extract_entities(full_text))
        logger.info(f"Extracted {len(result.entities)} entities with {result.model}")
        matches.update(grounder.ground_extracted(result.entities, pages))

    _print_json(_serialize_matches(matches))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="govdoc-ner",
        description="Korean administrative document entity extraction and grounding",
    )
    parser.add_argument('--log-level', default=config.LOG_LEVEL, help='Logging level (default: %(default)s)')
    parser.add_argument('--log-dir', default=str(config.LOG_DIR), help='Log file directory (default: %(default)s)')
    parser.add_argument('--primary-url', help='Primary NER backend URL (overrides NER_PRIMARY_URL)')
    parser.add_argument('--secondary-key', help='Inference API key (overrides HUGGINGFACE_API_KEY)')
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Extract command
    extract_parser = subparsers.add_parser('extract', help='Extract entities from text')
    source = extract_parser.add_mutually_exclusive_group(required=True)
    source.add_argument('--text', help='Text to analyse')
    source.add_argument('--file', help='UTF-8 text file to analyse')
    extract_parser.set_defaults(func=extract_command)

    # Ground command
    ground_parser = subparsers.add_parser('ground', help='Locate entity values in a PDF')
    ground_parser.add_argument('--pdf', required=True, help='PDF document')
    ground_parser.add_argument('--date', action='append', help='Date value (repeatable)')
    ground_parser.add_argument('--name', action='append', help='Person, place or organisation name (repeatable)')
    ground_parser.add_argument('--amount', action='append', help='Amount or account number (repeatable)')
    ground_parser.add_argument('--phrase', action='append', help='Key phrase (repeatable)')
    ground_parser.add_argument('--bounds', type=parse_bounds, metavar='X,Y,W,H',
                               help='Only ground text items inside this rectangle (points, top-left origin)')
    ground_parser.add_argument('--extract', action='store_true',
                               help='Also extract entities from the PDF text and ground them')
    ground_parser.set_defaults(func=ground_command)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(args.log_level, args.log_dir)

    try:
        config.validate()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        return args.func(args)
    except (OSError, PDFProcessingError) as e:
        logger.error(f"Cannot read input: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
