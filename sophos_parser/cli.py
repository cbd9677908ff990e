"""CLI for sophos-parser."""

import argparse
import logging
import os
import sys
import time

from sophos_parser.analysis.duplicate_detector import analyze_duplicates
from sophos_parser.analysis.rule_analyzer import analyze_firewall_rules
from sophos_parser.config_reader import ConfigurationParseError, read_document
from sophos_parser.diff.engine import DiffEngine
from sophos_parser.domain.models import DumpOptions, DumpResult, ParseError, ReferenceIndexOptions
from sophos_parser.extraction.entity_extractor import EntityExtractor
from sophos_parser.output.json_dumper import JSONDumper
from sophos_parser.parser_registry import ParserRegistry
from sophos_parser.references.reference_index import ReferenceIndexBuilder

logger = logging.getLogger(__name__)


def _count_entities(model) -> int:
    return (
        len(model.firewall_rules)
        + len(model.firewall_rule_groups)
        + len(model.ssl_tls_inspection_rules)
        + sum(len(v) for v in model.collections.values())
        + sum(len(v) for v in model.entities_by_tag.values())
    )


def dump_configuration(config_path: str, output_dir: str, options: DumpOptions) -> DumpResult:
    """Export -> entity model (+ analysis) -> JSON output."""
    start_time = time.time()
    dumper = JSONDumper(output_dir, pretty=options.pretty)
    source_file = os.path.basename(config_path)
    errors: list[ParseError] = []
    entities_parsed = 0

    try:
        model = EntityExtractor().extract(read_document(config_path))
    except ConfigurationParseError as e:
        errors.append(ParseError(file=source_file, error=str(e)))
    else:
        entities_parsed = _count_entities(model)
        dumper.write_configuration(model, source_file, include_raw_xml=options.include_raw_xml)

        if options.analyze:
            try:
                dumper.write_analysis(
                    analyze_firewall_rules(model.firewall_rules), analyze_duplicates(model), source_file,
                )
            except Exception as e:
                errors.append(ParseError(file=source_file, error=str(e), operation='analyze'))

    dumper.write_errors(errors)
    logger.info("Parsed %s: %d entities in %.2fs", source_file, entities_parsed, time.time() - start_time)
    return DumpResult(
        operation='parse',
        entities_parsed=entities_parsed,
        errors_count=len(errors),
        output_dir=output_dir,
    )


def dump_diff(old_path: str, new_path: str, output_dir: str, options: DumpOptions) -> DumpResult:
    """Two exports -> DiffResult -> diff.json."""
    dumper = JSONDumper(output_dir, pretty=options.pretty)
    extractor = EntityExtractor()
    errors: list[ParseError] = []
    models = []

    for path in (old_path, new_path):
        try:
            models.append(extractor.extract(read_document(path)))
        except ConfigurationParseError as e:
            errors.append(ParseError(file=os.path.basename(path), error=str(e), operation='diff'))

    entities_parsed = 0
    if not errors:
        old_model, new_model = models
        result = DiffEngine().diff(old_model, new_model)
        dumper.write_diff(
            result, os.path.basename(old_path), os.path.basename(new_path),
            include_raw_xml=options.include_raw_xml,
        )
        entities_parsed = result.summary.total_old + result.summary.added

    dumper.write_errors(errors)
    return DumpResult(
        operation='diff',
        entities_parsed=entities_parsed,
        errors_count=len(errors),
        output_dir=output_dir,
    )


def dump_references(
    config_path: str, output_dir: str, options: DumpOptions, index_options: ReferenceIndexOptions,
) -> DumpResult:
    """Export -> reference index -> references.json."""
    dumper = JSONDumper(output_dir, pretty=options.pretty)
    source_file = os.path.basename(config_path)
    errors: list[ParseError] = []
    indexed = 0

    try:
        index = ReferenceIndexBuilder(index_options).build_sync(read_document(config_path))
    except ConfigurationParseError as e:
        errors.append(ParseError(file=source_file, error=str(e), operation='references'))
    else:
        indexed = len(index)
        dumper.write_references(index, source_file)

    dumper.write_errors(errors)
    return DumpResult(
        operation='references',
        entities_parsed=indexed,
        errors_count=len(errors),
        output_dir=output_dir,
    )


def _require_file(path: str) -> None:
    if not os.path.isfile(path):
        print(f"Error: {path} not found", file=sys.stderr)
        sys.exit(1)


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(prog='sophos-parser', description='Sophos firewall configuration parser')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    subparsers = parser.add_subparsers(dest='command')

    # parse command
    parse_parser = subparsers.add_parser('parse', help='Parse an export and dump JSON')
    parse_parser.add_argument('config', help='Path to Entities.xml export')
    parse_parser.add_argument('output', help='Output directory')
    parse_parser.add_argument('--analyze', action='store_true', help='Detect duplicate/shadowed rules and entities')
    parse_parser.add_argument('--no-pretty', action='store_true', help='Disable pretty printing')
    parse_parser.add_argument('--include-raw-xml', action='store_true', help='Keep raw XML snapshots in output')

    # diff command
    diff_parser = subparsers.add_parser('diff', help='Diff two exports')
    diff_parser.add_argument('old', help='Path to the old export')
    diff_parser.add_argument('new', help='Path to the new export')
    diff_parser.add_argument('output', help='Output directory')
    diff_parser.add_argument('--no-pretty', action='store_true', help='Disable pretty printing')
    diff_parser.add_argument('--include-raw-xml', action='store_true', help='Keep raw XML snapshots in output')

    # refs command
    refs_parser = subparsers.add_parser('refs', help='Build the entity reference index')
    refs_parser.add_argument('config', help='Path to Entities.xml export')
    refs_parser.add_argument('output', help='Output directory')
    refs_parser.add_argument('--chunk-size', type=int, default=ReferenceIndexOptions().chunk_size,
                             help='Names scanned between progress updates')
    refs_parser.add_argument('--no-pretty', action='store_true', help='Disable pretty printing')

    # types command
    subparsers.add_parser('types', help='List element tags with registered parsers')

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if args.command == 'parse':
        _require_file(args.config)
        options = DumpOptions(
            pretty=not args.no_pretty,
            analyze=args.analyze,
            include_raw_xml=args.include_raw_xml,
        )
        print(f"Parsing {args.config}...")
        result = dump_configuration(args.config, args.output, options)
        print(f"Done! Parsed {result.entities_parsed} entities ({result.errors_count} errors)")
        print(f"Output: {result.output_dir}")

    elif args.command == 'diff':
        _require_file(args.old)
        _require_file(args.new)
        options = DumpOptions(pretty=not args.no_pretty, include_raw_xml=args.include_raw_xml)
        print(f"Diffing {args.old} -> {args.new}...")
        result = dump_diff(args.old, args.new, args.output, options)
        print(f"Done! Compared {result.entities_parsed} entities ({result.errors_count} errors)")
        print(f"Output: {result.output_dir}")

    elif args.command == 'refs':
        _require_file(args.config)
        index_options = ReferenceIndexOptions(chunk_size=args.chunk_size)
        print(f"Indexing references in {args.config}...")
        result = dump_references(args.config, args.output, DumpOptions(pretty=not args.no_pretty), index_options)
        print(f"Done! {result.entities_parsed} referenced entities ({result.errors_count} errors)")
        print(f"Output: {result.output_dir}")

    elif args.command == 'types':
        registry = ParserRegistry()
        for t in sorted(registry.get_supported_types()):
            print(f"  {t}")

    else:
        parser.print_help()


if __name__ == '__main__':
    main()
