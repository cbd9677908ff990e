"""Simple Flask web interface for the Sophos configuration parser."""

import asyncio
import logging

from flask import Flask, jsonify, request

from sophos_parser.analysis.duplicate_detector import analyze_duplicates
from sophos_parser.analysis.rule_analyzer import analyze_firewall_rules
from sophos_parser.config_reader import ConfigurationParseError, parse_document
from sophos_parser.diff.engine import DiffEngine, group_diff_by_type
from sophos_parser.domain.models import DiffOptions, ReferenceIndexOptions
from sophos_parser.extraction.entity_extractor import EntityExtractor
from sophos_parser.output.json_dumper import to_json_data
from sophos_parser.references.cancellation import BuildSupervisor
from sophos_parser.references.reference_index import ReferenceIndexBuilder
from sophos_parser.references.visualization import convert_to_visualization_tree, get_entity_reference_tree

logger = logging.getLogger(__name__)

app = Flask(__name__)

# A newer reference request supersedes one still running
reference_builds = BuildSupervisor()


def _uploaded_xml(field_name: str) -> bytes | None:
    """Raw upload bytes; the XML declaration decides the encoding."""
    file = request.files.get(field_name)
    if file is None or not file.filename:
        return None
    return file.read()


def _flag(name: str) -> bool:
    return request.args.get(name, '').lower() in ('1', 'true', 'yes')


@app.errorhandler(ConfigurationParseError)
def handle_parse_error(e: ConfigurationParseError):
    return jsonify({'error': str(e)}), 400


@app.route('/api/parse', methods=['POST'])
def parse_configuration():
    """Upload an export and return its entity model."""
    xml_data = _uploaded_xml('file')
    if xml_data is None:
        return jsonify({'error': 'No file provided'}), 400

    model = EntityExtractor().extract(parse_document(xml_data))
    response = {
        'filename': request.files['file'].filename,
        'model': to_json_data(model, include_raw_xml=_flag('include_raw_xml')),
    }
    if _flag('analyze'):
        response['analysis'] = {
            'rule_issues': to_json_data(analyze_firewall_rules(model.firewall_rules)),
            'duplicates': {
                key: [group.names for group in groups]
                for key, groups in analyze_duplicates(model).items()
            },
        }
    return jsonify(response)


@app.route('/api/diff', methods=['POST'])
def diff_configurations():
    """Upload two exports ('old' and 'new') and return their diff."""
    old_data = _uploaded_xml('old')
    new_data = _uploaded_xml('new')
    if old_data is None or new_data is None:
        return jsonify({'error': "Both 'old' and 'new' files are required"}), 400

    extractor = EntityExtractor()
    old_model = extractor.extract(parse_document(old_data))
    new_model = extractor.extract(parse_document(new_data))
    options = DiffOptions(min_shared_keys=request.args.get('min_shared_keys', 1, type=int))
    result = DiffEngine(options).diff(old_model, new_model)

    return jsonify({
        'summary': to_json_data(result.summary),
        'added': to_json_data(result.added, include_raw_xml=False),
        'removed': to_json_data(result.removed, include_raw_xml=False),
        'modified': to_json_data(result.modified, include_raw_xml=False),
        'unchanged': to_json_data(result.unchanged, include_raw_xml=False),
        'by_type': {
            tag: {change: [item.name for item in items] for change, items in buckets.items()}
            for tag, buckets in group_diff_by_type(result).items()
        },
    })


@app.route('/api/references', methods=['POST'])
def build_references():
    """Upload an export and return its reference index.

    With `?entity=<name>` only that entity's visualization tree is returned.
    """
    xml_data = _uploaded_xml('file')
    if xml_data is None:
        return jsonify({'error': 'No file provided'}), 400

    document = parse_document(xml_data)
    token = reference_builds.start()
    builder = ReferenceIndexBuilder(ReferenceIndexOptions(
        chunk_size=request.args.get('chunk_size', ReferenceIndexOptions().chunk_size, type=int),
    ))
    index = asyncio.run(builder.build(document, cancel_token=token))
    if index is None or not reference_builds.is_current(token):
        return jsonify({'error': 'Reference build superseded by a newer request'}), 409

    entity_name = request.args.get('entity')
    if entity_name:
        entry = get_entity_reference_tree(index, entity_name)
        if entry is None:
            return jsonify({'error': f'No references to {entity_name}'}), 404
        return jsonify(convert_to_visualization_tree(entry))

    return jsonify({
        'total_referenced_entities': len(index),
        'references': to_json_data(index, include_raw_xml=False),
    })


if __name__ == '__main__':
    app.run(debug=True, port=5002)
