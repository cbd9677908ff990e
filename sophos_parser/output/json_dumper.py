"""JSON output generation.

Writes the parsed model, diff, reference index, analysis findings and
errors to a JSON directory.
"""

import json
import os
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from sophos_parser.analysis.duplicate_detector import (
    DuplicateGroup, total_duplicate_count, total_duplicate_entity_count,
)
from sophos_parser.analysis.rule_analyzer import RuleIssue
from sophos_parser.diff.engine import group_diff_by_type
from sophos_parser.domain.models import (
    ConfigurationModel, DiffResult, Entity, EntityReferenceTree, ParseError,
)
from sophos_parser.references.visualization import convert_to_visualization_tree
from sophos_parser.signature import SignatureService

PARSER_VERSION = '1.0.0'

_RAW_XML_KEYS = frozenset({'raw_xml', 'old_raw_xml', 'new_raw_xml'})


def _dict_factory(items: list[tuple[str, Any]]) -> dict[str, Any]:
    return {k: v.value if isinstance(v, Enum) else v for k, v in items}


def to_json_data(obj: Any, include_raw_xml: bool = True) -> Any:
    """Convert dataclasses (and containers of them) to JSON-ready values.

    Enum members become their values. Raw XML snapshots are dropped unless
    `include_raw_xml` is set.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        data = asdict(obj, dict_factory=_dict_factory)
    elif isinstance(obj, dict):
        data = {k: to_json_data(v, include_raw_xml) for k, v in obj.items()}
    elif isinstance(obj, (list, tuple)):
        data = [to_json_data(v, include_raw_xml) for v in obj]
    elif isinstance(obj, Enum):
        data = obj.value
    else:
        data = obj
    return data if include_raw_xml else _strip_raw_xml(data)


def _strip_raw_xml(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: _strip_raw_xml(v) for k, v in data.items() if k not in _RAW_XML_KEYS}
    if isinstance(data, list):
        return [_strip_raw_xml(v) for v in data]
    return data


def _entity_data(entity: Entity, include_raw_xml: bool) -> dict[str, Any]:
    data = to_json_data(entity, include_raw_xml)
    data['diff_hash'] = SignatureService.generate_hash(entity)
    return data


class JSONDumper:
    """Writes operation results to a JSON directory.

    Output structure:
        output_dir/
        ├── configuration.json
        ├── analysis.json    (parse --analyze)
        ├── diff.json
        ├── references.json
        └── errors.json      (only if errors)

    Args:
        output_dir: Root directory for output files.
        pretty: Whether to pretty-print JSON (default True).
    """

    def __init__(self, output_dir: str, pretty: bool = True) -> None:
        self._output_dir = output_dir
        self._indent = 2 if pretty else None

    def write_configuration(
        self, model: ConfigurationModel, source_file: str, include_raw_xml: bool = False,
    ) -> None:
        """Write the extracted entity model with per-entity diff hashes."""
        data = {
            '_metadata': self._metadata(source_file=source_file),
            'metadata': to_json_data(model.metadata),
            'firewall_rules': to_json_data(model.firewall_rules, include_raw_xml),
            'firewall_rule_groups': to_json_data(model.firewall_rule_groups, include_raw_xml),
            'ssl_tls_inspection_rules': to_json_data(model.ssl_tls_inspection_rules, include_raw_xml),
            'collections': {
                key: [_entity_data(e, include_raw_xml) for e in entities]
                for key, entities in model.collections.items()
            },
            'entities_by_tag': {
                tag: [_entity_data(e, include_raw_xml) for e in entities]
                for tag, entities in sorted(model.entities_by_tag.items())
            },
            'ports_with_entities': to_json_data(model.ports_with_entities, include_raw_xml),
            'lags_with_members': to_json_data(model.lags_with_members, include_raw_xml),
        }
        self._write('configuration.json', data)

    def write_diff(self, result: DiffResult, old_file: str, new_file: str, include_raw_xml: bool = False) -> None:
        """Write the diff summary, classified items and a per-tag grouping."""
        data = {
            '_metadata': self._metadata(old_file=old_file, new_file=new_file),
            'summary': to_json_data(result.summary),
            'added': to_json_data(result.added, include_raw_xml),
            'removed': to_json_data(result.removed, include_raw_xml),
            'modified': to_json_data(result.modified, include_raw_xml),
            'unchanged': to_json_data(result.unchanged, include_raw_xml),
            'by_type': {
                tag: {change: [item.name for item in items] for change, items in buckets.items()}
                for tag, buckets in group_diff_by_type(result).items()
            },
        }
        self._write('diff.json', data)

    def write_references(self, index: dict[str, EntityReferenceTree], source_file: str) -> None:
        """Write the reference index and one visualization tree per entity."""
        data = {
            '_metadata': {
                **self._metadata(source_file=source_file),
                'total_referenced_entities': len(index),
                'total_references': sum(len(entry.references) for entry in index.values()),
            },
            'references': {
                name: {
                    **to_json_data(entry, include_raw_xml=False),
                    'visualization': convert_to_visualization_tree(entry),
                }
                for name, entry in sorted(index.items())
            },
        }
        self._write('references.json', data)

    def write_analysis(
        self,
        rule_issues: list[RuleIssue],
        duplicates: dict[str, list[DuplicateGroup]],
        source_file: str,
    ) -> None:
        """Write rule issues and entity duplicate groups."""
        data = {
            '_metadata': {
                **self._metadata(source_file=source_file),
                'total_rule_issues': len(rule_issues),
                'total_duplicate_groups': total_duplicate_count(duplicates),
                'total_duplicate_entities': total_duplicate_entity_count(duplicates),
            },
            'rule_issues': to_json_data(rule_issues),
            'duplicates': {
                key: [
                    {
                        'entity_type': group.entity_type,
                        'type_key': group.type_key,
                        'is_partial': group.is_partial,
                        'common_members': group.common_members,
                        'members': [
                            {
                                'name': member.entity.name,
                                'index': member.index,
                                'transaction_id': member.entity.transaction_id,
                                'all_members': member.all_members,
                                'unique_members': member.unique_members,
                            }
                            for member in group.members
                        ],
                    }
                    for group in groups
                ]
                for key, groups in duplicates.items()
            },
        }
        self._write('analysis.json', data)

    def write_errors(self, errors: list[ParseError]) -> None:
        """Write errors (only if any exist)."""
        if not errors:
            return
        data = [{'file': e.file, 'error': e.error, 'operation': e.operation} for e in errors]
        self._write('errors.json', data)

    def _metadata(self, **extra: str) -> dict[str, Any]:
        return {
            'parser_version': PARSER_VERSION,
            'generated_at': datetime.now(timezone.utc).isoformat(),
            **extra,
        }

    def _write(self, filename: str, data: Any) -> None:
        """Write data as JSON to a file in the output directory."""
        os.makedirs(self._output_dir, exist_ok=True)
        with open(os.path.join(self._output_dir, filename), 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=self._indent, ensure_ascii=False, default=str)
