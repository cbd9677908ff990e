"""Entry points for parsing, diffing and cross-referencing exports.

Every function accepts raw export text. `diff_configurations` also
accepts already extracted models so that a caller diffing one snapshot
against several others parses it only once.
"""

import logging

from sophos_parser.config_reader import parse_document
from sophos_parser.diff.engine import DiffEngine
from sophos_parser.domain.models import (
    ConfigurationModel, DiffOptions, DiffResult, EntityReferenceTree, ReferenceIndexOptions,
)
from sophos_parser.extraction.entity_extractor import EntityExtractor
from sophos_parser.references.cancellation import CancellationToken
from sophos_parser.references.reference_index import ProgressCallback, ReferenceIndexBuilder

logger = logging.getLogger(__name__)


def parse_configuration(xml_text: str | bytes) -> ConfigurationModel:
    """Parse export text into a ConfigurationModel.

    Raises:
        ConfigurationParseError: malformed XML or no Configuration element.
    """
    return EntityExtractor().extract(parse_document(xml_text))


async def build_reference_index(
    xml_text: str | bytes,
    on_progress: ProgressCallback | None = None,
    cancel_token: CancellationToken | None = None,
    options: ReferenceIndexOptions | None = None,
) -> dict[str, EntityReferenceTree] | None:
    """Build the reference index cooperatively; None when cancelled."""
    document = parse_document(xml_text)
    return await ReferenceIndexBuilder(options).build(document, on_progress, cancel_token)


def build_reference_index_sync(
    xml_text: str | bytes, options: ReferenceIndexOptions | None = None,
) -> dict[str, EntityReferenceTree]:
    return ReferenceIndexBuilder(options).build_sync(parse_document(xml_text))


def diff_configurations(
    old: str | bytes | ConfigurationModel,
    new: str | bytes | ConfigurationModel,
    options: DiffOptions | None = None,
) -> DiffResult:
    """Diff two snapshots given as export text or extracted models."""
    old_model = old if isinstance(old, ConfigurationModel) else parse_configuration(old)
    new_model = new if isinstance(new, ConfigurationModel) else parse_configuration(new)
    return DiffEngine(options).diff(old_model, new_model)
