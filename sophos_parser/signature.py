"""Canonical signatures for entity comparison."""
import hashlib
import json
from typing import Any

from sophos_parser.domain.constants import DIFF_IGNORED_ATTRIBUTES
from sophos_parser.domain.models import Entity


class SignatureService:
    """Builds order-independent signatures of parsed values and entities."""

    @staticmethod
    def canonical_value(value: Any) -> Any:
        """Normalize a parsed value so that equal content compares equal.

        Dict keys are sorted by json.dumps; list items are sorted by their
        own canonical form so that array order never matters.
        """
        if isinstance(value, dict):
            return {k: SignatureService.canonical_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            items = [SignatureService.canonical_value(item) for item in value]
            return sorted(items, key=SignatureService.value_signature)
        elif value is None:
            return None
        else:
            return str(value)

    @staticmethod
    def value_signature(value: Any) -> str:
        """Key-sorted compact JSON of an already canonical value."""
        return json.dumps(value, sort_keys=True, separators=(',', ':'), ensure_ascii=False)

    @staticmethod
    def signature(value: Any) -> str:
        return SignatureService.value_signature(SignatureService.canonical_value(value))

    @staticmethod
    def entity_signature(entity: Entity, ignored_attributes: frozenset[str] = DIFF_IGNORED_ATTRIBUTES) -> str:
        """Signature of an entity's fields and attributes, transaction id excluded."""
        attributes = {k: v for k, v in entity.attributes.items() if k not in ignored_attributes}
        return SignatureService.signature({'fields': entity.fields, 'attributes': attributes})

    @staticmethod
    def generate_hash(entity: Entity) -> str:
        """Generate SHA-512 hash of an entity signature."""
        return hashlib.sha512(SignatureService.entity_signature(entity).encode('utf-8')).hexdigest()
