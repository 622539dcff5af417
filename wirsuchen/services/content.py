"""Translatable content items, content ids and feed deduplication."""

from dataclasses import dataclass, field

from wirsuchen.services.errors import ContentIdMalformed

CONTENT_TYPES = ('job', 'deal', 'blog')


@dataclass
class ContentItem:
    """A translatable unit: one job, deal or blog post."""
    content_id: str
    content_type: str
    fields: dict = field(default_factory=dict)

    def translatable_fields(self) -> dict:
        """Fields with non-empty text, in their original order."""
        return {name: text for name, text in self.fields.items()
                if isinstance(text, str) and text.strip()}


def build_content_id(content_type: str, source: str | None, original_id) -> str:
    """Build ``<type>-<source>-<id>``, e.g. ``job-adzuna-42``."""
    if content_type not in CONTENT_TYPES:
        raise ContentIdMalformed(f"Unknown content type '{content_type}'")
    if original_id is None or not str(original_id).strip():
        raise ContentIdMalformed(f"Missing id for {content_type} from {source or 'db'}")
    source = (source or 'db').strip().lower().replace('-', '_') or 'db'
    return f'{content_type}-{source}-{str(original_id).strip()}'


def parse_content_id(content_id: str) -> tuple:
    """Split a content id into (content_type, source, original_id)."""
    parts = (content_id or '').split('-', 2)
    if len(parts) != 3 or parts[0] not in CONTENT_TYPES or not parts[1] or not parts[2]:
        raise ContentIdMalformed(f"Malformed content id '{content_id}'")
    return parts[0], parts[1], parts[2]


def item_from_model(obj) -> ContentItem:
    """Build a ContentItem from an Offer or BlogPost row."""
    content_id = build_content_id(obj.type, getattr(obj, 'source', None), obj.id)
    return ContentItem(content_id=content_id, content_type=obj.type, fields=obj.translatable_fields())


def _value(row, name):
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def _normalize(value) -> str:
    return str(value).lower().strip() if value is not None else ''


def dedupe_key(row) -> str:
    """Normalized title|company|location, plus the external id when present."""
    parts = [
        _normalize(_value(row, 'title')),
        _normalize(_value(row, 'company')),
        _normalize(_value(row, 'location')),
        _normalize(_value(row, 'external_id')),
    ]
    return '|'.join(part for part in parts if part)


def group_duplicates(rows) -> list:
    """Group postings by dedupe key, in first-seen order.

    Each group is a list whose first element is the first occurrence.
    """
    groups = {}
    for row in rows:
        groups.setdefault(dedupe_key(row), []).append(row)
    return list(groups.values())
