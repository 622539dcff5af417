"""Durable translation records in the ``translations`` table.

A thin persistence contract: batched lookups, upsert with last-write-wins on
the (content_id, language, type) key, and coverage statistics. No caching or
retry here; the translation service composes this with the caches and the
provider.
"""
import logging
from datetime import datetime

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from wirsuchen import db
from wirsuchen.models import Translation
from wirsuchen.services.errors import InvalidTranslationFields, StoreWriteFailed
from wirsuchen.services.language_detection import SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)

# Field schema per content type
FIELD_SCHEMAS = {
    'job': ('title', 'description'),
    'deal': ('title', 'description'),
    'blog': ('title', 'excerpt', 'content'),
}


def validate_fields(content_type: str, fields: dict) -> dict:
    """Check translated fields against the content type schema.

    A subset of the schema is allowed. Returns a copy in schema order.
    """
    schema = FIELD_SCHEMAS.get(content_type)
    if schema is None:
        raise InvalidTranslationFields(f"Unknown content type '{content_type}'")
    if not isinstance(fields, dict) or not fields:
        raise InvalidTranslationFields("Translated fields must be a non-empty mapping")

    unknown = set(fields) - set(schema)
    if unknown:
        raise InvalidTranslationFields(
            f"Fields {sorted(unknown)} are not valid for content type '{content_type}'"
        )
    for name, value in fields.items():
        if not isinstance(value, str):
            raise InvalidTranslationFields(f"Field '{name}' must be a string")

    return {name: fields[name] for name in schema if name in fields}


class TranslationStore:

    def get_batch(self, content_ids: list, language: str, content_type: str) -> dict:
        """Return {content_id: fields} for all ids with a stored translation, in one query."""
        if not content_ids:
            return {}
        try:
            rows = Translation.query.filter(
                Translation.content_id.in_(list(content_ids)),
                Translation.language == language,
                Translation.type == content_type,
            ).all()
            return {row.content_id: row.translations for row in rows}
        except Exception as e:
            # A failed read is a miss; the caller falls through to the provider
            logger.warning(f"Translation batch lookup error: {e}")
            db.session.rollback()
            return {}

    def get(self, content_id: str, language: str, content_type: str) -> dict | None:
        return self.get_batch([content_id], language, content_type).get(content_id)

    def upsert(self, content_id: str, language: str, content_type: str, fields: dict):
        """Insert or overwrite the translation for (content_id, language, type)."""
        if language not in SUPPORTED_LANGUAGES:
            raise InvalidTranslationFields(f"Unsupported language '{language}'")
        fields = validate_fields(content_type, fields)

        try:
            self._write(content_id, language, content_type, fields)
        except IntegrityError:
            # Another writer inserted the same key first; last write wins
            db.session.rollback()
            try:
                self._write(content_id, language, content_type, fields)
            except Exception as e:
                db.session.rollback()
                raise StoreWriteFailed(f"Could not store {content_id}/{language}: {e}") from e
        except Exception as e:
            db.session.rollback()
            raise StoreWriteFailed(f"Could not store {content_id}/{language}: {e}") from e

    def _write(self, content_id, language, content_type, fields):
        existing = Translation.query.filter_by(
            content_id=content_id,
            language=language,
            type=content_type,
        ).first()

        if existing:
            existing.translations = fields
            existing.updated_at = datetime.utcnow()
        else:
            db.session.add(Translation(
                content_id=content_id,
                language=language,
                type=content_type,
                translations=fields,
            ))
        db.session.commit()

    def translated_ids_query(self, language: str, content_type: str):
        """Select of content ids translated into ``language``, for use in IN filters."""
        return db.select(Translation.content_id).where(
            Translation.language == language,
            Translation.type == content_type,
        )

    def covered_ids_query(self, content_type: str, languages: list):
        """Select of content ids that have a record in every one of ``languages``."""
        languages = list(languages)
        return db.select(Translation.content_id).where(
            Translation.type == content_type,
            Translation.language.in_(languages),
        ).group_by(Translation.content_id).having(
            func.count(func.distinct(Translation.language)) >= len(languages)
        )

    def languages_for(self, content_id: str, content_type: str | None = None) -> set:
        query = Translation.query.filter(Translation.content_id == content_id)
        if content_type:
            query = query.filter(Translation.type == content_type)
        return {row.language for row in query.all()}

    def languages_for_batch(self, content_ids: list, content_type: str) -> dict:
        """Return {content_id: set of languages} for the given ids, in one query."""
        languages = {content_id: set() for content_id in content_ids}
        if not content_ids:
            return languages
        rows = db.session.query(Translation.content_id, Translation.language).filter(
            Translation.content_id.in_(list(content_ids)),
            Translation.type == content_type,
        ).all()
        for content_id, language in rows:
            languages.setdefault(content_id, set()).add(language)
        return languages

    def counts_by_language(self, content_type: str) -> dict:
        rows = db.session.query(Translation.language, func.count(Translation.id)).filter(
            Translation.type == content_type
        ).group_by(Translation.language).all()
        return {language: count for language, count in rows}

    def item_coverage(self, content_id: str) -> dict:
        """Per-language coverage for a single content item."""
        rows = Translation.query.filter_by(content_id=content_id).order_by(Translation.language).all()
        languages = {row.language for row in rows}
        return {
            'content_id': content_id,
            'translations': [row.to_dict() for row in rows],
            'coverage': {
                'total_languages': len(SUPPORTED_LANGUAGES),
                'translated': len(languages),
                'missing': len(SUPPORTED_LANGUAGES) - len(languages),
                'languages': {lang: lang in languages for lang in SUPPORTED_LANGUAGES},
            },
        }

    def statistics(self, detailed: bool = False, recent_limit: int = 20) -> dict:
        """Overall translation counts, broken down by type and language."""
        rows = db.session.query(
            Translation.type, Translation.language, func.count(Translation.id)
        ).group_by(Translation.type, Translation.language).all()

        by_type = {}
        by_language = {lang: 0 for lang in SUPPORTED_LANGUAGES}
        total = 0
        for content_type, language, count in rows:
            bucket = by_type.setdefault(content_type, {**{lang: 0 for lang in SUPPORTED_LANGUAGES}, 'total': 0})
            bucket[language] = bucket.get(language, 0) + count
            bucket['total'] += count
            by_language[language] = by_language.get(language, 0) + count
            total += count

        stats = {
            'total_translations': total,
            'by_type': by_type,
            'by_language': by_language,
        }

        if detailed:
            recent = Translation.query.order_by(Translation.created_at.desc()).limit(recent_limit).all()
            stats['recent_translations'] = [
                {
                    'content_id': row.content_id,
                    'type': row.type,
                    'language': row.language,
                    'created_at': row.created_at.isoformat() if row.created_at else None,
                }
                for row in recent
            ]

        return stats
