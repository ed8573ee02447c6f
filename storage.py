"""
Key-value persistence for the school office.

Every collection (students, classes, fee entries) is stored as one JSON array
under a fixed key. Reads always return the whole collection and writes always
replace it, so the last writer wins.
"""
import json
import logging

from app_models import db, StoredCollection

logger = logging.getLogger(__name__)

STUDENTS_KEY = 'students'
CLASSES_KEY = 'classes'
FEES_KEY = 'fee_entries'

COLLECTION_KEYS = (STUDENTS_KEY, CLASSES_KEY, FEES_KEY)


class KeyValueStore:
    """Interface of the blob store behind the collection repository"""

    def get(self, key):
        raise NotImplementedError

    def set(self, key, value):
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self, initial=None):
        self._data = dict(initial or {})

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        self._data[key] = value

    def delete(self, key):
        self._data.pop(key, None)


class DatabaseStore(KeyValueStore):
    """Blob store on the ``stored_collections`` table; needs an application context"""

    def get(self, key):
        row = db.session.get(StoredCollection, key)
        return row.payload if row else None

    def set(self, key, value):
        row = db.session.get(StoredCollection, key)
        if row is None:
            row = StoredCollection(key=key, payload=value)
            db.session.add(row)
        else:
            row.payload = value
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def delete(self, key):
        row = db.session.get(StoredCollection, key)
        if row is not None:
            db.session.delete(row)
            db.session.commit()


class CollectionRepository:
    def __init__(self, store):
        self.store = store

    def load_collection(self, key):
        """Read the collection stored under ``key``; missing or corrupt data reads as empty"""
        stored = self.store.get(key)
        if not stored:
            return []

        try:
            items = json.loads(stored)
        except (TypeError, ValueError):
            logger.exception("Error parsing %s data, treating it as empty", key)
            return []

        if not isinstance(items, list):
            logger.error("Stored %s data is not a list (%s), treating it as empty", key, type(items).__name__)
            return []
        return items

    def save_collection(self, key, items):
        payload = [item.to_dict() if hasattr(item, 'to_dict') else item for item in items]
        self.store.set(key, json.dumps(payload))

    def load_records(self, key, record_type):
        records = []
        for item in self.load_collection(key):
            if not isinstance(item, dict) or not item.get('id'):
                logger.warning("Skipping malformed entry in %s: %r", key, item)
                continue
            try:
                records.append(record_type.from_dict(item))
            except (TypeError, ValueError):
                logger.warning("Skipping unreadable entry in %s: %r", key, item)
        return records

    def save_records(self, key, records):
        self.save_collection(key, records)
