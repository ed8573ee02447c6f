import json
import logging

from app_models import FeeEntry, Student, SchoolClass
from identifiers import ID_ALPHABET, generate_id
from storage import CLASSES_KEY, FEES_KEY, STUDENTS_KEY, CollectionRepository, DatabaseStore, MemoryStore


def test_generate_id_is_short_base36():
    ids = {generate_id() for _ in range(200)}
    assert all(len(i) == 7 for i in ids)
    assert all(set(i) <= set(ID_ALPHABET) for i in ids)
    assert len(ids) > 190


def test_save_then_load_returns_same_collection():
    repository = CollectionRepository(MemoryStore())
    data = [{'id': 'a1', 'name': 'Ethan'}, {'id': 'b2', 'name': 'Sophia', 'tags': [1, 2]}]
    repository.save_collection(STUDENTS_KEY, data)
    assert repository.load_collection(STUDENTS_KEY) == data


def test_missing_key_loads_as_empty():
    repository = CollectionRepository(MemoryStore())
    assert repository.load_collection(CLASSES_KEY) == []


def test_corrupt_payload_is_logged_and_loads_as_empty(caplog):
    repository = CollectionRepository(MemoryStore({STUDENTS_KEY: '{not json'}))
    with caplog.at_level(logging.ERROR, logger='storage'):
        assert repository.load_collection(STUDENTS_KEY) == []
    assert 'Error parsing students data' in caplog.text


def test_non_list_payload_loads_as_empty():
    repository = CollectionRepository(MemoryStore({STUDENTS_KEY: json.dumps({'id': 'x'})}))
    assert repository.load_collection(STUDENTS_KEY) == []


def test_save_overwrites_whole_collection():
    store = MemoryStore()
    repository = CollectionRepository(store)
    repository.save_collection(CLASSES_KEY, [{'id': '1'}, {'id': '2'}])
    repository.save_collection(CLASSES_KEY, [{'id': '3'}])
    assert json.loads(store.get(CLASSES_KEY)) == [{'id': '3'}]


def test_load_records_skips_malformed_entries():
    payload = json.dumps([
        {'id': 'c1', 'name': 'Sunflower', 'capacity': 20},
        'garbage',
        {'name': 'no id'},
        {'id': 'c2', 'name': 'Daisy', 'capacity': 'lots'},
    ])
    repository = CollectionRepository(MemoryStore({CLASSES_KEY: payload}))
    classes = repository.load_records(CLASSES_KEY, SchoolClass)
    assert [c.id for c in classes] == ['c1']


def test_records_from_older_revisions_load_with_absent_optionals():
    payload = json.dumps([{'id': 's1', 'name': 'Noah', 'contact_number': '555', 'date_of_birth': '2019-07-03',
                           'legacy_field': 'ignored'}])
    repository = CollectionRepository(MemoryStore({STUDENTS_KEY: payload}))
    student = repository.load_records(STUDENTS_KEY, Student)[0]
    assert student.name == 'Noah'
    assert student.class_id is None
    assert student.father_name is None


def test_database_store_round_trip(db_app):
    with db_app.app_context():
        store = DatabaseStore()
        assert store.get(STUDENTS_KEY) is None
        store.set(STUDENTS_KEY, '[{"id": "x"}]')
        store.set(STUDENTS_KEY, '[{"id": "y"}]')
        assert store.get(STUDENTS_KEY) == '[{"id": "y"}]'
        store.delete(STUDENTS_KEY)
        assert store.get(STUDENTS_KEY) is None


def test_ledger_with_unreadable_line_items_is_skipped():
    payload = json.dumps([
        {'id': 'f1', 'student_id': 's1', 'monthly_fees': [None]},
        {'id': 'f2', 'student_id': 's2', 'deposits': ['x']},
        {'id': 'f3', 'student_id': 's3', 'monthly_fees': [{'id': 'm1', 'month': '2024-04', 'amount': 1500}]},
    ])
    repository = CollectionRepository(MemoryStore({FEES_KEY: payload}))
    entries = repository.load_records(FEES_KEY, FeeEntry)
    assert [e.student_id for e in entries] == ['s3']
    assert entries[0].monthly_fees[0].amount == 1500
