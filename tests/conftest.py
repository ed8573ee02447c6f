import os
import sys

import pytest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from app import create_app  # noqa: E402
from config import TestingConfig  # noqa: E402
from school import SchoolOffice  # noqa: E402
from storage import MemoryStore  # noqa: E402


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def office(store):
    return SchoolOffice(store)


@pytest.fixture
def app(store):
    return create_app(TestingConfig, store=store)


@pytest.fixture
def db_app():
    """App on the real SQLAlchemy-backed store"""
    return create_app(TestingConfig)


@pytest.fixture
def web_office(app):
    return app.extensions['school_office']


@pytest.fixture
def client(app):
    with app.test_client() as c:
        with c.session_transaction() as sess:
            sess['logged_in'] = True
            sess['username'] = 'Administrator'
            sess['user_role'] = 'admin'
        yield c


@pytest.fixture
def anonymous_client(app):
    with app.test_client() as c:
        yield c
