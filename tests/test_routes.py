import json

from app import create_app
from config import TestingConfig
from storage import FEES_KEY, STUDENTS_KEY, MemoryStore


def _add_student(office, **overrides):
    data = {'name': 'Ethan Parker', 'contact_number': '555-123-4567', 'date_of_birth': '2019-03-15',
            'father_name': 'James Parker', 'mother_name': 'Sarah Parker'}
    data.update(overrides)
    return office.students.add_student(data)


class TestLogin:
    def test_pages_require_login(self, anonymous_client):
        response = anonymous_client.get('/classes')
        assert response.status_code == 302
        assert '/login' in response.headers['Location']

    def test_wrong_password_is_rejected(self, anonymous_client):
        response = anonymous_client.post('/login', data={'password': 'nope'})
        assert response.status_code == 200
        assert b'Incorrect administrator password. Please try again.' in response.data

    def test_login_returns_to_requested_page(self, anonymous_client):
        response = anonymous_client.post('/login?next=/classes', data={'password': 'test-password'})
        assert response.status_code == 302
        assert response.headers['Location'].endswith('/classes')

        response = anonymous_client.get('/', follow_redirects=True)
        assert b'Welcome back, Administrator!' in response.data

    def test_login_ignores_external_next(self, anonymous_client):
        response = anonymous_client.post('/login?next=//evil.example.com', data={'password': 'test-password'})
        assert 'evil.example.com' not in response.headers['Location']

    def test_logout(self, client):
        client.get('/logout')
        assert client.get('/').status_code == 302


class TestStudents:
    def test_index_lists_students(self, client, web_office):
        _add_student(web_office)
        response = client.get('/')
        assert response.status_code == 200
        assert b'Ethan Parker' in response.data
        assert response.headers['X-Frame-Options'] == 'SAMEORIGIN'

    def test_index_search(self, client, web_office):
        _add_student(web_office)
        _add_student(web_office, name='Sophia Rodriguez', father_name='Miguel Rodriguez')
        response = client.get('/?q=miguel&view=table')
        assert b'Sophia Rodriguez' in response.data
        assert b'Ethan Parker' not in response.data

    def test_add_student(self, client, web_office):
        response = client.post('/students/new', data={
            'name': 'Noah Johnson',
            'date_of_birth': '2019-07-03',
            'contact_number': '555-345-6789',
            'father_name': '',
            'class_id': '',
        }, follow_redirects=True)

        assert b'Student added successfully' in response.data
        students = web_office.students.all_students()
        assert [s.name for s in students] == ['Noah Johnson']
        assert students[0].class_id is None
        assert students[0].father_name is None
        assert web_office.ledger.get_ledger(students[0].id) is not None

    def test_add_student_requires_name(self, client, web_office):
        response = client.post('/students/new', data={
            'date_of_birth': '2019-07-03',
            'contact_number': '555-345-6789',
        })
        assert response.status_code == 200
        assert b'Please fill in all required fields' in response.data
        assert web_office.students.all_students() == []

    def test_edit_student(self, client, web_office):
        student = _add_student(web_office)
        assert client.get(f'/students/{student.id}/edit').status_code == 200

        response = client.post(f'/students/{student.id}/edit', data={
            'name': 'Ethan Parker',
            'date_of_birth': '2019-03-15',
            'contact_number': '555-000-0000',
        }, follow_redirects=True)

        assert b'Student updated successfully' in response.data
        assert web_office.students.get_student_by_id(student.id).contact_number == '555-000-0000'

    def test_delete_student(self, client, web_office):
        student = _add_student(web_office)
        response = client.post(f'/students/{student.id}/delete', follow_redirects=True)
        assert b'Student deleted successfully' in response.data
        assert web_office.ledger.get_ledger(student.id) is None

        response = client.post(f'/students/{student.id}/delete', follow_redirects=True)
        assert b'Failed to delete student' in response.data

    def test_unknown_student_is_404(self, client):
        assert client.get('/students/missing/edit').status_code == 404
        assert client.get('/students/missing/fees').status_code == 404


class TestClasses:
    def test_add_class(self, client, web_office):
        response = client.post('/classes/new', data={'name': 'Sunflower', 'capacity': '20'}, follow_redirects=True)
        assert b'Class added successfully' in response.data
        assert [c.capacity for c in web_office.classes.all_classes()] == [20]

    def test_capacity_must_be_positive(self, client, web_office):
        response = client.post('/classes/new', data={'name': 'Sunflower', 'capacity': '0'})
        assert b'Please fill in all required fields' in response.data
        assert web_office.classes.all_classes() == []

    def test_class_with_students_cannot_be_deleted(self, client, web_office):
        school_class = web_office.classes.add_class({'name': 'Sunflower', 'capacity': 20})
        _add_student(web_office, class_id=school_class.id)

        response = client.post(f'/classes/{school_class.id}/delete', follow_redirects=True)

        assert b'Cannot delete class with 1 students assigned to it' in response.data
        assert web_office.classes.get_class_by_id(school_class.id) is not None

    def test_delete_empty_class(self, client, web_office):
        school_class = web_office.classes.add_class({'name': 'Daisy', 'capacity': 15})
        response = client.post(f'/classes/{school_class.id}/delete', follow_redirects=True)
        assert b'Class deleted successfully' in response.data

    def test_classes_page_shows_enrollment(self, client, web_office):
        school_class = web_office.classes.add_class({'name': 'Tulip', 'capacity': 18})
        _add_student(web_office, class_id=school_class.id)
        response = client.get('/classes')
        assert response.status_code == 200
        assert b'Tulip' in response.data


class TestFees:
    def test_fees_page_opens_missing_ledger(self, client, web_office, store):
        student = _add_student(web_office)
        web_office.ledger.delete_ledger(student.id)

        assert client.get(f'/students/{student.id}/fees?tab=summary').status_code == 200
        assert web_office.ledger.get_ledger(student.id) is not None

    def test_save_one_time_fees(self, client, web_office):
        student = _add_student(web_office)
        response = client.post(f'/students/{student.id}/fees/one-time', data={
            'registration_fee': '500', 'admission_fee': '1000', 'annual_charges': '0',
        }, follow_redirects=True)
        assert b'Fees updated successfully' in response.data
        assert web_office.ledger.get_ledger(student.id).admission_fee == 1000

    def test_monthly_fee_validation(self, client, web_office):
        student = _add_student(web_office)
        response = client.post(f'/students/{student.id}/fees/monthly', data={'month': '2024-13', 'amount': '1500'})
        assert b'Please provide valid month and amount' in response.data
        response = client.post(f'/students/{student.id}/fees/monthly', data={'month': '2024-04', 'amount': '0'})
        assert b'Please provide valid month and amount' in response.data
        assert web_office.ledger.get_ledger(student.id).monthly_fees == []

    def test_monthly_fee_lifecycle(self, client, web_office):
        student = _add_student(web_office)
        response = client.post(f'/students/{student.id}/fees/monthly', data={'month': '2024-04', 'amount': '1500'},
                               follow_redirects=True)
        assert b'Monthly fee added successfully' in response.data
        fee = web_office.ledger.get_ledger(student.id).monthly_fees[0]

        client.post(f'/students/{student.id}/fees/monthly/{fee.id}/toggle')
        assert web_office.ledger.get_ledger(student.id).monthly_fees[0].paid is True

        response = client.post(f'/students/{student.id}/fees/monthly/{fee.id}/delete', follow_redirects=True)
        assert b'Monthly fee removed successfully' in response.data
        assert web_office.ledger.get_ledger(student.id).monthly_fees == []

    def test_deposit_and_receipt(self, client, web_office):
        student = _add_student(web_office)
        web_office.ledger.update_ledger(student.id, {'registration_fee': 500})
        web_office.ledger.add_monthly_fee(student.id, '2024-04', 1500)

        response = client.post(f'/students/{student.id}/fees/deposits', data={
            'amount': '1500', 'date': '2024-04-10', 'remarks': 'cash',
        }, follow_redirects=True)
        assert b'Deposit added successfully' in response.data
        deposit = web_office.ledger.get_ledger(student.id).deposits[0]
        assert deposit.date == '2024-04-10'

        response = client.get(f'/students/{student.id}/fees/deposits/{deposit.id}/receipt?fee_period=April+2024')
        assert response.status_code == 200
        assert b'Received with thanks Rs. One Thousand Five Hundred Only' in response.data
        assert b'Amount Due: 500.00' in response.data
        assert b'April 2024' in response.data
        assert b'10th April, 2024' in response.data
        assert b'window.print()' not in response.data

        response = client.get(f'/students/{student.id}/fees/deposits/{deposit.id}/receipt?print=1')
        assert b'window.print()' in response.data

    def test_deposit_validation(self, client, web_office):
        student = _add_student(web_office)
        response = client.post(f'/students/{student.id}/fees/deposits', data={'amount': '-5', 'date': '2024-04-10'})
        assert b'Please provide valid amount and date' in response.data

    def test_remove_deposit(self, client, web_office):
        student = _add_student(web_office)
        deposit = web_office.ledger.add_deposit(student.id, 100, '2024-04-10')

        response = client.post(f'/students/{student.id}/fees/deposits/{deposit.id}/delete', follow_redirects=True)
        assert b'Deposit removed successfully' in response.data
        response = client.post(f'/students/{student.id}/fees/deposits/{deposit.id}/delete', follow_redirects=True)
        assert b'Deposit not found' in response.data
        assert client.get(f'/students/{student.id}/fees/deposits/{deposit.id}/receipt').status_code == 404


def test_health(client, web_office):
    _add_student(web_office)
    payload = client.get('/health').get_json()
    assert payload['status'] == 'ok'
    assert payload['collections'] == {'students': 1, 'classes': 0, 'fee_entries': 1}


def test_orphan_ledgers_are_purged_at_startup():
    store = MemoryStore({
        STUDENTS_KEY: json.dumps([{'id': 's1', 'name': 'Ethan', 'contact_number': '1', 'date_of_birth': '2019-01-01'}]),
        FEES_KEY: json.dumps([{'id': 'f1', 'student_id': 's1'}, {'id': 'f2', 'student_id': 'gone'}]),
    })
    app = create_app(TestingConfig, store=store)
    office = app.extensions['school_office']
    assert [e.student_id for e in office.ledger.all_ledgers()] == ['s1']


def test_database_backed_app_persists_students(db_app):
    client = db_app.test_client()
    with client.session_transaction() as sess:
        sess['logged_in'] = True
        sess['user_role'] = 'admin'

    client.post('/students/new', data={
        'name': 'Olivia Williams', 'date_of_birth': '2019-01-29', 'contact_number': '555-456-7890',
    })

    with db_app.app_context():
        names = [s.name for s in db_app.extensions['school_office'].students.all_students()]
    assert names == ['Olivia Williams']
