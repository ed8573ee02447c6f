import logging

from app_models import Student, SchoolClass
from classes import ClassDirectory
from fees import FeeLedger
from storage import CollectionRepository, STUDENTS_KEY, CLASSES_KEY
from students import StudentDirectory

logger = logging.getLogger(__name__)

SAMPLE_CLASSES = [
    {'id': 'c001', 'name': 'Sunflower', 'capacity': 20, 'teacher': 'Ms. Johnson',
     'description': 'Ages 3-4, focus on early development'},
    {'id': 'c002', 'name': 'Daisy', 'capacity': 15, 'teacher': 'Mr. Roberts',
     'description': 'Ages 4-5, pre-kindergarten preparation'},
    {'id': 'c003', 'name': 'Tulip', 'capacity': 18, 'teacher': 'Ms. Garcia',
     'description': 'Ages 3-4, bilingual program'},
]

SAMPLE_STUDENTS = [
    {'id': 'lp001', 'name': 'Ethan Parker', 'contact_number': '555-123-4567', 'date_of_birth': '2019-03-15',
     'address': '123 Pine Avenue', 'father_name': 'James Parker', 'mother_name': 'Sarah Parker',
     'emergency_contact': '555-987-6543', 'enrollment_date': '2022-08-25', 'class_id': 'c001',
     'notes': 'Allergic to peanuts'},
    {'id': 'lp002', 'name': 'Sophia Rodriguez', 'contact_number': '555-234-5678', 'date_of_birth': '2018-11-22',
     'address': '456 Elm Street', 'father_name': 'Miguel Rodriguez', 'mother_name': 'Isabella Rodriguez',
     'emergency_contact': '555-876-5432', 'enrollment_date': '2021-09-10', 'class_id': 'c002',
     'notes': 'Loves art activities'},
    {'id': 'lp003', 'name': 'Noah Johnson', 'contact_number': '555-345-6789', 'date_of_birth': '2019-07-03',
     'address': '789 Oak Road', 'father_name': 'Michael Johnson', 'mother_name': 'Lisa Johnson',
     'emergency_contact': '555-765-4321', 'enrollment_date': '2022-01-15', 'class_id': 'c001',
     'notes': 'Has an older sibling in elementary school'},
    {'id': 'lp004', 'name': 'Olivia Williams', 'contact_number': '555-456-7890', 'date_of_birth': '2019-01-29',
     'address': '101 Maple Drive', 'father_name': 'David Williams', 'mother_name': 'Emma Williams',
     'emergency_contact': '555-654-3210', 'enrollment_date': '2022-09-01', 'class_id': 'c003',
     'notes': 'Needs assistance with speech development'},
    {'id': 'lp005', 'name': 'Liam Brown', 'contact_number': '555-567-8901', 'date_of_birth': '2018-09-12',
     'address': '202 Cedar Lane', 'father_name': 'Robert Brown', 'mother_name': 'Jennifer Brown',
     'emergency_contact': '555-543-2109', 'enrollment_date': '2021-08-20', 'class_id': 'c002',
     'notes': 'Excels in physical activities'},
]


class SchoolOffice:
    """Student and class directories plus the fee ledger, all over one store"""

    def __init__(self, store):
        self.repository = CollectionRepository(store)
        self.ledger = FeeLedger(self.repository)
        self.classes = ClassDirectory(self.repository)
        self.students = StudentDirectory(self.repository, self.ledger)

    def purge_orphan_ledgers(self):
        """Remove ledgers left behind by an interrupted student delete"""
        student_ids = {student.id for student in self.students.all_students()}
        orphans = [entry for entry in self.ledger.all_ledgers() if entry.student_id not in student_ids]
        for entry in orphans:
            logger.warning("Removing orphaned fee ledger %s of missing student %s", entry.id, entry.student_id)
            self.ledger.delete_ledger(entry.student_id)
        return len(orphans)

    def seed_sample_data(self):
        """Fill the demo kindergarten into a school with no classes and no students"""
        # Sample students reference the sample class ids, so both go in together
        if self.classes.all_classes() or self.students.all_students():
            return False

        self.repository.save_records(CLASSES_KEY, [SchoolClass.from_dict(c) for c in SAMPLE_CLASSES])
        self.repository.save_records(STUDENTS_KEY, [Student.from_dict(s) for s in SAMPLE_STUDENTS])
        logger.info("Seeded sample classes and students")
        return True
