from app_models import Student, SchoolClass
from identifiers import generate_id
from storage import STUDENTS_KEY, CLASSES_KEY


class StudentDirectory:
    """Student records; creating or deleting a student also manages its fee ledger"""

    def __init__(self, repository, ledger):
        self.repository = repository
        self.ledger = ledger

    def all_students(self):
        return self.repository.load_records(STUDENTS_KEY, Student)

    def _save(self, students):
        self.repository.save_records(STUDENTS_KEY, students)

    def add_student(self, data):
        fields = {key: value for key, value in dict(data).items() if key != 'id'}
        student = Student.from_dict({**fields, 'id': generate_id()})

        students = self.all_students()
        students.append(student)
        self._save(students)

        self.ledger.initialize_ledger(student.id)
        return student

    def get_student_by_id(self, student_id):
        return next((s for s in self.all_students() if s.id == student_id), None)

    def update_student(self, student_id, partial):
        students = self.all_students()
        for index, student in enumerate(students):
            if student.id == student_id:
                students[index] = student.merged(partial)
                self._save(students)
                return students[index]
        return None

    def delete_student(self, student_id):
        """Delete the student and its ledger; returns False when nothing matched"""
        students = self.all_students()
        remaining = [s for s in students if s.id != student_id]
        if len(remaining) == len(students):
            return False

        # Ledger goes first: a crash in between leaves an orphan ledger, which
        # SchoolOffice.purge_orphan_ledgers removes on the next start.
        self.ledger.delete_ledger(student_id)
        self._save(remaining)
        return True

    def search_students(self, query):
        students = self.all_students()
        if not query or not query.strip():
            return students

        needle = query.lower()
        class_names = {c.id: c.name for c in self.repository.load_records(CLASSES_KEY, SchoolClass)}

        def matches(student):
            class_name = class_names.get(student.class_id) if student.class_id else None
            return (
                needle in student.id.lower()
                or needle in (student.name or '').lower()
                or query in (student.contact_number or '')
                or (student.father_name and needle in student.father_name.lower())
                or (student.mother_name and needle in student.mother_name.lower())
                or (class_name and needle in class_name.lower())
            )

        return [student for student in students if matches(student)]
