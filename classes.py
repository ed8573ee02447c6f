from app_models import Student, SchoolClass
from identifiers import generate_id
from storage import STUDENTS_KEY, CLASSES_KEY


class ClassDirectory:
    """Class records. Deleting a class that still has students is refused by the caller."""

    def __init__(self, repository):
        self.repository = repository

    def all_classes(self):
        return self.repository.load_records(CLASSES_KEY, SchoolClass)

    def _save(self, classes):
        self.repository.save_records(CLASSES_KEY, classes)

    def add_class(self, data):
        fields = {key: value for key, value in dict(data).items() if key != 'id'}
        school_class = SchoolClass.from_dict({**fields, 'id': generate_id()})

        classes = self.all_classes()
        classes.append(school_class)
        self._save(classes)
        return school_class

    def get_class_by_id(self, class_id):
        return next((c for c in self.all_classes() if c.id == class_id), None)

    def update_class(self, class_id, partial):
        classes = self.all_classes()
        for index, school_class in enumerate(classes):
            if school_class.id == class_id:
                classes[index] = school_class.merged(partial)
                self._save(classes)
                return classes[index]
        return None

    def delete_class(self, class_id):
        classes = self.all_classes()
        remaining = [c for c in classes if c.id != class_id]
        if len(remaining) == len(classes):
            return False
        self._save(remaining)
        return True

    def get_students_by_class(self, class_id):
        students = self.repository.load_records(STUDENTS_KEY, Student)
        return [student for student in students if student.class_id == class_id]

    def count_students_by_class(self, class_id):
        return len(self.get_students_by_class(class_id))

    def class_names(self):
        return {c.id: c.name for c in self.all_classes()}
