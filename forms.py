from datetime import date, datetime

from flask_wtf import FlaskForm
from wtforms import DateField, FloatField, IntegerField, PasswordField, SelectField, StringField, TextAreaField
from wtforms.validators import DataRequired, InputRequired, NumberRange, Optional, Regexp, ValidationError


def _today():
    return date.today()


def _current_month():
    return date.today().strftime('%Y-%m')


def _parse_iso_date(value):
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def positive_amount(form, field):
    if field.data is None or field.data <= 0:
        raise ValidationError('Amount must be greater than zero')


def _blank_to_none(value):
    if isinstance(value, str):
        value = value.strip()
    return value or None


class LoginForm(FlaskForm):
    password = PasswordField('Administrator Password', validators=[DataRequired()])


class StudentForm(FlaskForm):
    name = StringField('Full Name', validators=[DataRequired(message='Name is required')])
    date_of_birth = DateField('Date of Birth', format='%Y-%m-%d',
                              validators=[DataRequired(message='Date of Birth is required')])
    contact_number = StringField('Contact Number', validators=[DataRequired(message='Contact number is required')])
    father_name = StringField("Father's Name", filters=[_blank_to_none])
    mother_name = StringField("Mother's Name", filters=[_blank_to_none])
    emergency_contact = StringField('Emergency Contact', filters=[_blank_to_none])
    address = StringField('Address', filters=[_blank_to_none])
    enrollment_date = DateField('Enrollment Date', format='%Y-%m-%d', validators=[Optional()])
    class_id = SelectField('Class', choices=[], validate_choice=False, filters=[_blank_to_none])
    notes = TextAreaField('Notes', filters=[_blank_to_none])

    @classmethod
    def for_student(cls, student):
        data = student.to_dict()
        data['date_of_birth'] = _parse_iso_date(student.date_of_birth)
        data['enrollment_date'] = _parse_iso_date(student.enrollment_date)
        data['class_id'] = student.class_id or ''
        return cls(data=data)

    def set_class_choices(self, classes):
        self.class_id.choices = [('', 'No class')] + [(c.id, c.name) for c in classes]

    def record_data(self):
        """Form values in the shape the student directory stores"""
        return {
            'name': self.name.data.strip(),
            'date_of_birth': self.date_of_birth.data.isoformat(),
            'contact_number': self.contact_number.data.strip(),
            'father_name': self.father_name.data,
            'mother_name': self.mother_name.data,
            'emergency_contact': self.emergency_contact.data,
            'address': self.address.data,
            'enrollment_date': self.enrollment_date.data.isoformat() if self.enrollment_date.data else None,
            'class_id': self.class_id.data,
            'notes': self.notes.data,
        }


class ClassForm(FlaskForm):
    name = StringField('Class Name', validators=[DataRequired(message='Class name is required')])
    capacity = IntegerField('Capacity', validators=[
        InputRequired(message='Capacity is required'),
        NumberRange(min=1, message='Capacity must be greater than 0'),
    ])
    teacher = StringField('Teacher', filters=[_blank_to_none])
    description = TextAreaField('Description', filters=[_blank_to_none])

    def record_data(self):
        return {
            'name': self.name.data.strip(),
            'capacity': self.capacity.data,
            'teacher': self.teacher.data,
            'description': self.description.data,
        }


class OneTimeFeesForm(FlaskForm):
    registration_fee = FloatField('Registration Fee', default=0,
                                  validators=[InputRequired(), NumberRange(min=0)])
    admission_fee = FloatField('Admission Fee', default=0,
                               validators=[InputRequired(), NumberRange(min=0)])
    annual_charges = FloatField('Annual Charges', default=0,
                                validators=[InputRequired(), NumberRange(min=0)])


class MonthlyFeeForm(FlaskForm):
    month = StringField('Month', default=_current_month, validators=[
        DataRequired(),
        Regexp(r'^\d{4}-(0[1-9]|1[0-2])$', message='Month must look like 2024-01'),
    ])
    amount = FloatField('Amount', validators=[InputRequired(), positive_amount])


class DepositForm(FlaskForm):
    amount = FloatField('Amount', validators=[InputRequired(), positive_amount])
    date = DateField('Date', format='%Y-%m-%d', default=_today, validators=[DataRequired()])
    remarks = StringField('Remarks', filters=[_blank_to_none])


class ReceiptOptionsForm(FlaskForm):
    class Meta:
        csrf = False

    session_period = StringField('Session Period')
    fee_period = StringField('Fee Period')
    number_of_months = StringField('No. Of Months')
