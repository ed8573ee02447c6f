from dataclasses import dataclass, field, fields, asdict, replace
from datetime import datetime
from typing import List, Optional

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


# Database Models
class StoredCollection(db.Model):
    """One serialized collection (students, classes or fee entries) per key"""
    __tablename__ = 'stored_collections'

    key = db.Column(db.String(100), primary_key=True)
    payload = db.Column(db.Text, nullable=False, default='[]')
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<StoredCollection {self.key}>'


# Records kept inside the collections
class Record:
    """Plain record serialized as a JSON object"""

    # Fields a partial update may never change
    fixed_fields = frozenset({'id'})

    @classmethod
    def field_names(cls):
        return {f.name for f in fields(cls)}

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise TypeError(f"{cls.__name__} expects an object, got {type(data).__name__}")
        known = cls.field_names()
        return cls(**{key: value for key, value in data.items() if key in known})

    def to_dict(self):
        return asdict(self)

    def merged(self, partial):
        """Return a copy with the known fields of ``partial`` applied; fixed fields never change"""
        known = self.field_names() - self.fixed_fields
        return replace(self, **{key: value for key, value in partial.items() if key in known})


@dataclass
class Student(Record):
    id: str
    name: str = ''
    contact_number: str = ''
    date_of_birth: str = ''
    address: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    emergency_contact: Optional[str] = None
    enrollment_date: Optional[str] = None
    class_id: Optional[str] = None
    notes: Optional[str] = None

    @property
    def first_name(self):
        return self.name.split(' ')[0] if self.name else ''

    @property
    def last_name(self):
        return ' '.join(self.name.split(' ')[1:]) if self.name else ''


@dataclass
class SchoolClass(Record):
    id: str
    name: str = ''
    capacity: int = 0
    teacher: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        record = super().from_dict(data)
        record.capacity = int(record.capacity or 0)
        return record


@dataclass
class MonthlyFee(Record):
    id: str
    month: str = ''
    amount: float = 0.0
    paid: bool = False

    @classmethod
    def from_dict(cls, data):
        record = super().from_dict(data)
        record.amount = float(record.amount or 0)
        record.paid = bool(record.paid)
        return record


@dataclass
class Deposit(Record):
    id: str
    amount: float = 0.0
    date: str = ''
    remarks: Optional[str] = None

    @classmethod
    def from_dict(cls, data):
        record = super().from_dict(data)
        record.amount = float(record.amount or 0)
        return record


def _as_records(items, record_type):
    return [item if isinstance(item, record_type) else record_type.from_dict(item) for item in items or []]


@dataclass
class FeeEntry(Record):
    """Fee ledger of a single student"""
    fixed_fields = frozenset({'id', 'student_id'})

    id: str
    student_id: str = ''
    registration_fee: float = 0.0
    admission_fee: float = 0.0
    annual_charges: float = 0.0
    monthly_fees: List[MonthlyFee] = field(default_factory=list)
    deposits: List[Deposit] = field(default_factory=list)

    def __post_init__(self):
        self.registration_fee = float(self.registration_fee or 0)
        self.admission_fee = float(self.admission_fee or 0)
        self.annual_charges = float(self.annual_charges or 0)
        self.monthly_fees = _as_records(self.monthly_fees, MonthlyFee)
        self.deposits = _as_records(self.deposits, Deposit)

    def find_monthly_fee(self, fee_id):
        return next((fee for fee in self.monthly_fees if fee.id == fee_id), None)

    def find_deposit(self, deposit_id):
        return next((deposit for deposit in self.deposits if deposit.id == deposit_id), None)
