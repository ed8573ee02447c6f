"""
Per-student fee ledgers.

A ledger holds the one-time fees (registration, admission, annual charges),
one line item per billed month and every deposit received. Totals are never
stored; they are recomputed from a ledger snapshot with the functions at the
bottom of this module.

The ledger does not validate amounts or dates. Forms do that before calling in.
"""
from collections import namedtuple

from app_models import FeeEntry, MonthlyFee, Deposit
from identifiers import generate_id
from storage import FEES_KEY


class FeeLedger:
    def __init__(self, repository):
        self.repository = repository

    def _load(self):
        return self.repository.load_records(FEES_KEY, FeeEntry)

    def _save(self, entries):
        self.repository.save_records(FEES_KEY, entries)

    def all_ledgers(self):
        return self._load()

    def get_ledger(self, student_id):
        return next((entry for entry in self._load() if entry.student_id == student_id), None)

    def initialize_ledger(self, student_id):
        """Return the student's ledger, creating a zeroed one if there is none yet"""
        entries = self._load()
        existing = next((entry for entry in entries if entry.student_id == student_id), None)
        if existing:
            return existing

        entry = FeeEntry(id=generate_id(), student_id=student_id)
        entries.append(entry)
        self._save(entries)
        return entry

    def update_ledger(self, student_id, partial):
        """Merge top-level fields into the ledger (e.g. replace all deposits)"""
        self.initialize_ledger(student_id)
        entries = self._load()
        for index, entry in enumerate(entries):
            if entry.student_id == student_id:
                entries[index] = entry.merged(partial)
                self._save(entries)
                return entries[index]
        return None

    def delete_ledger(self, student_id):
        entries = self._load()
        remaining = [entry for entry in entries if entry.student_id != student_id]
        if len(remaining) == len(entries):
            return False
        self._save(remaining)
        return True

    def add_monthly_fee(self, student_id, month, amount):
        """Bill ``amount`` for ``month``; an already billed month gets its amount overwritten"""
        entries = self._load()
        entry = next((e for e in entries if e.student_id == student_id), None)
        if entry is None:
            return None

        fee = next((f for f in entry.monthly_fees if f.month == month), None)
        if fee:
            fee.amount = amount
        else:
            fee = MonthlyFee(id=generate_id(), month=month, amount=amount, paid=False)
            entry.monthly_fees.append(fee)

        self._save(entries)
        return fee

    def add_deposit(self, student_id, amount, date, remarks=None):
        entries = self._load()
        entry = next((e for e in entries if e.student_id == student_id), None)
        if entry is None:
            return None

        deposit = Deposit(id=generate_id(), amount=amount, date=date, remarks=remarks)
        entry.deposits.append(deposit)
        self._save(entries)
        return deposit

    def remove_monthly_fee(self, student_id, fee_id):
        entry = self.get_ledger(student_id)
        if entry is None:
            return None
        remaining = [fee for fee in entry.monthly_fees if fee.id != fee_id]
        return self.update_ledger(student_id, {'monthly_fees': remaining})

    def remove_deposit(self, student_id, deposit_id):
        entry = self.get_ledger(student_id)
        if entry is None:
            return None
        remaining = [deposit for deposit in entry.deposits if deposit.id != deposit_id]
        return self.update_ledger(student_id, {'deposits': remaining})

    def toggle_paid(self, student_id, fee_id):
        entry = self.get_ledger(student_id)
        fee = entry.find_monthly_fee(fee_id) if entry else None
        if fee is None:
            return None

        fee.paid = not fee.paid
        self.update_ledger(student_id, {'monthly_fees': entry.monthly_fees})
        return fee


# Totals

FeeSummary = namedtuple('FeeSummary', [
    'total_one_time_fees',
    'total_monthly_fees',
    'grand_total',
    'total_deposits',
    'dues',
    'paid_months',
    'unpaid_months',
])


def total_one_time_fees(entry):
    return entry.registration_fee + entry.admission_fee + entry.annual_charges


def total_monthly_fees(entry):
    return sum(fee.amount for fee in entry.monthly_fees)


def grand_total(entry):
    return total_one_time_fees(entry) + total_monthly_fees(entry)


def total_deposits(entry):
    return sum(deposit.amount for deposit in entry.deposits)


def dues(entry):
    """Grand total minus all deposits, in whole cents; negative when the student has overpaid"""
    return round(grand_total(entry) - total_deposits(entry), 2)


def summarize(entry):
    # The paid flag is informational only and does not change dues
    paid_months = sum(1 for fee in entry.monthly_fees if fee.paid)
    return FeeSummary(
        total_one_time_fees=total_one_time_fees(entry),
        total_monthly_fees=total_monthly_fees(entry),
        grand_total=grand_total(entry),
        total_deposits=total_deposits(entry),
        dues=dues(entry),
        paid_months=paid_months,
        unpaid_months=len(entry.monthly_fees) - paid_months,
    )
