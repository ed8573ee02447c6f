"""
Fee receipt generation.

A receipt is issued for one deposit, but its totals cover the whole ledger:
every fee billed so far against every deposit received.
"""
from dataclasses import dataclass
from datetime import date, datetime

from flask import render_template

import fees

UNITS = ['', 'One', 'Two', 'Three', 'Four', 'Five', 'Six', 'Seven', 'Eight', 'Nine', 'Ten',
         'Eleven', 'Twelve', 'Thirteen', 'Fourteen', 'Fifteen', 'Sixteen', 'Seventeen',
         'Eighteen', 'Nineteen']
TENS = ['', '', 'Twenty', 'Thirty', 'Forty', 'Fifty', 'Sixty', 'Seventy', 'Eighty', 'Ninety']
SCALES = [(1000000000, 'Billion'), (1000000, 'Million'), (1000, 'Thousand')]


def _below_thousand(n):
    words = []
    hundreds, rest = divmod(n, 100)
    if hundreds:
        words.append(UNITS[hundreds] + ' Hundred')
    if rest >= 20:
        tens, units = divmod(rest, 10)
        words.append(TENS[tens] + (' ' + UNITS[units] if units else ''))
    elif rest:
        words.append(UNITS[rest])
    return ' '.join(words)


def number_to_words(num):
    """Spell out an integer in English, e.g. 1500 -> 'One Thousand Five Hundred'"""
    num = int(num)
    if num == 0:
        return 'Zero'
    if num < 0:
        return 'Negative ' + number_to_words(-num)

    for scale, name in SCALES:
        if num >= scale:
            head, rest = divmod(num, scale)
            words = number_to_words(head) + ' ' + name
            return words + ' ' + number_to_words(rest) if rest else words
    return _below_thousand(num)


def amount_in_words(amount):
    whole = int(amount)
    cents = int(round(abs(amount - whole) * 100))
    if cents == 100:
        whole, cents = whole + (1 if amount >= 0 else -1), 0
    words = number_to_words(whole)
    if cents:
        words += f' and {cents:02d}/100'
    return words


def _ordinal(day):
    if 11 <= day % 100 <= 13:
        return f'{day}th'
    suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(day % 10, 'th')
    return f'{day}{suffix}'


def _parse_date(value):
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def format_long_date(value, comma=False):
    """'2019-03-15' -> '15th March 2019' (or '15th March, 2019')"""
    parsed = _parse_date(value)
    if parsed is None:
        return value or '-'
    separator = ', ' if comma else ' '
    return f"{_ordinal(parsed.day)} {parsed.strftime('%B')}{separator}{parsed.year}"


def format_short_date(value):
    parsed = _parse_date(value)
    return parsed.strftime('%d/%m/%Y') if parsed else (value or '')


@dataclass
class ReceiptDetails:
    student_id: str
    first_name: str
    last_name: str
    father_name: str
    mother_name: str
    class_name: str
    date_of_birth: str
    session_period: str
    fee_period: str
    number_of_months: str
    receipt_date: str
    deposit_date: str
    deposit_amount: float
    total_one_time_fees: float
    total_monthly_fees: float
    grand_total: float
    total_deposits: float
    dues: float
    amount_in_words: str

    @property
    def dues_display(self):
        return self.dues if self.dues > 0 else 'Nil'

    @property
    def any_due_display(self):
        return self.dues if self.dues > 0 else '-'


def build_receipt(student, entry, deposit, class_name=None, session_period='', fee_period='',
                  number_of_months='', today=None):
    """Collect everything the printed receipt shows for ``deposit``"""
    summary = fees.summarize(entry)
    deposit_date = deposit.date or (today or date.today()).isoformat()

    return ReceiptDetails(
        student_id=student.id,
        first_name=student.first_name,
        last_name=student.last_name,
        father_name=student.father_name or '-',
        mother_name=student.mother_name or '-',
        class_name=class_name or '-',
        date_of_birth=format_long_date(student.date_of_birth) if student.date_of_birth else '-',
        session_period=session_period,
        fee_period=fee_period,
        number_of_months=number_of_months,
        receipt_date=format_long_date(deposit_date, comma=True),
        deposit_date=format_short_date(deposit_date),
        deposit_amount=deposit.amount,
        total_one_time_fees=summary.total_one_time_fees,
        total_monthly_fees=summary.total_monthly_fees,
        grand_total=summary.grand_total,
        total_deposits=summary.total_deposits,
        dues=summary.dues,
        amount_in_words=amount_in_words(deposit.amount),
    )


def render_receipt(details, school, autoprint=False):
    """Render the self-contained printable receipt document"""
    return render_template('receipt.html', receipt=details, school=school, autoprint=autoprint)
