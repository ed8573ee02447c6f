import logging
import os
from datetime import datetime
from logging.handlers import RotatingFileHandler

from flask import (Blueprint, Flask, abort, current_app, flash, redirect, render_template, request, session,
                   url_for)
from flask_wtf.csrf import CSRFProtect, generate_csrf

import fees
from app_models import db
from config import Config, INSTANCE_DIR, config_by_name
from forms import ClassForm, DepositForm, LoginForm, MonthlyFeeForm, OneTimeFeesForm, ReceiptOptionsForm, StudentForm
from health import health_bp
from receipts import build_receipt, render_receipt
from school import SchoolOffice
from security import check_admin_password, current_user, init_security, is_admin, log_in_admin, login_required
from storage import DatabaseStore

BASE_DIR = os.path.dirname(os.path.abspath(__file__))

csrf = CSRFProtect()
office_bp = Blueprint('office', __name__)


def create_app(config_object=None, store=None):
    """Build the application; ``store`` replaces the database-backed collection store"""
    if config_object is None:
        config_object = config_by_name.get(os.environ.get('FLASK_ENV', 'development'), Config)

    app = Flask(
        __name__,
        template_folder=os.path.join(BASE_DIR, 'templates'),
        static_folder=os.path.join(BASE_DIR, 'static'),
        instance_path=INSTANCE_DIR,
    )
    app.config.from_object(config_object)
    if app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite:///') and ':memory:' not in app.config['SQLALCHEMY_DATABASE_URI']:
        os.makedirs(app.instance_path, exist_ok=True)

    configure_logging(app)
    if hasattr(config_object, 'init_app'):
        config_object.init_app(app)

    db.init_app(app)
    csrf.init_app(app)
    init_security(app)
    register_template_helpers(app)
    register_error_handlers(app)
    app.register_blueprint(office_bp)
    app.register_blueprint(health_bp)

    with app.app_context():
        db.create_all()
        office = SchoolOffice(store if store is not None else DatabaseStore())
        app.extensions['school_office'] = office

        purged = office.purge_orphan_ledgers()
        if purged:
            app.logger.warning("Removed %d orphaned fee ledgers at startup", purged)
        if app.config.get('SEED_SAMPLE_DATA'):
            office.seed_sample_data()

    return app


def configure_logging(app):
    level = logging.getLevelName(str(app.config.get('LOG_LEVEL', 'INFO')).upper())
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    app.logger.setLevel(level)

    if app.testing or not app.config.get('LOG_TO_FILE'):
        return

    log_dir = app.config['LOG_DIR']
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.abspath(os.path.join(log_dir, 'application.log'))
    if any(getattr(handler, 'baseFilename', None) == log_path for handler in root.handlers):
        return

    file_handler = RotatingFileHandler(log_path, maxBytes=1024 * 1024, backupCount=10)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
    ))
    file_handler.setLevel(level)
    root.addHandler(file_handler)
    app.logger.info('Little Palms school office startup')


def get_office():
    return current_app.extensions['school_office']


def school_details():
    """Receipt header values from the configuration"""
    config = current_app.config
    return {
        'name': config['SCHOOL_NAME'],
        'address': config['SCHOOL_ADDRESS'],
        'phone': config['SCHOOL_PHONE'],
        'email': config['SCHOOL_EMAIL'],
        'website': config['SCHOOL_WEBSITE'],
        'logo': config['SCHOOL_LOGO'],
        'currency': config['CURRENCY_LABEL'],
    }


def register_template_helpers(app):
    @app.template_filter('comma')
    def comma_filter(value):
        """Format number with comma separators (2 decimal places)"""
        try:
            return "{:,.2f}".format(float(value))
        except (ValueError, TypeError):
            return value

    @app.template_filter('comma_int')
    def comma_int_filter(value):
        """Format number with comma separators (no decimal places)"""
        try:
            return "{:,}".format(int(float(value)))
        except (ValueError, TypeError):
            return value

    @app.template_filter('month_name')
    def month_name_filter(value):
        """'2024-01' -> 'January 2024'"""
        try:
            return datetime.strptime(value, '%Y-%m').strftime('%B %Y')
        except (ValueError, TypeError):
            return value

    @app.context_processor
    def inject_globals():
        return {
            'csrf_token': generate_csrf,
            'datetime': datetime,
            'school': school_details(),
            'software_name': 'Little Palms School Office',
            'user': current_user(),
            'is_admin': is_admin(),
        }


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found_error(error):
        return render_template('error.html', error_code=404, message='Page not found'), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return render_template('error.html', error_code=500, message='Internal server error'), 500


def _safe_next_url():
    target = request.args.get('next', '')
    if target.startswith('/') and not target.startswith('//'):
        return target
    return None


def _student_or_404(student_id):
    student = get_office().students.get_student_by_id(student_id)
    if student is None:
        abort(404)
    return student


def _class_name(student):
    if not student.class_id:
        return None
    school_class = get_office().classes.get_class_by_id(student.class_id)
    return school_class.name if school_class else None


# Authentication routes
@office_bp.route('/login', methods=['GET', 'POST'])
def login():
    if session.get('logged_in'):
        return redirect(url_for('office.index'))

    form = LoginForm()
    if form.validate_on_submit():
        if check_admin_password(form.password.data):
            log_in_admin()
            flash('Welcome back, Administrator!', 'success')
            return redirect(_safe_next_url() or url_for('office.index'))
        current_app.logger.warning("Failed administrator login from %s", request.remote_addr)
        flash('Incorrect administrator password. Please try again.', 'error')

    return render_template('login.html', form=form)


@office_bp.route('/logout')
def logout():
    session.clear()
    flash('You have been logged out successfully!', 'info')
    return redirect(url_for('office.login'))


# Students
@office_bp.route('/')
@login_required
def index():
    office = get_office()
    search_query = request.args.get('q', '')
    view_mode = request.args.get('view', 'cards')
    if view_mode not in ('cards', 'table'):
        view_mode = 'cards'

    all_students = office.students.all_students()
    students = office.students.search_students(search_query) if search_query.strip() else all_students
    classes = office.classes.all_classes()

    class_stats = [
        {'name': c.name, 'count': sum(1 for s in all_students if s.class_id == c.id)}
        for c in classes[:3]
    ]

    return render_template('index.html',
                           students=students,
                           total_students=len(all_students),
                           class_stats=class_stats,
                           class_names={c.id: c.name for c in classes},
                           search_query=search_query,
                           view_mode=view_mode)


@office_bp.route('/students/new', methods=['GET', 'POST'])
@login_required
def add_student():
    office = get_office()
    form = StudentForm()
    form.set_class_choices(office.classes.all_classes())

    if form.validate_on_submit():
        try:
            office.students.add_student(form.record_data())
        except Exception:
            current_app.logger.exception("Error saving student")
            flash('An error occurred while saving the student data', 'error')
        else:
            flash('Student added successfully', 'success')
            return redirect(url_for('office.index'))
    elif form.is_submitted():
        flash('Please fill in all required fields', 'error')

    return render_template('student_form.html', form=form, student=None)


@office_bp.route('/students/<student_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_student(student_id):
    office = get_office()
    student = _student_or_404(student_id)
    form = StudentForm() if request.method == 'POST' else StudentForm.for_student(student)
    form.set_class_choices(office.classes.all_classes())

    if form.validate_on_submit():
        try:
            updated = office.students.update_student(student_id, form.record_data())
        except Exception:
            current_app.logger.exception("Error updating student %s", student_id)
            flash('An error occurred while saving the student data', 'error')
        else:
            if updated:
                flash('Student updated successfully', 'success')
            else:
                flash('Failed to update student', 'error')
            return redirect(url_for('office.index'))
    elif form.is_submitted():
        flash('Please fill in all required fields', 'error')

    return render_template('student_form.html', form=form, student=student)


@office_bp.route('/students/<student_id>/delete', methods=['POST'])
@login_required
def delete_student(student_id):
    try:
        if get_office().students.delete_student(student_id):
            flash('Student deleted successfully', 'success')
        else:
            flash('Failed to delete student', 'error')
    except Exception:
        current_app.logger.exception("Error deleting student %s", student_id)
        flash('An error occurred while deleting the student', 'error')
    return redirect(url_for('office.index'))


# Classes
@office_bp.route('/classes')
@login_required
def classes():
    office = get_office()
    class_list = office.classes.all_classes()
    counts = {c.id: office.classes.count_students_by_class(c.id) for c in class_list}
    return render_template('classes.html', classes=class_list, counts=counts)


@office_bp.route('/classes/new', methods=['GET', 'POST'])
@login_required
def add_class():
    form = ClassForm()
    if form.validate_on_submit():
        try:
            get_office().classes.add_class(form.record_data())
        except Exception:
            current_app.logger.exception("Error saving class")
            flash('An error occurred while saving the class data', 'error')
        else:
            flash('Class added successfully', 'success')
            return redirect(url_for('office.classes'))
    elif form.is_submitted():
        flash('Please fill in all required fields', 'error')

    return render_template('class_form.html', form=form, school_class=None)


@office_bp.route('/classes/<class_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_class(class_id):
    office = get_office()
    school_class = office.classes.get_class_by_id(class_id)
    if school_class is None:
        abort(404)

    form = ClassForm() if request.method == 'POST' else ClassForm(data=school_class.to_dict())
    if form.validate_on_submit():
        try:
            updated = office.classes.update_class(class_id, form.record_data())
        except Exception:
            current_app.logger.exception("Error updating class %s", class_id)
            flash('An error occurred while saving the class data', 'error')
        else:
            if updated:
                flash('Class updated successfully', 'success')
            else:
                flash('Failed to update class', 'error')
            return redirect(url_for('office.classes'))
    elif form.is_submitted():
        flash('Please fill in all required fields', 'error')

    return render_template('class_form.html', form=form, school_class=school_class)


@office_bp.route('/classes/<class_id>/delete', methods=['POST'])
@login_required
def delete_class(class_id):
    office = get_office()
    student_count = office.classes.count_students_by_class(class_id)
    if student_count > 0:
        flash(f'Cannot delete class with {student_count} students assigned to it', 'error')
    elif office.classes.delete_class(class_id):
        flash('Class deleted successfully', 'success')
    else:
        flash('Failed to delete class', 'error')
    return redirect(url_for('office.classes'))


# Fees
def _render_fees(student, entry, tab='fees', **forms):
    config = current_app.config
    context = {
        'one_time_form': OneTimeFeesForm(formdata=None, data={
            'registration_fee': entry.registration_fee,
            'admission_fee': entry.admission_fee,
            'annual_charges': entry.annual_charges,
        }),
        'monthly_form': MonthlyFeeForm(formdata=None),
        'deposit_form': DepositForm(formdata=None),
        'receipt_form': ReceiptOptionsForm(formdata=None, data={
            'session_period': config['RECEIPT_SESSION_PERIOD'],
            'fee_period': config['RECEIPT_FEE_PERIOD'],
            'number_of_months': config['RECEIPT_NUMBER_OF_MONTHS'],
        }),
    }
    context.update(forms)
    return render_template('fees.html',
                           student=student,
                           entry=entry,
                           summary=fees.summarize(entry),
                           class_name=_class_name(student),
                           monthly_fees=sorted(entry.monthly_fees, key=lambda fee: fee.month),
                           deposits=sorted(entry.deposits, key=lambda deposit: deposit.date, reverse=True),
                           tab=tab,
                           **context)


def _ledger_for(student_id):
    student = _student_or_404(student_id)
    return student, get_office().ledger.initialize_ledger(student_id)


def _back_to_fees(student_id, tab):
    return redirect(url_for('office.student_fees', student_id=student_id, tab=tab))


@office_bp.route('/students/<student_id>/fees')
@login_required
def student_fees(student_id):
    student, entry = _ledger_for(student_id)
    tab = request.args.get('tab', 'fees')
    if tab not in ('fees', 'deposits', 'summary'):
        tab = 'fees'
    return _render_fees(student, entry, tab)


@office_bp.route('/students/<student_id>/fees/one-time', methods=['POST'])
@login_required
def save_one_time_fees(student_id):
    student, entry = _ledger_for(student_id)
    form = OneTimeFeesForm()
    if not form.validate_on_submit():
        flash('Please provide valid fee amounts', 'error')
        return _render_fees(student, entry, 'fees', one_time_form=form)

    get_office().ledger.update_ledger(student_id, {
        'registration_fee': form.registration_fee.data,
        'admission_fee': form.admission_fee.data,
        'annual_charges': form.annual_charges.data,
    })
    flash('Fees updated successfully', 'success')
    return _back_to_fees(student_id, 'fees')


@office_bp.route('/students/<student_id>/fees/monthly', methods=['POST'])
@login_required
def add_monthly_fee(student_id):
    student, entry = _ledger_for(student_id)
    form = MonthlyFeeForm()
    if not form.validate_on_submit():
        flash('Please provide valid month and amount', 'error')
        return _render_fees(student, entry, 'fees', monthly_form=form)

    if get_office().ledger.add_monthly_fee(student_id, form.month.data, form.amount.data):
        flash('Monthly fee added successfully', 'success')
    else:
        flash('Failed to add monthly fee', 'error')
    return _back_to_fees(student_id, 'fees')


@office_bp.route('/students/<student_id>/fees/monthly/<fee_id>/toggle', methods=['POST'])
@login_required
def toggle_monthly_fee(student_id, fee_id):
    _ledger_for(student_id)
    if get_office().ledger.toggle_paid(student_id, fee_id) is None:
        flash('Monthly fee not found', 'error')
    return _back_to_fees(student_id, 'fees')


@office_bp.route('/students/<student_id>/fees/monthly/<fee_id>/delete', methods=['POST'])
@login_required
def remove_monthly_fee(student_id, fee_id):
    _, entry = _ledger_for(student_id)
    if entry.find_monthly_fee(fee_id) is None:
        flash('Monthly fee not found', 'error')
    else:
        get_office().ledger.remove_monthly_fee(student_id, fee_id)
        flash('Monthly fee removed successfully', 'success')
    return _back_to_fees(student_id, 'fees')


@office_bp.route('/students/<student_id>/fees/deposits', methods=['POST'])
@login_required
def add_deposit(student_id):
    student, entry = _ledger_for(student_id)
    form = DepositForm()
    if not form.validate_on_submit():
        flash('Please provide valid amount and date', 'error')
        return _render_fees(student, entry, 'deposits', deposit_form=form)

    deposit = get_office().ledger.add_deposit(student_id, form.amount.data, form.date.data.isoformat(),
                                              form.remarks.data)
    if deposit:
        flash('Deposit added successfully', 'success')
    else:
        flash('Failed to add deposit', 'error')
    return _back_to_fees(student_id, 'deposits')


@office_bp.route('/students/<student_id>/fees/deposits/<deposit_id>/delete', methods=['POST'])
@login_required
def remove_deposit(student_id, deposit_id):
    _, entry = _ledger_for(student_id)
    if entry.find_deposit(deposit_id) is None:
        flash('Deposit not found', 'error')
    else:
        get_office().ledger.remove_deposit(student_id, deposit_id)
        flash('Deposit removed successfully', 'success')
    return _back_to_fees(student_id, 'deposits')


@office_bp.route('/students/<student_id>/fees/deposits/<deposit_id>/receipt')
@login_required
def deposit_receipt(student_id, deposit_id):
    student, entry = _ledger_for(student_id)
    deposit = entry.find_deposit(deposit_id)
    if deposit is None:
        abort(404)

    config = current_app.config
    options = ReceiptOptionsForm(formdata=request.args)
    details = build_receipt(
        student, entry, deposit,
        class_name=_class_name(student),
        session_period=options.session_period.data or config['RECEIPT_SESSION_PERIOD'],
        fee_period=options.fee_period.data or config['RECEIPT_FEE_PERIOD'],
        number_of_months=options.number_of_months.data or config['RECEIPT_NUMBER_OF_MONTHS'],
    )
    return render_receipt(details, school_details(), autoprint=request.args.get('print') == '1')


def main():
    app = create_app()
    # This block is for local development only.
    # In production, gunicorn serves create_app() with gunicorn_config.py.
    print("\n" + "=" * 50)
    print("Starting local development server...")
    print("Access the system at: http://127.0.0.1:5001")
    print("=" * 50 + "\n")
    app.run(host='127.0.0.1', port=5001, debug=app.config.get('DEBUG', False))


if __name__ == '__main__':
    main()
