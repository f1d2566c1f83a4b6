# ==============================================================================
# app/main/routes.py
# ------------------------------------------------------------------------------
# Defines all user-facing routes for the main application blueprint.
# This file acts as the main controller for the web interface.
# ==============================================================================

import os
import json
import uuid
from dataclasses import asdict
from datetime import date, datetime
from functools import wraps

from flask import (render_template, request, flash, redirect, url_for, abort,
                   current_app, session, Response, jsonify)
import pdfkit

from app import db
from app import store
from app.auth import OfficeSession
from app.main import bp
from app.models import AppSetting
from app.calculator.engine import (CalculationConfig, DEMO_PATTERNS, MonthlySalaryRecord, build_demo_records,
                                   calculate_salary_increase, compute_increase_rate, generate_months)
from app.calculator.deadline import (calculate_application_deadline, calculate_days_remaining,
                                     derive_application_view, describe_deadline)
from app.calculator.requirements import (RequirementInput, check_requirements, check_priority_target,
                                         estimate_subsidy_amount)
from app.calculator.documents import (DOCUMENT_DEFINITIONS, DOCUMENT_CATEGORY_LABELS, DEMO_SCENARIOS,
                                      run_document_check, scenario_states)
from app.calculator.validator import validate_salary_ledger_file, validate_backup_document, validate_setting_value
from app.ocr.extractor import OcrError, extract_document
from app.ocr.fields import DOCUMENT_TYPE_LABELS, SalaryLedgerFields, field_items
from app.main.forms import (LoginForm, ClientForm, ApplicationForm, StatusForm, SalaryCalculatorForm,
                            LedgerUploadForm, OcrForm, ImportForm, ConfirmForm, RequirementForm, AppSettingForm)
from app.main.utils import (build_dashboard, build_calendar, shift_month, applications_frame, clients_frame,
                            frame_to_csv_bytes)

OCR_MIME_TYPES = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.pdf': 'application/pdf',
}

# --- Helper Functions ---

def allowed_file(filename, extensions):
    """Checks if the file extension is in the given set of allowed extensions."""
    return '.' in filename and os.path.splitext(filename)[1].lower() in extensions


def office_session():
    return OfficeSession.from_app(session, current_app.config)


def current_office_id():
    return office_session().office_id


def current_policy():
    return CalculationConfig().policy


def login_required(f):
    """Decorator to protect routes behind the shared office password."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not office_session().is_authenticated:
            flash('ログインしてください。', 'warning')
            return redirect(url_for('main.login', next=request.path))
        return f(*args, **kwargs)
    return decorated_function


def _download(content, filename, mimetype):
    return Response(content, mimetype=mimetype,
                    headers={'Content-Disposition': f'attachment; filename={filename}'})


# --- Session ---

@bp.route('/login', methods=['GET', 'POST'])
def login():
    form = LoginForm()
    if form.validate_on_submit():
        if office_session().login(form.password.data):
            flash('ログインしました。', 'success')
            next_path = request.args.get('next') or ''
            # Only follow local paths
            if next_path.startswith('/') and not next_path.startswith('//'):
                return redirect(next_path)
            return redirect(url_for('main.dashboard'))
        flash('パスワードが正しくありません。', 'danger')
    return render_template('login.html', form=form, title='ログイン')


@bp.route('/logout')
def logout():
    office_session().logout()
    flash('ログアウトしました。', 'info')
    return redirect(url_for('main.login'))


# --- Dashboard ---

@bp.route('/')
@login_required
def dashboard():
    office_id = current_office_id()
    client_list = store.list_clients(office_id)
    views = store.list_application_views(office_id)
    return render_template('dashboard.html', dashboard=build_dashboard(client_list, views), views=views)


# --- Clients ---

@bp.route('/clients')
@login_required
def clients():
    office_id = current_office_id()
    client_list = store.list_clients(office_id)
    dashboard = build_dashboard(client_list, store.list_application_views(office_id))
    return render_template('clients.html', client_stats=dashboard['clients'], confirm_form=ConfirmForm())


def _client_values(form):
    return {
        'company_name': form.company_name.data.strip(),
        'registration_number': form.registration_number.data or None,
        'is_small_business': form.is_small_business.data,
        'career_up_manager': form.career_up_manager.data or None,
        'has_employment_rules': form.has_employment_rules.data,
        'career_up_plan_submitted_at': form.career_up_plan_submitted_at.data,
    }


@bp.route('/clients/new', methods=['GET', 'POST'])
@login_required
def add_client():
    form = ClientForm()
    if form.validate_on_submit():
        try:
            client = store.create_client(current_office_id(), **_client_values(form))
            flash(f'顧問先「{client.company_name}」を登録しました。', 'success')
            return redirect(url_for('main.client_detail', client_id=client.id))
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Creating client failed: {e}", exc_info=True)
            flash('顧問先の登録に失敗しました。', 'danger')
    return render_template('form.html', form=form, title='顧問先の登録')


@bp.route('/clients/<client_id>')
@login_required
def client_detail(client_id):
    office_id = current_office_id()
    client = store.get_client(office_id, client_id) or abort(404)
    views = store.list_application_views(office_id, client_id=client.id)
    return render_template('client_detail.html', client=client, views=views, confirm_form=ConfirmForm())


@bp.route('/clients/<client_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_client(client_id):
    office_id = current_office_id()
    client = store.get_client(office_id, client_id) or abort(404)
    form = ClientForm(obj=client)
    if form.validate_on_submit():
        try:
            store.update_client(office_id, client.id, **_client_values(form))
            flash('顧問先情報を更新しました。', 'success')
            return redirect(url_for('main.client_detail', client_id=client.id))
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Updating client {client_id} failed: {e}", exc_info=True)
            flash('顧問先情報の更新に失敗しました。', 'danger')
    return render_template('form.html', form=form, title=f'顧問先の編集: {client.company_name}')


@bp.route('/clients/<client_id>/delete', methods=['POST'])
@login_required
def delete_client(client_id):
    if not ConfirmForm().validate_on_submit():
        abort(400)
    if not store.delete_client(current_office_id(), client_id):
        abort(404)
    flash('顧問先と関連する申請を削除しました。', 'success')
    return redirect(url_for('main.clients'))


# --- Applications ---

@bp.route('/applications')
@login_required
def applications():
    office_id = current_office_id()
    views = store.list_application_views(office_id, client_id=request.args.get('client_id'))
    client_names = {c.id: c.company_name for c in store.list_clients(office_id)}
    return render_template('applications.html', views=views, client_names=client_names)


def _application_form(office_id, **kwargs):
    form = ApplicationForm(**kwargs)
    form.client_id.choices = [(c.id, c.company_name) for c in store.list_clients(office_id)]
    return form


def _application_values(form, client, policy, recompute_deadline=True):
    """Form data plus the stored estimates: deadline, subsidy amounts and increase rate."""
    is_priority = form.is_priority_target.data
    values = {
        'client_id': client.id,
        'worker_name': form.worker_name.data.strip(),
        'worker_name_kana': form.worker_name_kana.data or None,
        'birth_date': form.birth_date.data,
        'gender': form.gender.data or None,
        'hire_date': form.hire_date.data,
        'conversion_date': form.conversion_date.data,
        'conversion_type': form.conversion_type.data,
        'status': form.status.data,
        'is_priority_target': is_priority,
        'priority_category': (form.priority_category.data or None) if is_priority else None,
        'priority_reason': (form.priority_reason.data or None) if is_priority else None,
        'pre_salary': form.pre_salary.data,
        'post_salary': form.post_salary.data,
        'salary_increase_rate': None,
        'notes': form.notes.data or None,
    }
    if form.pre_salary.data and form.post_salary.data is not None:
        values['salary_increase_rate'] = round(compute_increase_rate(form.pre_salary.data, form.post_salary.data), 2)
    if recompute_deadline:
        values['application_deadline'] = calculate_application_deadline(
            form.conversion_date.data, form.salary_payment_day.data, policy)

    estimate = estimate_subsidy_amount(client.is_small_business, is_priority, policy)
    values['estimated_phase1'] = estimate['phase1']
    values['estimated_phase2'] = estimate['phase2']
    values['estimated_total'] = estimate['total']
    return values


@bp.route('/applications/new', methods=['GET', 'POST'])
@login_required
def add_application():
    office_id = current_office_id()
    form = _application_form(office_id)
    if request.method == 'GET' and request.args.get('client_id'):
        form.client_id.data = request.args['client_id']
    if not form.client_id.choices:
        flash('先に顧問先を登録してください。', 'warning')
        return redirect(url_for('main.add_client'))

    if form.validate_on_submit():
        client = store.get_client(office_id, form.client_id.data) or abort(404)
        try:
            application = store.create_application(office_id, **_application_values(form, client, current_policy()))
            flash(f'{application.worker_name}さんの申請を登録しました（申請期限: {application.application_deadline}）。',
                  'success')
            return redirect(url_for('main.application_detail', application_id=application.id))
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Creating application failed: {e}", exc_info=True)
            flash('申請の登録に失敗しました。', 'danger')
    return render_template('form.html', form=form, title='申請の登録')


@bp.route('/applications/<application_id>')
@login_required
def application_detail(application_id):
    office_id = current_office_id()
    application = store.get_application(office_id, application_id) or abort(404)
    view = derive_application_view(application, datetime.now())
    return render_template('application_detail.html', application=application, view=view,
                           advice=describe_deadline(view['daysRemaining']),
                           status_form=StatusForm(status=application.status), confirm_form=ConfirmForm())


@bp.route('/applications/<application_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_application(application_id):
    office_id = current_office_id()
    application = store.get_application(office_id, application_id) or abort(404)
    form = _application_form(office_id, obj=application)
    if form.validate_on_submit():
        client = store.get_client(office_id, form.client_id.data) or abort(404)
        recompute = (form.conversion_date.data != application.conversion_date
                     or form.salary_payment_day.data is not None)
        try:
            store.update_application(office_id, application.id,
                                     **_application_values(form, client, current_policy(), recompute))
            flash('申請情報を更新しました。', 'success')
            return redirect(url_for('main.application_detail', application_id=application.id))
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Updating application {application_id} failed: {e}", exc_info=True)
            flash('申請情報の更新に失敗しました。', 'danger')
    return render_template('form.html', form=form, title=f'申請の編集: {application.worker_name}')


@bp.route('/applications/<application_id>/status', methods=['POST'])
@login_required
def change_status(application_id):
    office_id = current_office_id()
    application = store.get_application(office_id, application_id) or abort(404)
    form = StatusForm()
    if form.validate_on_submit():
        try:
            store.update_application(office_id, application.id, status=form.status.data)
            flash('ステータスを更新しました。', 'success')
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Updating status of application {application_id} failed: {e}", exc_info=True)
            flash('ステータスの更新に失敗しました。', 'danger')
    else:
        flash('ステータスが不正です。', 'danger')
    return redirect(url_for('main.application_detail', application_id=application.id))


@bp.route('/applications/<application_id>/delete', methods=['POST'])
@login_required
def delete_application(application_id):
    if not ConfirmForm().validate_on_submit():
        abort(400)
    if not store.delete_application(current_office_id(), application_id):
        abort(404)
    flash('申請を削除しました。', 'success')
    return redirect(url_for('main.applications'))


@bp.route('/applications/<application_id>/pdf')
@login_required
def application_pdf(application_id):
    """Renders the application summary and converts it with wkhtmltopdf."""
    office_id = current_office_id()
    application = store.get_application(office_id, application_id) or abort(404)
    view = derive_application_view(application, datetime.now())
    html = render_template('application_pdf.html', application=application, view=view,
                           office_name=current_app.config.get('OFFICE_NAME', ''))

    wkhtmltopdf_path = current_app.config.get('WKHTMLTOPDF_PATH')
    configuration = pdfkit.configuration(wkhtmltopdf=wkhtmltopdf_path) if wkhtmltopdf_path else None
    try:
        pdf = pdfkit.from_string(html, False, configuration=configuration,
                                 options={'encoding': 'UTF-8', 'page-size': 'A4'})
    except OSError as e:
        current_app.logger.error(f"PDF generation failed: {e}", exc_info=True)
        flash('PDFの作成に失敗しました。wkhtmltopdf の設定を確認してください。', 'danger')
        return redirect(url_for('main.application_detail', application_id=application.id))

    return _download(pdf, f'application-{application.id}.pdf', 'application/pdf')


# --- Calculator ---

def _records_from_entries(entries):
    """Calculator form rows -> MonthlySalaryRecord. Blank inputs count as zero."""
    records = []
    for entry in entries:
        data = entry.data
        records.append(MonthlySalaryRecord(
            year_month=data.get('year_month') or '',
            base_salary=data.get('base_salary') or 0,
            fixed_allowances=data.get('fixed_allowances') or 0,
            overtime_pay=data.get('overtime_pay') or 0,
            commuting_allowance=data.get('commuting_allowance') or 0,
            work_days=data.get('work_days') or 0,
            scheduled_work_days=data.get('scheduled_work_days') or 0,
        ))
    return records


def _calculator_form(pre_records=None, post_records=None):
    if pre_records is None or post_records is None:
        today = date.today()
        pre_year, pre_month = shift_month(today.year, today.month, -6)
        pre_records = [MonthlySalaryRecord(year_month=ym) for ym in generate_months(pre_year, pre_month)]
        post_records = [MonthlySalaryRecord(year_month=ym) for ym in generate_months(today.year, today.month)]
    # formdata=None: also used while handling the ledger upload POST
    return SalaryCalculatorForm(formdata=None, data={
        'pre': [asdict(r) for r in pre_records],
        'post': [asdict(r) for r in post_records],
    })


@bp.route('/calculator', methods=['GET', 'POST'])
@login_required
def calculator():
    result = None
    pattern_key = request.args.get('demo')
    if request.method == 'POST':
        form = SalaryCalculatorForm()
        if form.validate_on_submit():
            pre_records = _records_from_entries(form.pre.entries)
            post_records = _records_from_entries(form.post.entries)
            result = calculate_salary_increase(pre_records, post_records, current_policy())
        else:
            flash('入力内容に誤りがあります。数値を入力してください。', 'danger')
    elif pattern_key in DEMO_PATTERNS:
        form = _calculator_form(*build_demo_records(pattern_key))
    else:
        form = _calculator_form()

    return render_template('calculator.html', form=form, result=result, patterns=DEMO_PATTERNS,
                           ledger_form=LedgerUploadForm())


@bp.route('/calculator/ledger', methods=['POST'])
@login_required
def upload_ledger():
    """Reads a salary ledger (.xlsx / .csv) and runs the calculator on it."""
    form = LedgerUploadForm()
    if not form.validate_on_submit():
        flash('ファイルを選択してください。', 'warning')
        return redirect(url_for('main.calculator'))

    file = form.file.data
    if not allowed_file(file.filename, current_app.config['ALLOWED_LEDGER_EXTENSIONS']):
        flash('ファイル形式が対応していません。.xlsx または .csv をアップロードしてください。', 'danger')
        return redirect(url_for('main.calculator'))

    os.makedirs(current_app.config['UPLOAD_FOLDER'], exist_ok=True)
    # Japanese file names do not survive secure_filename, so store under a random name.
    filepath = os.path.join(current_app.config['UPLOAD_FOLDER'],
                            f"{uuid.uuid4().hex}{os.path.splitext(file.filename)[1].lower()}")
    file.save(filepath)
    try:
        records, errors = validate_salary_ledger_file(filepath)
    finally:
        os.remove(filepath)

    if errors:
        for error in errors:
            flash(error, 'danger')
        return redirect(url_for('main.calculator'))

    pre_records, post_records = records
    result = calculate_salary_increase(pre_records, post_records, current_policy())
    flash(f'賃金台帳を読み込みました（転換前{len(pre_records)}ヶ月・転換後{len(post_records)}ヶ月）。', 'info')
    return render_template('calculator.html', form=_calculator_form(pre_records, post_records), result=result,
                           patterns=DEMO_PATTERNS, ledger_form=LedgerUploadForm())


# --- Eligibility ---

@bp.route('/eligibility', methods=['GET', 'POST'])
@login_required
def eligibility():
    form = RequirementForm()
    outcome = None
    if form.validate_on_submit():
        policy = current_policy()
        requirements = check_requirements(RequirementInput(
            has_career_up_plan=form.has_career_up_plan.data,
            plan_submitted_before_conversion=form.plan_submitted_before_conversion.data,
            employment_period_months=form.employment_period_months.data,
            is_not_regular_from_start=form.is_not_regular_from_start.data,
            has_no_termination_history=form.has_no_termination_history.data,
            company_has_employment_rules=form.company_has_employment_rules.data,
            social_insurance_enrolled=form.social_insurance_enrolled.data,
            no_relation_with_employer=form.no_relation_with_employer.data,
            pre_salary=form.pre_salary.data,
            post_salary=form.post_salary.data,
        ), policy)
        priority = check_priority_target(
            is_within_3_years_of_hiring=form.is_within_3_years_of_hiring.data,
            was_not_insured_before_hiring=form.was_not_insured_before_hiring.data,
            is_dispatched_worker=form.is_dispatched_worker.data,
            applied_for_regular_position=form.applied_for_regular_position.data,
            hired_as_fixed_term_instead=form.hired_as_fixed_term_instead.data,
            policy=policy,
        )
        outcome = {
            'requirements': requirements,
            'priority': priority,
            'subsidy': estimate_subsidy_amount(form.is_small_business.data, priority['is_priority_target'], policy),
            'deadline': None,
        }
        if form.conversion_date.data:
            deadline = calculate_application_deadline(form.conversion_date.data, form.salary_payment_day.data, policy)
            days = calculate_days_remaining(deadline, datetime.now())
            outcome['deadline'] = {'date': deadline, 'days_remaining': days, 'message': describe_deadline(days)}
    return render_template('eligibility.html', form=form, outcome=outcome)


# --- Document check ---

def _to_amount(value):
    if isinstance(value, str):
        value = value.replace(',', '').strip()
    if value in (None, ''):
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _document_fields(source):
    return {
        'company_name': source.get('company_name') or '',
        'insurance_number': source.get('insurance_number') or '',
        'representative_name': source.get('representative_name') or '',
        'worker_name': source.get('worker_name') or '',
        'conversion_date': source.get('conversion_date') or '',
        'pre_salary': _to_amount(source.get('pre_salary')),
        'post_salary': _to_amount(source.get('post_salary')),
    }


@bp.route('/documents', methods=['GET', 'POST'])
@login_required
def documents():
    result = None
    scenario_key = request.args.get('scenario')
    if request.method == 'POST':
        states = {code: {'is_present': bool(request.form.get(f'present_{code}')),
                         'is_complete': bool(request.form.get(f'complete_{code}'))}
                  for code in DOCUMENT_DEFINITIONS}
        fields = _document_fields(request.form)
        is_priority = bool(request.form.get('is_priority_target'))
        result = run_document_check(states, fields, is_priority, current_policy())
    elif scenario_key in DEMO_SCENARIOS:
        scenario = DEMO_SCENARIOS[scenario_key]
        states = scenario_states(scenario_key)
        fields = _document_fields(scenario['fields'])
        is_priority = scenario['is_priority_target']
    else:
        states = {code: {'is_present': False, 'is_complete': False} for code in DOCUMENT_DEFINITIONS}
        fields = _document_fields({})
        is_priority = False

    return render_template('documents.html', definitions=DOCUMENT_DEFINITIONS,
                           categories=DOCUMENT_CATEGORY_LABELS, scenarios=DEMO_SCENARIOS,
                           states=states, fields=fields, is_priority=is_priority, result=result)


# --- AI-OCR ---

@bp.route('/ocr')
@login_required
def ocr():
    return render_template('ocr.html', form=OcrForm())


@bp.route('/ocr/extract', methods=['POST'])
@login_required
def ocr_extract():
    """Runs OCR on an uploaded document and returns the extracted fields as JSON."""
    file = request.files.get('file')
    document_type = request.form.get('document_type') or 'other'
    if file is None or not file.filename:
        return jsonify({'success': False, 'error': 'ファイルが選択されていません'}), 400
    extension = os.path.splitext(file.filename)[1].lower()
    if extension not in current_app.config['ALLOWED_OCR_EXTENSIONS'] or extension not in OCR_MIME_TYPES:
        return jsonify({'success': False, 'error': '対応していないファイル形式です（PNG / JPEG / PDF）'}), 400
    file_bytes = file.read()
    if not file_bytes:
        return jsonify({'success': False, 'error': 'ファイルが空です'}), 400

    try:
        result = extract_document(file_bytes, OCR_MIME_TYPES[extension], document_type,
                                  current_app.config.get('GEMINI_API_KEY'),
                                  current_app.config.get('GEMINI_MODEL'))
    except OcrError as e:
        return jsonify({'success': False, 'error': str(e)}), 502

    payload = {
        'success': True,
        'documentType': result.document_type,
        'documentTypeLabel': DOCUMENT_TYPE_LABELS.get(result.document_type, DOCUMENT_TYPE_LABELS['other']),
        'data': result.raw_data,
        'fields': [{'label': label, 'value': value} for label, value in field_items(result.fields)],
        'warnings': result.warnings,
        'parseError': result.parse_error,
        'rawText': result.raw_text,
    }
    if isinstance(result.fields, SalaryLedgerFields):
        payload['salaryRecord'] = asdict(result.fields.to_salary_record())
    return jsonify(payload)


# --- Calendar ---

@bp.route('/calendar')
@login_required
def calendar_view():
    today = date.today()
    year = request.args.get('year', today.year, type=int)
    month = request.args.get('month', today.month, type=int)
    if not 1 <= month <= 12:
        abort(400)
    views = store.list_application_views(current_office_id())
    client_names = {c.id: c.company_name for c in store.list_clients(current_office_id())}
    return render_template('calendar.html', year=year, month=month, weeks=build_calendar(year, month, views),
                           previous=shift_month(year, month, -1), following=shift_month(year, month, 1),
                           today=today, client_names=client_names)


# --- Settings: backup, import, CSV, clear ---

@bp.route('/settings')
@login_required
def settings():
    office_id = current_office_id()
    counts = {'clients': len(store.list_clients(office_id)), 'applications': len(store.list_applications(office_id))}
    return render_template('settings.html', counts=counts, import_form=ImportForm(), confirm_form=ConfirmForm())


@bp.route('/settings/export.json')
@login_required
def export_json():
    backup = store.export_data(current_office_id())
    filename = f"backup-{date.today().isoformat()}.json"
    return _download(json.dumps(backup, ensure_ascii=False, indent=2), filename, 'application/json')


@bp.route('/settings/export/<kind>.csv')
@login_required
def export_csv(kind):
    office_id = current_office_id()
    client_list = store.list_clients(office_id)
    if kind == 'applications':
        df = applications_frame(store.list_application_views(office_id), client_list)
    elif kind == 'clients':
        df = clients_frame(client_list, store.list_applications(office_id))
    else:
        abort(404)
    filename = f"{kind}-{date.today().isoformat()}.csv"
    return _download(frame_to_csv_bytes(df), filename, 'text/csv; charset=utf-8')


@bp.route('/settings/import', methods=['POST'])
@login_required
def import_json():
    form = ImportForm()
    if not form.validate_on_submit():
        flash('バックアップファイルを選択してください。', 'warning')
        return redirect(url_for('main.settings'))

    try:
        payload = json.load(form.file.data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        flash(f'JSONファイルとして読み込めません: {e}', 'danger')
        return redirect(url_for('main.settings'))

    errors = validate_backup_document(payload)
    if errors:
        for error in errors:
            flash(error, 'danger')
        return redirect(url_for('main.settings'))

    try:
        counts = store.import_data(current_office_id(), payload)
        flash(f"顧問先{counts['clients']}件・申請{counts['applications']}件をインポートしました。", 'success')
    except Exception as e:
        current_app.logger.error(f"Backup import failed: {e}", exc_info=True)
        flash('インポートに失敗しました。データは変更されていません。', 'danger')
    return redirect(url_for('main.settings'))


@bp.route('/settings/clear', methods=['POST'])
@login_required
def clear_data():
    if not ConfirmForm().validate_on_submit():
        abort(400)
    store.clear_data(current_office_id())
    flash('すべてのデータを削除しました。', 'success')
    return redirect(url_for('main.settings'))


# --- Settings: policy constants ---

@bp.route('/settings/policy')
@login_required
def policy_settings():
    settings = AppSetting.query.order_by(AppSetting.key).all()
    return render_template('policy_settings.html', settings=settings)


@bp.route('/settings/policy/<int:setting_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_setting(setting_id):
    setting = db.get_or_404(AppSetting, setting_id)
    form = AppSettingForm(obj=setting)
    title = f'設定の編集: {setting.key}'
    if form.validate_on_submit():
        new_value, errors = validate_setting_value(setting.key, setting.value_type, form.value.data)
        if errors:
            for error in errors:
                flash(f'入力された値の形式が正しくありません: {error}', 'danger')
            return render_template('form.html', form=form, title=title, description=setting.description)
        setting.value = new_value
        db.session.commit()
        CalculationConfig._instance = None
        flash(f'設定「{setting.key}」を更新しました。', 'success')
        return redirect(url_for('main.policy_settings'))
    return render_template('form.html', form=form, title=title, description=setting.description)
