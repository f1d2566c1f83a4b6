# ==============================================================================
# app/calculator/documents.py
# ------------------------------------------------------------------------------
# Document checklist for a subsidy application.
# Level 2 checks which required documents are present and complete;
# level 1 checks the mandatory fields of the application form itself.
# ==============================================================================

import re
from datetime import datetime

from app.calculator.engine import DEFAULT_POLICY, compute_increase_rate

# code: (name, short name, category, description, required, required for priority target)
DOCUMENT_DEFINITIONS = {
    'career_up_plan': ('キャリアアップ計画書', '計画書', 'application', '転換前に届出済みの計画書（写し）', True, False),
    'form_3': ('様式第3号（支給申請書）', '様式第3号', 'application', '助成金の支給申請書本体', True, False),
    'form_3_1_1': ('様式第3号・別添様式1-1', '別添1-1', 'application', '対象労働者ごとの詳細情報', True, False),
    'form_3_1_2': ('様式第3号・別添様式1-2', '別添1-2', 'application', '賃金上昇要件確認書', True, False),
    'requirement_confirmation': ('支給要件確認申立書', '要件申立書', 'application', '支給要件を満たしていることの申立書', True, False),
    'employment_rules_pre': ('就業規則（転換前）', '就業規則（前）', 'employment', '転換前の雇用形態に適用される就業規則', True, False),
    'employment_rules_post': ('就業規則（転換後）', '就業規則（後）', 'employment', '転換後の正社員に適用される就業規則', True, False),
    'contract_pre': ('雇用契約書（転換前）', '契約書（前）', 'employment', '転換前の有期雇用契約を証明する書類', True, False),
    'contract_post': ('雇用契約書（転換後）', '契約書（後）', 'employment', '転換後の正社員契約を証明する書類', True, False),
    'salary_ledger': ('賃金台帳（12ヶ月分）', '賃金台帳', 'salary', '転換前6ヶ月＋転換後6ヶ月の賃金支払記録', True, False),
    'attendance_record': ('出勤簿/タイムカード（12ヶ月分）', '出勤簿', 'salary', '転換前6ヶ月＋転換後6ヶ月の勤務記録', True, False),
    'salary_calc': ('賃金3%増額計算書', '3%計算書', 'salary', '3%以上の賃金上昇を計算した書類', True, False),
    'company_registration': ('登記事項証明書', '登記簿', 'company', '法人の登記事項証明書（発行から3ヶ月以内）', True, False),
    'priority_target_form': ('重点支援対象者確認票', '重点支援確認票', 'priority_target', '重点支援対象者であることを確認する書類', False, True),
}

DOCUMENT_CATEGORY_LABELS = {
    'application': '申請書類',
    'employment': '雇用関連書類',
    'salary': '賃金関連書類',
    'company': '会社関連書類',
    'priority_target': '重点支援対象者用',
}

INSURANCE_NUMBER_PATTERN = re.compile(r'^\d{4}-\d{6}-\d$')


def document_name(code):
    return DOCUMENT_DEFINITIONS[code][0]


def get_required_documents(is_priority_target):
    """Codes of the documents required for this application, in catalogue order."""
    return [code for code, (_, _, _, _, required, required_for_priority) in DOCUMENT_DEFINITIONS.items()
            if required or (is_priority_target and required_for_priority)]


def validate_documents(states, is_priority_target):
    """
    Checks the presence and completeness of the required documents.

    Args:
        states (dict): code -> {'is_present': bool, 'is_complete': bool}.
            Codes missing from the dict count as not present.
        is_priority_target (bool): Whether priority-target documents are required.

    Returns:
        dict: status ('pass' / 'warning' / 'fail'), counts and document name lists.
    """
    required = get_required_documents(is_priority_target)
    missing = []
    incomplete = []
    present_count = 0
    complete_count = 0

    for code in required:
        state = states.get(code) or {}
        if state.get('is_present'):
            present_count += 1
        if state.get('is_complete'):
            complete_count += 1
        if not state.get('is_present'):
            missing.append(document_name(code))
        elif not state.get('is_complete'):
            incomplete.append(document_name(code))

    if missing:
        status = 'fail'
    elif incomplete:
        status = 'warning'
    else:
        status = 'pass'

    return {
        'status': status,
        'check_level': 2,
        'total_required': len(required),
        'present_count': present_count,
        'complete_count': complete_count,
        'missing_documents': missing,
        'incomplete_documents': incomplete,
        'field_errors': [],
        'checked_at': datetime.now(),
    }


def validate_form_fields(fields, policy=DEFAULT_POLICY):
    """Mandatory-field checks for the application form. Returns a list of error messages."""
    errors = []

    if not (fields.get('company_name') or '').strip():
        errors.append('事業所名称が未入力です')

    insurance_number = (fields.get('insurance_number') or '').strip()
    if not insurance_number:
        errors.append('雇用保険適用事業所番号が未入力です')
    elif not INSURANCE_NUMBER_PATTERN.match(insurance_number):
        errors.append('雇用保険適用事業所番号の形式が正しくありません（例: 1234-567890-1）')

    if not (fields.get('representative_name') or '').strip():
        errors.append('代表者氏名が未入力です')
    if not (fields.get('worker_name') or '').strip():
        errors.append('対象労働者氏名が未入力です')
    if not (fields.get('conversion_date') or '').strip():
        errors.append('転換日が未入力です')

    pre_salary = fields.get('pre_salary')
    post_salary = fields.get('post_salary')
    if pre_salary is None:
        errors.append('転換前賃金が未入力です')
    if post_salary is None:
        errors.append('転換後賃金が未入力です')

    if pre_salary and post_salary:
        rate = compute_increase_rate(pre_salary, post_salary)
        if rate < policy.threshold_percent:
            errors.append(f'賃金上昇率が{policy.threshold_percent:g}%未満です（現在: {rate:.2f}%）')

    return errors


def run_document_check(states, fields, is_priority_target, policy=DEFAULT_POLICY):
    """
    Combined check. Field errors downgrade a passing document check to a
    warning, and make it a level 1 result when no document is missing.
    """
    result = validate_documents(states, is_priority_target)
    field_errors = validate_form_fields(fields, policy)

    if field_errors and result['status'] == 'pass':
        result['status'] = 'warning'
    if field_errors and not result['missing_documents']:
        result['check_level'] = 1
    result['field_errors'] = field_errors
    return result


DEMO_SCENARIOS = {
    'all_complete': {
        'name': '全書類完備',
        'description': '全ての書類が揃い、記入も完了',
        'is_priority_target': True,
        'missing': [],
        'incomplete': [],
        'fields': {
            'company_name': '株式会社サンプル', 'insurance_number': '1234-567890-1',
            'representative_name': '山田太郎', 'worker_name': '田中花子',
            'conversion_date': '2025-04-01', 'pre_salary': 210000, 'post_salary': 227000,
        },
    },
    'missing_documents': {
        'name': '書類不足（3件）',
        'description': '賃金台帳、出勤簿、登記簿が不足',
        'is_priority_target': False,
        'missing': ['salary_ledger', 'attendance_record', 'company_registration', 'priority_target_form'],
        'incomplete': [],
        'fields': {
            'company_name': '株式会社サンプル', 'insurance_number': '1234-567890-1',
            'representative_name': '山田太郎', 'worker_name': '田中花子',
            'conversion_date': '2025-04-01', 'pre_salary': 210000, 'post_salary': 227000,
        },
    },
    'incomplete_fields': {
        'name': '記入漏れあり',
        'description': '必須項目が未記入',
        'is_priority_target': False,
        'missing': ['priority_target_form'],
        'incomplete': ['form_3', 'form_3_1_1', 'requirement_confirmation'],
        'fields': {
            'company_name': '株式会社サンプル', 'insurance_number': '',
            'representative_name': '', 'worker_name': '田中花子',
            'conversion_date': '2025-04-01', 'pre_salary': 210000, 'post_salary': None,
        },
    },
}


def scenario_states(scenario_key):
    """Expands a demo scenario into the per-document state dict used by validate_documents."""
    scenario = DEMO_SCENARIOS[scenario_key]
    states = {}
    for code in DOCUMENT_DEFINITIONS:
        present = code not in scenario['missing']
        states[code] = {'is_present': present, 'is_complete': present and code not in scenario['incomplete']}
    return states
