# tests/test_documents.py

import pytest

from app.calculator.documents import (DEMO_SCENARIOS, DOCUMENT_DEFINITIONS, get_required_documents,
                                      run_document_check, scenario_states, validate_documents,
                                      validate_form_fields)

COMPLETE_FIELDS = {
    'company_name': '株式会社サンプル',
    'insurance_number': '1234-567890-1',
    'representative_name': '山田太郎',
    'worker_name': '田中花子',
    'conversion_date': '2025-04-01',
    'pre_salary': 210000,
    'post_salary': 227000,
}


def all_states(present=True, complete=True):
    return {code: {'is_present': present, 'is_complete': complete} for code in DOCUMENT_DEFINITIONS}


def test_catalogue_has_fourteen_documents():
    assert len(DOCUMENT_DEFINITIONS) == 14


def test_priority_form_only_required_for_priority_targets():
    assert 'priority_target_form' not in get_required_documents(False)
    assert 'priority_target_form' in get_required_documents(True)
    assert len(get_required_documents(True)) == len(get_required_documents(False)) + 1


def test_all_documents_complete_pass():
    result = validate_documents(all_states(), is_priority_target=True)
    assert result['status'] == 'pass'
    assert result['check_level'] == 2
    assert result['total_required'] == result['present_count'] == result['complete_count'] == 14


def test_missing_document_fails():
    states = all_states()
    states['salary_ledger'] = {'is_present': False, 'is_complete': False}
    result = validate_documents(states, is_priority_target=False)
    assert result['status'] == 'fail'
    assert result['missing_documents'] == ['賃金台帳（12ヶ月分）']


def test_unlisted_codes_count_as_missing():
    result = validate_documents({}, is_priority_target=False)
    assert result['status'] == 'fail'
    assert len(result['missing_documents']) == 13


def test_incomplete_document_is_a_warning():
    states = all_states()
    states['form_3']['is_complete'] = False
    result = validate_documents(states, is_priority_target=False)
    assert result['status'] == 'warning'
    assert result['incomplete_documents'] == ['様式第3号（支給申請書）']


def test_complete_fields_have_no_errors():
    assert validate_form_fields(COMPLETE_FIELDS) == []


@pytest.mark.parametrize('number', ['12345678901', '1234-56789-1', 'abcd-567890-1'])
def test_insurance_number_format(number):
    errors = validate_form_fields(dict(COMPLETE_FIELDS, insurance_number=number))
    assert errors == ['雇用保険適用事業所番号の形式が正しくありません（例: 1234-567890-1）']


def test_missing_fields_and_low_rate():
    errors = validate_form_fields({'company_name': '  ', 'pre_salary': 200000, 'post_salary': 201000})
    assert '事業所名称が未入力です' in errors
    assert '雇用保険適用事業所番号が未入力です' in errors
    assert '賃金上昇率が3%未満です（現在: 0.50%）' in errors


def test_field_errors_downgrade_pass_to_level_one_warning():
    result = run_document_check(all_states(), dict(COMPLETE_FIELDS, representative_name=''), False)
    assert result['status'] == 'warning'
    assert result['check_level'] == 1
    assert result['field_errors'] == ['代表者氏名が未入力です']


def test_missing_documents_keep_level_two():
    states = all_states()
    states['contract_pre']['is_present'] = False
    result = run_document_check(states, {}, False)
    assert result['status'] == 'fail'
    assert result['check_level'] == 2
    assert result['field_errors']


@pytest.mark.parametrize('key, status', [
    ('all_complete', 'pass'),
    ('missing_documents', 'fail'),
    ('incomplete_fields', 'warning'),
])
def test_demo_scenarios(key, status):
    scenario = DEMO_SCENARIOS[key]
    result = run_document_check(scenario_states(key), scenario['fields'], scenario['is_priority_target'])
    assert result['status'] == status
