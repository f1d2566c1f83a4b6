# tests/test_validator.py

import pandas as pd
import pytest

from app.calculator.engine import calculate_salary_increase
from app.calculator.validator import validate_backup_document, validate_salary_ledger_file, validate_setting_value

HEADER = '期間,年月,基本給,固定的手当,残業代,通勤手当,実労働日数,所定労働日数\n'


def ledger_rows(pre_base=200000, post_base=217000):
    rows = [f'転換前,2024-{m:02d},{pre_base},10000,25000,15000,20,20' for m in range(10, 13)]
    rows += [f'転換前,2025-{m:02d},{pre_base},10000,25000,15000,20,20' for m in range(1, 4)]
    rows += [f'転換後,2025-{m:02d},"{post_base:,}",10000,30000,15000,20,20' for m in range(4, 10)]
    return rows


@pytest.fixture
def write_ledger(tmp_path):
    def _write(rows, name='ledger.csv', header=HEADER):
        path = tmp_path / name
        path.write_text(header + '\n'.join(rows) + '\n', encoding='utf-8-sig')
        return str(path)
    return _write


def test_valid_csv_ledger(write_ledger):
    records, errors = validate_salary_ledger_file(write_ledger(ledger_rows()))
    assert errors == []
    pre, post = records
    assert len(pre) == len(post) == 6
    assert pre[0].year_month == '2024-10'
    assert post[0].base_salary == 217000
    result = calculate_salary_increase(pre, post)
    assert result.preTotalSalary == 1260000
    assert result.postTotalSalary == 1362000


def test_valid_excel_ledger(tmp_path):
    rows = [line.replace('"', '').replace('217,000', '217000').split(',') for line in ledger_rows()]
    df = pd.DataFrame(rows, columns=HEADER.strip().split(','))
    for col in df.columns[2:]:
        df[col] = pd.to_numeric(df[col])
    path = tmp_path / 'ledger.xlsx'
    df.to_excel(path, index=False)

    records, errors = validate_salary_ledger_file(str(path))
    assert errors == []
    assert len(records[0]) == 6


def test_missing_columns(write_ledger):
    records, errors = validate_salary_ledger_file(
        write_ledger(['転換前,2025-01,200000'], header='期間,年月,基本給\n'))
    assert records is None
    assert errors == ['賃金台帳に必要な列がありません: 固定的手当, 残業代, 通勤手当, 実労働日数, 所定労働日数']


def test_non_numeric_cells_report_row_numbers(write_ledger):
    rows = ledger_rows()
    rows[2] = '転換前,2024-12,二十万,10000,25000,15000,20,20'
    records, errors = validate_salary_ledger_file(write_ledger(rows))
    assert records is None
    assert errors == ['4行目: 列「基本給」の値「二十万」は数値である必要があります']


def test_unknown_period_label(write_ledger):
    rows = ledger_rows()
    rows[0] = rows[0].replace('転換前', '試用期間')
    records, errors = validate_salary_ledger_file(write_ledger(rows))
    assert records is None
    assert errors == ['2行目: 期間「試用期間」は「転換前」または「転換後」である必要があります']


def test_empty_cells_count_as_zero(write_ledger):
    rows = ledger_rows()
    rows[0] = '転換前,2024-10,200000,,,,20,20'
    records, errors = validate_salary_ledger_file(write_ledger(rows))
    assert errors == []
    assert records[0][0].fixed_allowances == 0


def test_unreadable_file(tmp_path):
    path = tmp_path / 'broken.xlsx'
    path.write_bytes(b'not an excel file')
    records, errors = validate_salary_ledger_file(str(path))
    assert records is None
    assert errors[0].startswith('賃金台帳ファイルが読み込めません')


# --- Backup documents ---

def backup(clients=None, applications=None):
    return {
        'version': 1,
        'clients': clients if clients is not None else [{'id': 'c1', 'companyName': '株式会社サンプル'}],
        'applications': applications if applications is not None else [{
            'id': 'a1', 'clientId': 'c1', 'workerName': '田中花子',
            'conversionDate': '2025-04-01', 'applicationDeadline': '2025-12-25',
        }],
    }


def test_valid_backup():
    assert validate_backup_document(backup()) == []


def test_backup_must_be_an_object_with_arrays():
    assert validate_backup_document([]) == ['バックアップファイルの形式が正しくありません（JSONオブジェクトが必要です）']
    assert validate_backup_document({'clients': {}, 'applications': None}) == [
        '「clients」が配列ではありません', '「applications」が配列ではありません']


def test_backup_reference_and_duplicate_errors():
    doc = backup(
        clients=[{'id': 'c1', 'companyName': 'A'}, {'id': 'c1', 'companyName': 'B'}],
        applications=[{'id': 'a1', 'clientId': 'zz', 'workerName': 'X',
                       'conversionDate': '2025-04-01', 'applicationDeadline': '2025-13-01'}],
    )
    errors = validate_backup_document(doc)
    assert '顧問先2件目: IDが重複しています（c1）' in errors
    assert '申請1件目: 顧問先（zz）が存在しません' in errors
    assert '申請1件目: 「applicationDeadline」の日付「2025-13-01」が不正です' in errors


def test_backup_missing_required_keys():
    errors = validate_backup_document(backup(applications=[{'id': 'a1', 'clientId': 'c1'}]))
    assert '申請1件目: 「workerName」がありません' in errors
    assert '申請1件目: 「conversionDate」がありません' in errors


def test_negative_cells_report_row_numbers(write_ledger):
    rows = ledger_rows()
    rows[0] = '転換前,2024-10,200000,-10000,25000,15000,20,20'
    records, errors = validate_salary_ledger_file(write_ledger(rows))
    assert records is None
    assert errors == ['2行目: 列「固定的手当」の値「-10000」は0以上である必要があります']


# --- Policy settings ---

def test_subsidy_amounts_must_be_an_object():
    value, errors = validate_setting_value('SUBSIDY_AMOUNTS', 'json', '[800000]')
    assert value is None
    assert len(errors) == 1
    assert '形式で入力してください' in errors[0]


def test_subsidy_amounts_reject_unknown_keys_and_bad_amounts():
    value, errors = validate_setting_value(
        'SUBSIDY_AMOUNTS', 'json', '{"small": "80万", "large": -1, "medium": 1, "priority_addition": true}')
    assert value is None
    assert errors == [
        '「medium」は不明な項目です',
        '「small」は0以上の数値である必要があります',
        '「large」は0以上の数値である必要があります',
        '「priority_addition」は0以上の数値である必要があります',
    ]


def test_subsidy_amounts_are_normalized():
    value, errors = validate_setting_value('SUBSIDY_AMOUNTS', 'json', ' {"small":700000, "large": 600000} ')
    assert errors == []
    assert value == '{"small": 700000, "large": 600000}'


def test_broken_json_is_rejected():
    assert validate_setting_value('SUBSIDY_AMOUNTS', 'json', '{not json') == (None, ['JSONとして読み込めません'])


@pytest.mark.parametrize('raw', ['nan', 'inf', '-inf'])
def test_non_finite_floats_are_rejected(raw):
    value, errors = validate_setting_value('SALARY_INCREASE_THRESHOLD_PERCENT', 'float', raw)
    assert value is None
    assert errors == ['有限の数値を入力してください']


@pytest.mark.parametrize('key, value_type, raw, error', [
    ('REQUIRED_MONTHS', 'int', '0', '1以上の値を入力してください'),
    ('REQUIRED_MONTHS', 'int', '6.5', '整数を入力してください'),
    ('DEFAULT_SALARY_PAYMENT_DAY', 'int', '32', '31以下の値を入力してください'),
    ('ATTENDANCE_WARNING_RATIO', 'float', '1.5', '1以下の値を入力してください'),
    ('SALARY_INCREASE_THRESHOLD_PERCENT', 'float', '-3', '0以上の値を入力してください'),
    ('SALARY_INCREASE_THRESHOLD_PERCENT', 'float', '三', '数値を入力してください'),
])
def test_out_of_range_settings_are_rejected(key, value_type, raw, error):
    assert validate_setting_value(key, value_type, raw) == (None, [error])


@pytest.mark.parametrize('key, value_type, raw, expected', [
    ('SALARY_INCREASE_THRESHOLD_PERCENT', 'float', ' 4 ', '4.0'),
    ('ATTENDANCE_WARNING_RATIO', 'float', '0.8', '0.8'),
    ('REQUIRED_MONTHS', 'int', '6', '6'),
    ('SOME_LABEL', 'string', ' 表示名 ', '表示名'),
])
def test_valid_settings_are_normalized(key, value_type, raw, expected):
    assert validate_setting_value(key, value_type, raw) == (expected, [])
