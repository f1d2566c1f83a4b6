# ==============================================================================
# app/calculator/validator.py
# ------------------------------------------------------------------------------
# Handles the validation of uploaded salary ledgers and of JSON backup
# documents, and of edited policy settings, before anything reaches the
# calculator or the database.
# ==============================================================================

import json
import math
import os
from datetime import date

import pandas as pd

from .engine import MonthlySalaryRecord
from .schema import (SALARY_LEDGER, SALARY_LEDGER_FIELDS, REQUIRED_CLIENT_KEYS,
                     REQUIRED_APPLICATION_KEYS, CLIENT_FIELDS, APPLICATION_FIELDS, DATE_FIELDS,
                     SETTING_RANGES, SUBSIDY_AMOUNT_KEYS)


def _read_ledger(filepath):
    if os.path.splitext(filepath)[1].lower() == '.csv':
        return pd.read_csv(filepath, encoding='utf-8-sig')
    return pd.read_excel(filepath)


def _year_month_label(value):
    if pd.isna(value):
        return ''
    if isinstance(value, (pd.Timestamp, date)):
        return value.strftime('%Y-%m')
    return str(value).strip()


def validate_salary_ledger_file(filepath):
    """
    Validates an uploaded salary ledger and converts it into salary records.

    Args:
        filepath (str): The path to the uploaded .xlsx or .csv file.

    Returns:
        tuple: A tuple containing:
            - tuple: (pre_records, post_records) if validation is successful, else None.
            - list: A list of human-readable error messages if validation fails.
    """
    errors = []

    try:
        df = _read_ledger(filepath)
    except Exception as e:
        errors.append(f"賃金台帳ファイルが読み込めません。技術的なエラー: {e}")
        return None, errors

    # 1. Check for required columns
    missing_columns = [col for col in SALARY_LEDGER['required_columns'] if col not in df.columns]
    if missing_columns:
        errors.append(f"賃金台帳に必要な列がありません: {', '.join(missing_columns)}")
        return None, errors

    if df.empty:
        errors.append("賃金台帳にデータ行がありません")
        return None, errors

    # 2. Check numeric columns for non-numeric values
    numeric = {}
    for col in SALARY_LEDGER['numeric_columns']:
        # Coerce to numeric, making non-numbers NaN
        numeric_series = pd.to_numeric(df[col].astype(str).str.replace(',', ''), errors='coerce')
        # Find rows where the original value was not empty but the numeric version is NaN
        invalid_rows = df[numeric_series.isna() & df[col].notna()]
        for index in invalid_rows.index:
            value = invalid_rows.loc[index, col]
            errors.append(f"{index + 2}行目: 列「{col}」の値「{value}」は数値である必要があります")
        for index in df[numeric_series < 0].index:
            errors.append(f"{index + 2}行目: 列「{col}」の値「{df.loc[index, col]}」は0以上である必要があります")
        # Empty cells count as zero
        numeric[col] = numeric_series.fillna(0)

    # 3. Check the period column and build the records
    pre_records, post_records = [], []
    for index, row in df.iterrows():
        period_raw = '' if pd.isna(row['期間']) else str(row['期間']).strip()
        period = SALARY_LEDGER['period_values'].get(period_raw)
        if period is None:
            errors.append(f"{index + 2}行目: 期間「{period_raw}」は「転換前」または「転換後」である必要があります")
            continue

        values = {'year_month': _year_month_label(row['年月'])}
        for col, attr in SALARY_LEDGER_FIELDS.items():
            if col in numeric:
                values[attr] = float(numeric[col].loc[index])
        record = MonthlySalaryRecord(**values)
        (pre_records if period == 'pre' else post_records).append(record)

    if errors:
        return None, errors

    return (pre_records, post_records), []


def _parse_date(value):
    return date.fromisoformat(str(value)[:10])


def validate_backup_document(payload):
    """
    Validates a JSON backup document before it replaces the office's data.

    Args:
        payload: The decoded JSON document.

    Returns:
        list: Human-readable error messages. Empty if the document can be imported.
    """
    errors = []
    if not isinstance(payload, dict):
        return ["バックアップファイルの形式が正しくありません（JSONオブジェクトが必要です）"]

    clients = payload.get('clients')
    applications = payload.get('applications')
    if not isinstance(clients, list):
        errors.append("「clients」が配列ではありません")
    if not isinstance(applications, list):
        errors.append("「applications」が配列ではありません")
    if errors:
        return errors

    client_ids = set()
    for index, item in enumerate(clients):
        label = f"顧問先{index + 1}件目"
        if not isinstance(item, dict):
            errors.append(f"{label}: オブジェクトではありません")
            continue
        for key in REQUIRED_CLIENT_KEYS:
            if not item.get(key):
                errors.append(f"{label}: 「{key}」がありません")
        if item.get('id') in client_ids:
            errors.append(f"{label}: IDが重複しています（{item.get('id')}）")
        client_ids.add(item.get('id'))
        errors.extend(_date_errors(label, item, CLIENT_FIELDS))

    application_ids = set()
    for index, item in enumerate(applications):
        label = f"申請{index + 1}件目"
        if not isinstance(item, dict):
            errors.append(f"{label}: オブジェクトではありません")
            continue
        for key in REQUIRED_APPLICATION_KEYS:
            if not item.get(key):
                errors.append(f"{label}: 「{key}」がありません")
        if item.get('clientId') and item.get('clientId') not in client_ids:
            errors.append(f"{label}: 顧問先（{item.get('clientId')}）が存在しません")
        if item.get('id') in application_ids:
            errors.append(f"{label}: IDが重複しています（{item.get('id')}）")
        application_ids.add(item.get('id'))
        errors.extend(_date_errors(label, item, APPLICATION_FIELDS))

    return errors


def _date_errors(label, item, field_map):
    errors = []
    for key, attr in field_map.items():
        if attr in DATE_FIELDS and item.get(key):
            try:
                _parse_date(item[key])
            except ValueError:
                errors.append(f"{label}: 「{key}」の日付「{item[key]}」が不正です")
    return errors


def _range_error(key, number):
    low, high = SETTING_RANGES.get(key, (None, None))
    if low is not None and number < low:
        return f"{low}以上の値を入力してください"
    if high is not None and number > high:
        return f"{high}以下の値を入力してください"
    return None


def _is_amount(value):
    return (isinstance(value, (int, float)) and not isinstance(value, bool)
            and math.isfinite(value) and value >= 0)


def validate_setting_value(key, value_type, raw_value):
    """
    Checks an edited policy setting before it is saved.

    Args:
        key (str): The AppSetting key.
        value_type (str): 'float', 'int', 'json' or 'string'.
        raw_value (str): The value typed on the settings screen.

    Returns:
        tuple: (normalized string value or None, list of error messages)
    """
    value = (raw_value or '').strip()

    if value_type == 'float':
        try:
            number = float(value)
        except ValueError:
            return None, ["数値を入力してください"]
        if not math.isfinite(number):
            return None, ["有限の数値を入力してください"]
        error = _range_error(key, number)
        return (None, [error]) if error else (str(number), [])

    if value_type == 'int':
        try:
            number = int(value)
        except ValueError:
            return None, ["整数を入力してください"]
        error = _range_error(key, number)
        return (None, [error]) if error else (str(number), [])

    if value_type == 'json':
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return None, ["JSONとして読み込めません"]
        if key == 'SUBSIDY_AMOUNTS':
            if not isinstance(parsed, dict):
                return None, ["助成金額は {\"small\": 800000, ...} の形式で入力してください"]
            errors = [f"「{k}」は不明な項目です" for k in parsed if k not in SUBSIDY_AMOUNT_KEYS]
            errors += [f"「{k}」は0以上の数値である必要があります"
                       for k, v in parsed.items() if k in SUBSIDY_AMOUNT_KEYS and not _is_amount(v)]
            if errors:
                return None, errors
        return json.dumps(parsed, ensure_ascii=False), []

    return value, []
