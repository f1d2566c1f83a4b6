# ==============================================================================
# app/ocr/fields.py
# ------------------------------------------------------------------------------
# Typed views of the fields the OCR service extracts, one class per document
# type. Raw model output is loosely typed; it is coerced and checked here
# before anything else looks at it.
# ==============================================================================

import re
from dataclasses import dataclass, field, fields as dataclass_fields
from typing import Dict, Optional

from app.calculator.engine import MonthlySalaryRecord

_NUMBER_PATTERN = re.compile(r'-?\d+(?:\.\d+)?')


def to_number(value):
    """'210,000円' -> 210000.0. Returns None when there is no number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = _NUMBER_PATTERN.search(str(value).replace(',', '').replace('，', ''))
    return float(match.group()) if match else None


def to_bool(value):
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ('true', 'yes', 'あり', '有', 'はい', '1'):
        return True
    if text in ('false', 'no', 'なし', '無', 'いいえ', '0'):
        return False
    return None


def to_text(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class SalaryLedgerFields:
    document_type = 'salary_ledger'
    employee_name: Optional[str] = None
    period: Optional[str] = None
    base_salary: Optional[float] = None
    fixed_allowances: Optional[float] = None
    overtime_pay: Optional[float] = None
    commuting_allowance: Optional[float] = None
    total_payment: Optional[float] = None
    work_days: Optional[float] = None
    scheduled_work_days: Optional[float] = None

    def to_salary_record(self):
        """Calculator input for this month. Missing amounts count as zero."""
        return MonthlySalaryRecord(
            year_month=self.period or '',
            base_salary=self.base_salary or 0,
            fixed_allowances=self.fixed_allowances or 0,
            overtime_pay=self.overtime_pay or 0,
            commuting_allowance=self.commuting_allowance or 0,
            work_days=self.work_days or 0,
            scheduled_work_days=self.scheduled_work_days or 0,
        )


@dataclass
class Form3Fields:
    document_type = 'form_3'
    company_name: Optional[str] = None
    insurance_number: Optional[str] = None
    representative_name: Optional[str] = None
    worker_name: Optional[str] = None
    conversion_date: Optional[str] = None
    pre_salary_total: Optional[float] = None
    post_salary_total: Optional[float] = None
    salary_increase_rate: Optional[float] = None
    application_amount: Optional[float] = None


@dataclass
class EmploymentContractFields:
    document_type = 'employment_contract'
    employee_name: Optional[str] = None
    employment_type: Optional[str] = None
    contract_start_date: Optional[str] = None
    contract_end_date: Optional[str] = None
    base_salary: Optional[float] = None
    working_hours: Optional[str] = None
    has_bonus: Optional[bool] = None
    has_retirement_benefit: Optional[bool] = None


@dataclass
class GenericFields:
    document_type = 'other'
    values: Dict[str, object] = field(default_factory=dict)


FIELD_TYPES = {
    'salary_ledger': SalaryLedgerFields,
    'form_3': Form3Fields,
    'employment_contract': EmploymentContractFields,
}

DOCUMENT_TYPE_LABELS = {
    'salary_ledger': '賃金台帳',
    'form_3': '様式第3号',
    'employment_contract': '雇用契約書',
    'other': 'その他',
}

FIELD_LABELS = {
    'employee_name': '従業員名',
    'period': '対象期間',
    'base_salary': '基本給',
    'fixed_allowances': '固定的手当',
    'overtime_pay': '残業代',
    'commuting_allowance': '通勤手当',
    'total_payment': '総支給額',
    'work_days': '出勤日数',
    'scheduled_work_days': '所定労働日数',
    'company_name': '事業所名称',
    'insurance_number': '雇用保険適用事業所番号',
    'representative_name': '代表者氏名',
    'worker_name': '対象労働者氏名',
    'conversion_date': '転換日',
    'pre_salary_total': '転換前賃金合計',
    'post_salary_total': '転換後賃金合計',
    'salary_increase_rate': '賃金上昇率',
    'application_amount': '申請金額',
    'employment_type': '雇用形態',
    'contract_start_date': '契約開始日',
    'contract_end_date': '契約終了日',
    'working_hours': '所定労働時間',
    'has_bonus': '賞与',
    'has_retirement_benefit': '退職金',
}


def _coerce(type_hint, value):
    if type_hint == Optional[float]:
        return to_number(value)
    if type_hint == Optional[bool]:
        return to_bool(value)
    return to_text(value)


def parse_fields(document_type, raw):
    """
    Turns the raw extracted mapping into the typed fields for `document_type`.

    Returns:
        tuple: (fields object, list of warnings about values that could not be read)
    """
    cls = FIELD_TYPES.get(document_type)
    if cls is None:
        return GenericFields(values=dict(raw or {})), []

    raw = raw or {}
    errors = []
    values = {}
    for f in dataclass_fields(cls):
        value = raw.get(f.name)
        coerced = _coerce(f.type, value)
        if value not in (None, '') and coerced is None:
            errors.append(f"{FIELD_LABELS.get(f.name, f.name)}: 「{value}」を読み取れませんでした")
        values[f.name] = coerced

    parsed = cls(**values)
    if isinstance(parsed, SalaryLedgerFields):
        for name in ('base_salary', 'work_days', 'scheduled_work_days'):
            amount = getattr(parsed, name)
            if amount is not None and amount < 0:
                errors.append(f"{FIELD_LABELS[name]}: 負の値です")
    return parsed, errors


def field_items(parsed):
    """(label, value) pairs for display, in declaration order."""
    if isinstance(parsed, GenericFields):
        return list(parsed.values.items())
    return [(FIELD_LABELS.get(f.name, f.name), getattr(parsed, f.name)) for f in dataclass_fields(parsed)]
