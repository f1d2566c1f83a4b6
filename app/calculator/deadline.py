# ==============================================================================
# app/calculator/deadline.py
# ------------------------------------------------------------------------------
# Display-only fields derived from a stored application: days remaining until
# the deadline, the status label and the severity bucket. These are computed
# on every read and never written back, since "now" keeps moving.
# ==============================================================================

from datetime import date, datetime

import pandas as pd

from app.calculator.engine import DEFAULT_POLICY

STATUS_LABELS = {
    'preparing': '準備中',
    'documents_ready': '書類作成中',
    'submitted': '申請済み',
    'under_review': '審査中',
    'approved': '承認済み',
    'paid': '支給済み',
    'rejected': '不承認',
}
DEFAULT_STATUS = 'preparing'

# (upper bound inclusive, bucket). Anything above the last bound is 'normal'.
SEVERITY_THRESHOLDS = [
    (-1, 'overdue'),
    (7, 'urgent'),
    (14, 'soon'),
    (30, 'upcoming'),
]

# Inclusive upper bound of each bucket, by name
SEVERITY_UPPER_DAYS = {bucket: upper for upper, bucket in SEVERITY_THRESHOLDS}

SEVERITY_LABELS = {
    'overdue': '期限超過',
    'urgent': '緊急',
    'soon': '間近',
    'upcoming': '準備期間',
    'normal': '余裕あり',
}


def _to_date(value):
    """Accepts a date, datetime, pandas Timestamp or ISO string and strips the time of day."""
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def calculate_days_remaining(deadline, reference_now=None):
    """
    Whole days from `reference_now` until `deadline`, both taken at midnight.

    0 means the deadline is today, negative values mean overdue by that many days.
    """
    today = _to_date(reference_now if reference_now is not None else datetime.now())
    return (_to_date(deadline) - today).days


def get_status_label(status_code):
    """Human label for a status code. Unknown or missing codes read as 'preparing'."""
    return STATUS_LABELS.get(status_code, STATUS_LABELS[DEFAULT_STATUS])


def deadline_severity(days_remaining):
    """Buckets days remaining into overdue / urgent / soon / upcoming / normal."""
    for upper, bucket in SEVERITY_THRESHOLDS:
        if days_remaining <= upper:
            return bucket
    return 'normal'


def derive_application_view(application, reference_now=None):
    """
    Computes the derived fields for one stored application.

    Args:
        application: An Application model or a dict with 'application_deadline' and 'status'.
        reference_now: The moment to measure from. Defaults to now.

    Returns:
        dict: {'daysRemaining': int, 'statusLabel': str, 'severity': str}
    """
    if isinstance(application, dict):
        deadline = application['application_deadline']
        status = application.get('status')
    else:
        deadline = application.application_deadline
        status = application.status

    days_remaining = calculate_days_remaining(deadline, reference_now)
    return {
        'daysRemaining': days_remaining,
        'statusLabel': get_status_label(status),
        'severity': deadline_severity(days_remaining),
    }


def _clamp_day(timestamp, day):
    return timestamp.replace(day=min(day, timestamp.days_in_month))


def calculate_application_deadline(conversion_date, salary_payment_day=None, policy=DEFAULT_POLICY):
    """
    The application deadline: two months after the salary payment for the
    sixth month following conversion.

    Days past the end of a month are clamped to the month's last day.
    """
    payment_day = salary_payment_day or policy.salary_payment_day
    sixth_month = pd.Timestamp(_to_date(conversion_date)) + pd.DateOffset(months=6)
    sixth_payment = _clamp_day(sixth_month, payment_day)
    deadline = sixth_payment + pd.DateOffset(months=policy.deadline_months_after_payment)
    return deadline.date()


def describe_deadline(days_remaining):
    """Advisory message shown next to a computed deadline."""
    severity = deadline_severity(days_remaining)
    if severity == 'overdue':
        return f"申請期限を{abs(days_remaining)}日過ぎています。至急労働局にご相談ください。"
    if severity in ('urgent', 'soon'):
        return f"申請期限まであと{days_remaining}日です。早急に申請準備を完了してください。"
    if severity == 'upcoming':
        return f"申請期限まであと{days_remaining}日です。書類準備を進めてください。"
    return f"申請期限まであと{days_remaining}日です。"
