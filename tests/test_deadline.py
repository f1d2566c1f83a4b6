# tests/test_deadline.py

from datetime import date, datetime, timedelta

import pandas as pd
import pytest

from app.calculator.deadline import (
    SEVERITY_UPPER_DAYS, STATUS_LABELS, calculate_application_deadline, calculate_days_remaining, deadline_severity,
    derive_application_view, describe_deadline, get_status_label,
)
from app.calculator.engine import EligibilityPolicy


def test_same_calendar_day_is_zero_regardless_of_time():
    assert calculate_days_remaining(datetime(2025, 6, 10, 23, 0), datetime(2025, 6, 10, 1, 0)) == 0


def test_deadline_yesterday_is_minus_one():
    now = datetime(2025, 6, 10, 9, 30)
    assert calculate_days_remaining(date(2025, 6, 9), now) == -1


@pytest.mark.parametrize('deadline', ['2025-06-20', date(2025, 6, 20), datetime(2025, 6, 20, 18),
                                      pd.Timestamp('2025-06-20 08:00')])
def test_accepts_strings_dates_and_timestamps(deadline):
    assert calculate_days_remaining(deadline, datetime(2025, 6, 10, 12)) == 10


def test_defaults_to_now():
    assert calculate_days_remaining(date.today() + timedelta(days=3)) == 3


def test_unknown_status_reads_as_preparing():
    assert get_status_label('unknown_code') == get_status_label('preparing') == '準備中'
    assert get_status_label(None) == '準備中'


def test_every_status_has_its_own_label():
    assert len(set(STATUS_LABELS.values())) == len(STATUS_LABELS) == 7
    assert get_status_label('paid') == '支給済み'


@pytest.mark.parametrize('days, bucket', [
    (-30, 'overdue'), (-1, 'overdue'),
    (0, 'urgent'), (7, 'urgent'),
    (8, 'soon'), (14, 'soon'),
    (15, 'upcoming'), (30, 'upcoming'),
    (31, 'normal'), (365, 'normal'),
])
def test_severity_buckets(days, bucket):
    assert deadline_severity(days) == bucket


def test_derive_view_from_dict_does_not_touch_the_record():
    record = {'application_deadline': '2025-06-17', 'status': 'submitted'}
    view = derive_application_view(record, datetime(2025, 6, 10, 22))
    assert view == {'daysRemaining': 7, 'statusLabel': '申請済み', 'severity': 'urgent'}
    assert record == {'application_deadline': '2025-06-17', 'status': 'submitted'}


def test_derive_view_from_model(make_application):
    application = make_application(application_deadline=date(2025, 6, 1), status='bogus')
    view = derive_application_view(application, datetime(2025, 6, 10))
    assert view['daysRemaining'] == -9
    assert view['statusLabel'] == '準備中'
    assert view['severity'] == 'overdue'


# --- Application deadline ---

def test_deadline_is_two_months_after_sixth_payment():
    assert calculate_application_deadline(date(2025, 4, 1)) == date(2025, 12, 25)


def test_custom_payment_day():
    assert calculate_application_deadline('2025-04-01', salary_payment_day=10) == date(2025, 12, 10)


def test_payment_day_is_clamped_to_month_end():
    # 2025-12-31 + 2 months -> February has no 31st
    assert calculate_application_deadline(date(2025, 6, 15), salary_payment_day=31) == date(2026, 2, 28)


def test_deadline_follows_policy():
    policy = EligibilityPolicy(salary_payment_day=20, deadline_months_after_payment=3)
    assert calculate_application_deadline(date(2025, 4, 1), policy=policy) == date(2026, 1, 20)


@pytest.mark.parametrize('days, fragment', [
    (-5, '5日過ぎています'),
    (0, '早急に'),
    (14, '早急に'),
    (15, '書類準備'),
    (30, '書類準備'),
    (31, 'あと31日です。'),
])
def test_describe_deadline(days, fragment):
    assert fragment in describe_deadline(days)


@pytest.mark.parametrize('days', range(-3, 40))
def test_describe_deadline_follows_severity_buckets(days):
    message = describe_deadline(days)
    severity = deadline_severity(days)
    assert ('過ぎています' in message) == (severity == 'overdue')
    assert ('早急に' in message) == (severity in ('urgent', 'soon'))
    assert ('書類準備' in message) == (severity == 'upcoming')


def test_severity_upper_days_by_bucket_name():
    assert SEVERITY_UPPER_DAYS['urgent'] == 7
    assert SEVERITY_UPPER_DAYS['soon'] == 14
    assert SEVERITY_UPPER_DAYS['upcoming'] == 30
    assert deadline_severity(SEVERITY_UPPER_DAYS['soon']) == 'soon'
    assert deadline_severity(SEVERITY_UPPER_DAYS['soon'] + 1) == 'upcoming'
