# ==============================================================================
# app/main/utils.py
# ------------------------------------------------------------------------------
# View helpers: aggregation for the dashboard, the calendar grid and the
# pandas frames behind the CSV exports.
# ==============================================================================

import calendar
from collections import defaultdict
from datetime import date

import pandas as pd

from app.calculator.deadline import SEVERITY_UPPER_DAYS
from app.calculator.engine import DEFAULT_POLICY
from app.calculator.schema import (APPLICATIONS_CSV_COLUMNS, CLIENTS_CSV_COLUMNS, CONVERSION_TYPE_LABELS,
                                   GENDER_LABELS)

# Applications due within this many days (and not yet overdue) need attention.
ATTENTION_DAYS = SEVERITY_UPPER_DAYS['soon']


def _needs_attention(view):
    return 0 <= view['daysRemaining'] <= ATTENTION_DAYS


def _estimated_total(application):
    # Records without an estimate count at the small-business base amount.
    return application.estimated_total or DEFAULT_POLICY.subsidy_small_business


def summarize_views(views):
    """Counts and amounts over a list of application views (see store.list_application_views)."""
    return {
        'count': len(views),
        'attention': sum(1 for v in views if _needs_attention(v)),
        'overdue': sum(1 for v in views if v['daysRemaining'] < 0),
        'priority': sum(1 for v in views if v['record'].is_priority_target),
        'estimated_total': sum(_estimated_total(v['record']) for v in views),
    }


def build_dashboard(clients, views):
    """
    Aggregates the office's applications for the dashboard.

    Returns:
        dict: 'overall' stats, 'clients' (client, stats) pairs and
              'attention' (the views due within two weeks, soonest first).
    """
    by_client = defaultdict(list)
    for view in views:
        by_client[view['record'].client_id].append(view)

    return {
        'overall': summarize_views(views),
        'clients': [(client, summarize_views(by_client.get(client.id, []))) for client in clients],
        'attention': [v for v in views if _needs_attention(v)],
    }


def shift_month(year, month, delta):
    year_offset, month_index = divmod(month - 1 + delta, 12)
    return year + year_offset, month_index + 1


def build_calendar(year, month, views):
    """
    Sunday-first month grid with each application placed on its deadline.

    Returns:
        list: weeks, each a list of 7 dicts {'date', 'in_month', 'views'}.
    """
    by_deadline = defaultdict(list)
    for view in views:
        by_deadline[view['record'].application_deadline].append(view)

    weeks = []
    for week in calendar.Calendar(firstweekday=calendar.SUNDAY).monthdatescalendar(year, month):
        weeks.append([
            {'date': day, 'in_month': day.month == month, 'views': by_deadline.get(day, [])}
            for day in week
        ])
    return weeks


def _iso(value):
    return value.isoformat() if isinstance(value, date) else ''


def _amount(value):
    if not value:
        return 0
    return int(value) if float(value).is_integer() else value


def applications_frame(views, clients):
    """One row per application, with the Japanese headers of the export."""
    names = {client.id: client.company_name for client in clients}
    rows = []
    for view in views:
        a = view['record']
        rows.append([
            names.get(a.client_id, ''),
            a.worker_name,
            a.worker_name_kana or '',
            _iso(a.birth_date),
            GENDER_LABELS.get(a.gender, ''),
            _iso(a.hire_date),
            _iso(a.conversion_date),
            CONVERSION_TYPE_LABELS.get(a.conversion_type, CONVERSION_TYPE_LABELS['dispatch_to_regular']),
            _iso(a.application_deadline),
            view['daysRemaining'],
            view['statusLabel'],
            'はい' if a.is_priority_target else 'いいえ',
            a.priority_category or '',
            a.priority_reason or '',
            _amount(a.pre_salary) or '',
            _amount(a.post_salary) or '',
            f"{a.salary_increase_rate:.1f}" if a.salary_increase_rate is not None else '',
            _amount(a.estimated_phase1),
            _amount(a.estimated_phase2),
            _amount(a.estimated_total),
            a.notes or '',
        ])
    return pd.DataFrame(rows, columns=APPLICATIONS_CSV_COLUMNS)


def clients_frame(clients, applications):
    """One row per client with its application count and estimated subsidy total."""
    grouped = defaultdict(list)
    for application in applications:
        grouped[application.client_id].append(application)

    rows = []
    for client in clients:
        client_apps = grouped.get(client.id, [])
        rows.append([
            client.company_name,
            client.registration_number or '',
            '中小企業' if client.is_small_business else '大企業',
            client.career_up_manager or '',
            '整備済み' if client.has_employment_rules else '未整備',
            _iso(client.career_up_plan_submitted_at),
            len(client_apps),
            _amount(sum(a.estimated_total or 0 for a in client_apps)),
        ])
    return pd.DataFrame(rows, columns=CLIENTS_CSV_COLUMNS)


def frame_to_csv_bytes(df):
    """CSV encoded as UTF-8 with a BOM so that Excel opens the Japanese headers correctly."""
    return df.to_csv(index=False).encode('utf-8-sig')
