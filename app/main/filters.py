# ==============================================================================
# app/main/filters.py
# ------------------------------------------------------------------------------
# Defines custom Jinja2 template filters for the application.
# ==============================================================================

from datetime import date, datetime

from app.main import bp

SEVERITY_CLASSES = {
    'overdue': 'badge-overdue',
    'urgent': 'badge-urgent',
    'soon': 'badge-soon',
    'upcoming': 'badge-upcoming',
    'normal': 'badge-normal',
}

WEEKDAYS = '月火水木金土日'


@bp.app_template_filter('yen')
def yen_filter(value):
    """
    Formats an amount with thousands separators.
    Example: 1234567 -> "1,234,567"
    """
    try:
        # Round to handle potential floats, then convert to int
        return "{:,}".format(int(round(float(value))))
    except (ValueError, TypeError):
        return value


@bp.app_template_filter('percent')
def percent_filter(value, digits=2):
    try:
        return f"{float(value):.{digits}f}%"
    except (ValueError, TypeError):
        return value


@bp.app_template_filter('severity_class')
def severity_class_filter(severity):
    return SEVERITY_CLASSES.get(severity, SEVERITY_CLASSES['normal'])


@bp.app_template_filter('jp_date')
def jp_date_filter(value):
    """2025-04-01 -> 2025年4月1日(火)"""
    if isinstance(value, datetime):
        value = value.date()
    if not isinstance(value, date):
        return value or '-'
    return f"{value.year}年{value.month}月{value.day}日({WEEKDAYS[value.weekday()]})"
