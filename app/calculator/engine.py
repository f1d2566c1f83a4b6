# ==============================================================================
# app/calculator/engine.py
# ------------------------------------------------------------------------------
# The 3% wage-increase eligibility calculator.
# All functions here are pure: they never touch the database and never raise
# for bad numbers. Problems are reported through the `errors` / `warnings`
# lists of the result instead.
# ==============================================================================

import logging
import math
from dataclasses import dataclass, field, asdict
from datetime import date
from typing import List, Optional

from app.models import AppSetting

# --- Policy ---

@dataclass(frozen=True)
class EligibilityPolicy:
    """
    Business policy constants used by the calculator and the deadline helpers.
    The defaults are the regulatory values; offices can override them through
    the AppSetting table.
    """
    threshold_percent: float = 3.0
    borderline_upper_percent: float = 3.5
    attendance_warning_ratio: float = 0.8
    required_months: int = 6
    salary_payment_day: int = 25
    deadline_months_after_payment: int = 2
    subsidy_small_business: int = 800000
    subsidy_large_business: int = 600000
    subsidy_priority_addition: int = 120000


DEFAULT_POLICY = EligibilityPolicy()


class CalculationConfig:
    """
    A singleton class to load and hold all business rules from the database.
    This ensures the database is queried only once per application lifecycle.
    Set `CalculationConfig._instance = None` after editing a setting.
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            logging.info("Creating and loading CalculationConfig instance...")
            cls._instance = super(CalculationConfig, cls).__new__(cls)
            try:
                cls._instance.load_settings()
                logging.info("CalculationConfig loaded successfully.")
            except Exception as e:
                cls._instance = None
                logging.error(f"Could not load policy settings from database. Error: {e}", exc_info=True)
                raise
        return cls._instance

    def load_settings(self):
        """Loads all settings from the AppSetting table into an EligibilityPolicy."""
        settings = AppSetting.query.all()
        settings_dict = {s.key: s.get_value() for s in settings}

        amounts = settings_dict.get('SUBSIDY_AMOUNTS', {})
        if not isinstance(amounts, dict):
            logging.warning(f"SUBSIDY_AMOUNTS setting is not an object ({amounts!r}); using default amounts.")
            amounts = {}
        self.policy = EligibilityPolicy(
            threshold_percent=settings_dict.get('SALARY_INCREASE_THRESHOLD_PERCENT', DEFAULT_POLICY.threshold_percent),
            borderline_upper_percent=settings_dict.get('BORDERLINE_UPPER_PERCENT', DEFAULT_POLICY.borderline_upper_percent),
            attendance_warning_ratio=settings_dict.get('ATTENDANCE_WARNING_RATIO', DEFAULT_POLICY.attendance_warning_ratio),
            required_months=settings_dict.get('REQUIRED_MONTHS', DEFAULT_POLICY.required_months),
            salary_payment_day=settings_dict.get('DEFAULT_SALARY_PAYMENT_DAY', DEFAULT_POLICY.salary_payment_day),
            deadline_months_after_payment=settings_dict.get('DEADLINE_MONTHS_AFTER_PAYMENT', DEFAULT_POLICY.deadline_months_after_payment),
            subsidy_small_business=amounts.get('small', DEFAULT_POLICY.subsidy_small_business),
            subsidy_large_business=amounts.get('large', DEFAULT_POLICY.subsidy_large_business),
            subsidy_priority_addition=amounts.get('priority_addition', DEFAULT_POLICY.subsidy_priority_addition),
        )


# --- Data types ---

PERIOD_LABELS = {'pre': '転換前', 'post': '転換後'}


@dataclass
class MonthlySalaryRecord:
    """One calendar month of pay for one worker, on one side of the conversion."""
    year_month: str
    base_salary: float = 0
    fixed_allowances: float = 0
    overtime_pay: float = 0
    commuting_allowance: float = 0
    work_days: float = 20
    scheduled_work_days: float = 20

    @property
    def is_short_month(self):
        return self.work_days < self.scheduled_work_days


@dataclass
class EligibilityResult:
    success: bool
    preTotalSalary: int = 0
    postTotalSalary: int = 0
    increaseAmount: int = 0
    increaseRate: float = 0.0
    meetsRequirement: bool = False
    message: str = ''
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    requiredMonthlyIncrease: int = 0

    def to_dict(self):
        return asdict(self)


# --- Helper Functions ---

def _round_half_up(value):
    """Rounds to the nearest currency unit. Halves go toward +infinity (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def calculate_eligible_salary(record: MonthlySalaryRecord) -> float:
    """Base pay plus fixed allowances. Overtime and commuting pay never count."""
    return record.base_salary + record.fixed_allowances


def normalize_monthly_eligible_salary(record: MonthlySalaryRecord) -> float:
    """
    Returns the month's eligible salary scaled to a full schedule.

    A month worked short of schedule is prorated upward
    (eligible / work_days * scheduled_work_days) so that partial months stay
    comparable. Months with no positive schedule, a full schedule or extra
    days are passed through unchanged.
    """
    eligible = calculate_eligible_salary(record)
    if record.scheduled_work_days == 0 or record.work_days == record.scheduled_work_days:
        return eligible
    if 0 < record.work_days < record.scheduled_work_days:
        return eligible / record.work_days * record.scheduled_work_days
    return eligible


def validate_salary_data(records, period, policy: EligibilityPolicy = DEFAULT_POLICY):
    """
    Validates the monthly records of one period (before or after conversion).

    Args:
        records (list): MonthlySalaryRecord objects for the period.
        period (str): 'pre', 'post', or a free-form label used in the messages.
        policy (EligibilityPolicy): Month count and attendance ratio to apply.

    Returns:
        dict: {'valid': bool, 'errors': [str], 'warnings': [str]}
    """
    errors = []
    warnings = []
    period_label = PERIOD_LABELS.get(period, period)

    if len(records) != policy.required_months:
        errors.append(f"{period_label}の賃金データは{policy.required_months}ヶ月分必要です")

    for index, record in enumerate(records):
        month_label = f"{period_label}{index + 1}ヶ月目"
        if record.base_salary <= 0:
            errors.append(f"{month_label}: 基本給が0以下です")
        if record.work_days <= 0:
            errors.append(f"{month_label}: 実労働日数が0以下です")
        if record.scheduled_work_days <= 0:
            errors.append(f"{month_label}: 所定労働日数が0以下です")
        if record.work_days < record.scheduled_work_days * policy.attendance_warning_ratio:
            warnings.append(
                f"{month_label}: 実労働日数が所定の{policy.attendance_warning_ratio:.0%}未満です"
            )
        if record.overtime_pay > record.base_salary:
            warnings.append(f"{month_label}: 残業代が基本給より多いです")

    return {'valid': not errors, 'errors': errors, 'warnings': warnings}


def compute_increase_rate(pre_total, post_total):
    """Percentage increase of post over pre. A zero pre-total yields 0, not infinity."""
    if pre_total > 0:
        return (post_total - pre_total) * 100 / pre_total
    return 0.0


# --- Main Calculation ---

def calculate_salary_increase(pre_records, post_records,
                              policy: EligibilityPolicy = DEFAULT_POLICY) -> EligibilityResult:
    """
    Decides whether the conversion meets the wage-increase requirement.

    Args:
        pre_records (list): Six MonthlySalaryRecord objects before conversion.
        post_records (list): Six MonthlySalaryRecord objects after conversion.
        policy (EligibilityPolicy): Thresholds to apply.

    Returns:
        EligibilityResult: success is False only when validation failed.
    """
    pre_validation = validate_salary_data(pre_records, 'pre', policy)
    post_validation = validate_salary_data(post_records, 'post', policy)

    errors = pre_validation['errors'] + post_validation['errors']
    warnings = pre_validation['warnings'] + post_validation['warnings']

    if errors:
        logging.info(f"Salary increase calculation aborted: {len(errors)} validation error(s).")
        return EligibilityResult(
            success=False,
            message="入力データにエラーがあります",
            warnings=warnings,
            errors=errors,
        )

    pre_total = 0.0
    for record in pre_records:
        normalized = normalize_monthly_eligible_salary(record)
        logging.debug(f"  pre  {record.year_month}: eligible={calculate_eligible_salary(record):,.0f} normalized={normalized:,.2f}")
        pre_total += normalized

    post_total = 0.0
    for record in post_records:
        normalized = normalize_monthly_eligible_salary(record)
        logging.debug(f"  post {record.year_month}: eligible={calculate_eligible_salary(record):,.0f} normalized={normalized:,.2f}")
        post_total += normalized

    increase_amount = post_total - pre_total
    increase_rate = compute_increase_rate(pre_total, post_total)
    meets_requirement = increase_rate >= policy.threshold_percent

    required_monthly_increase = 0
    if pre_total <= 0:
        # No positive base to compare against: the rate is undefined, not 0%
        meets_requirement = False
        message = "転換前の賃金合計が0円以下のため、賃金上昇率を判定できません"
        warnings.append("転換前の賃金合計が0円以下です。手当のマイナス入力などがないか確認してください。")
    elif meets_requirement:
        message = f"賃金上昇率 {increase_rate:.2f}% で{policy.threshold_percent:g}%要件を満たしています"
    else:
        required_monthly_increase = max(0, math.ceil(
            (pre_total * policy.threshold_percent / 100 - increase_amount) / policy.required_months
        ))
        message = (
            f"賃金上昇率 {increase_rate:.2f}% で{policy.threshold_percent:g}%要件を満たしていません。"
            f"あと月額約{required_monthly_increase:,}円の上昇が必要です"
        )

    if policy.threshold_percent <= increase_rate < policy.borderline_upper_percent:
        warnings.append(
            f"賃金上昇率が{policy.threshold_percent:g}%ギリギリです。余裕を持った設計をお勧めします。"
        )

    logging.info(
        f"Salary increase: pre={pre_total:,.0f} post={post_total:,.0f} "
        f"rate={increase_rate:.4f}% meets={meets_requirement}"
    )

    return EligibilityResult(
        success=True,
        preTotalSalary=_round_half_up(pre_total),
        postTotalSalary=_round_half_up(post_total),
        increaseAmount=_round_half_up(increase_amount),
        increaseRate=increase_rate,
        meetsRequirement=meets_requirement,
        message=message,
        warnings=warnings,
        errors=[],
        requiredMonthlyIncrease=required_monthly_increase,
    )


# --- Demo patterns used by the calculator screen ---

DEMO_PATTERNS = {
    'success': {
        'name': '3%要件クリア',
        'description': '基本給20万→21.7万で約4.8%上昇',
        'pre': {'base_salary': 200000, 'fixed_allowances': 10000, 'overtime_pay': 25000, 'commuting_allowance': 15000},
        'post': {'base_salary': 217000, 'fixed_allowances': 10000, 'overtime_pay': 30000, 'commuting_allowance': 15000},
    },
    'borderline': {
        'name': '3%ギリギリ',
        'description': '基本給20万→20.63万で約3.0%上昇（警告あり）',
        'pre': {'base_salary': 200000, 'fixed_allowances': 10000, 'overtime_pay': 25000, 'commuting_allowance': 15000},
        'post': {'base_salary': 206300, 'fixed_allowances': 10000, 'overtime_pay': 30000, 'commuting_allowance': 15000},
    },
    'failure': {
        'name': '3%要件未達',
        'description': '基本給20万→20.3万で約1.4%上昇（NG）',
        'pre': {'base_salary': 200000, 'fixed_allowances': 10000, 'overtime_pay': 25000, 'commuting_allowance': 15000},
        'post': {'base_salary': 203000, 'fixed_allowances': 10000, 'overtime_pay': 30000, 'commuting_allowance': 15000},
    },
    'allowance_adjust': {
        'name': '手当で3%達成',
        'description': '基本給据え置き、資格手当1万→2.57万で3.6%上昇',
        'pre': {'base_salary': 200000, 'fixed_allowances': 10000, 'overtime_pay': 25000, 'commuting_allowance': 15000},
        'post': {'base_salary': 200000, 'fixed_allowances': 25700, 'overtime_pay': 30000, 'commuting_allowance': 15000},
    },
}


def generate_months(start_year, start_month, count=6):
    """Returns `count` consecutive 'YYYY-MM' labels starting at the given month."""
    months = []
    for i in range(count):
        year, month = divmod(start_month - 1 + i, 12)
        months.append(f"{start_year + year}-{month + 1:02d}")
    return months


def build_demo_records(pattern_key, conversion_month: Optional[date] = None):
    """
    Builds (pre_records, post_records) for one of the DEMO_PATTERNS, six months
    either side of the conversion month (default April 2025).
    """
    pattern = DEMO_PATTERNS[pattern_key]
    conversion_month = conversion_month or date(2025, 4, 1)
    pre_start_year, pre_start_month = divmod(conversion_month.month - 1 - 6, 12)
    pre_months = generate_months(conversion_month.year + pre_start_year, pre_start_month + 1)
    post_months = generate_months(conversion_month.year, conversion_month.month)
    pre = [MonthlySalaryRecord(year_month=ym, **pattern['pre']) for ym in pre_months]
    post = [MonthlySalaryRecord(year_month=ym, **pattern['post']) for ym in post_months]
    return pre, post
