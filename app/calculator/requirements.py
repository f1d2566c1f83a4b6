# ==============================================================================
# app/calculator/requirements.py
# ------------------------------------------------------------------------------
# Requirement checklist for a conversion, priority-target classification and
# the subsidy estimate. Like the calculator, these only read their inputs.
# ==============================================================================

import math
from dataclasses import dataclass
from typing import Optional

from app.calculator.engine import DEFAULT_POLICY, compute_increase_rate


@dataclass
class RequirementInput:
    has_career_up_plan: bool = False
    plan_submitted_before_conversion: bool = False
    employment_period_months: int = 0
    is_not_regular_from_start: bool = False
    has_no_termination_history: bool = False
    company_has_employment_rules: bool = False
    social_insurance_enrolled: bool = False
    no_relation_with_employer: bool = False
    # Optional monthly salary pair for a quick 3% check.
    pre_salary: Optional[float] = None
    post_salary: Optional[float] = None


def _check(item, passed, message):
    return {'item': item, 'passed': passed, 'message': message,
            'severity': 'info' if passed else 'error'}


def check_requirements(data: RequirementInput, policy=DEFAULT_POLICY):
    """
    Runs the conversion requirement checklist.

    Returns:
        dict: {'is_eligible': bool, 'checks': [...], 'fatal_errors': [...], 'warnings': [...]}
    """
    checks = []
    fatal_errors = []
    warnings = []

    if not data.has_career_up_plan:
        checks.append(_check('キャリアアップ計画', False, 'キャリアアップ計画の届出が必要です'))
        fatal_errors.append('キャリアアップ計画が届出されていません')
    elif not data.plan_submitted_before_conversion:
        checks.append(_check('キャリアアップ計画', False, 'キャリアアップ計画は転換前に届出が必要です'))
        fatal_errors.append('キャリアアップ計画の届出が転換後になっています')
    else:
        checks.append(_check('キャリアアップ計画', True, 'キャリアアップ計画が転換前に届出されています'))

    months = data.employment_period_months
    if months < 6:
        checks.append(_check('雇用期間', False, '雇用期間が6ヶ月未満です'))
        fatal_errors.append('転換前の雇用期間が6ヶ月未満です')
    elif months > 36:
        checks.append(_check('雇用期間', False, '雇用期間が3年を超えています'))
        fatal_errors.append('転換前の雇用期間が3年を超えています')
    else:
        checks.append(_check('雇用期間', True, f'雇用期間{months}ヶ月は要件を満たしています'))

    if data.is_not_regular_from_start:
        checks.append(_check('非正規雇用', True, '転換前は非正規雇用として雇用されていました'))
    else:
        checks.append(_check('非正規雇用', False, '転換前から正社員として雇用されている場合は対象外です'))
        fatal_errors.append('転換前から正社員として雇用されています')

    if data.has_no_termination_history:
        checks.append(_check('解雇歴', True, '過去6ヶ月以内に解雇等がありません'))
    else:
        checks.append(_check('解雇歴', False, '過去6ヶ月以内に会社都合の解雇等がある場合は対象外です'))
        fatal_errors.append('過去6ヶ月以内に会社都合の解雇等があります')

    if data.company_has_employment_rules:
        checks.append(_check('就業規則', True, '就業規則が整備されています'))
    else:
        checks.append(_check('就業規則', False, '就業規則の整備が必要です'))
        fatal_errors.append('就業規則が整備されていません')

    if data.social_insurance_enrolled:
        checks.append(_check('社会保険', True, '社会保険に加入しています'))
    else:
        checks.append(_check('社会保険', False, '社会保険への加入が必要です'))
        fatal_errors.append('社会保険に加入していません')

    if data.no_relation_with_employer:
        checks.append(_check('事業主との関係', True, '事業主と特別な関係にありません'))
    else:
        checks.append(_check('事業主との関係', False, '事業主の親族等は対象外です'))
        fatal_errors.append('事業主の親族等に該当します')

    if data.pre_salary and data.post_salary is not None:
        rate = compute_increase_rate(data.pre_salary, data.post_salary)
        if rate < policy.threshold_percent:
            required_salary = math.ceil(data.pre_salary * (100 + policy.threshold_percent) / 100)
            shortfall = required_salary - data.post_salary
            checks.append(_check('賃金上昇', False, f'賃金上昇率{rate:.2f}%は{policy.threshold_percent:g}%未満です'))
            fatal_errors.append(
                f'賃金上昇率が{policy.threshold_percent:g}%未満です（あと月額{shortfall:,.0f}円必要）'
            )
        else:
            checks.append(_check('賃金上昇', True, f'賃金上昇率{rate:.2f}%は要件を満たしています'))
            if rate < policy.borderline_upper_percent:
                warnings.append(f'賃金上昇率が{policy.threshold_percent:g}%ギリギリです。余裕を持った設計をお勧めします。')

    return {
        'is_eligible': not fatal_errors,
        'checks': checks,
        'fatal_errors': fatal_errors,
        'warnings': warnings,
    }


PRIORITY_CATEGORY_REASONS = {
    'A': '雇入れ後3年以内で、雇入れ前に雇用保険被保険者でなかった方',
    'B': '派遣労働者からの転換',
    'C': '正社員求人への応募者で有期雇用された方',
}


def check_priority_target(is_within_3_years_of_hiring=False, was_not_insured_before_hiring=False,
                          is_dispatched_worker=False, applied_for_regular_position=False,
                          hired_as_fixed_term_instead=False, policy=DEFAULT_POLICY):
    """
    Classifies the worker as a priority target (category A, B or C).
    Categories are evaluated in order; the first match wins.
    """
    category = None
    if is_within_3_years_of_hiring and was_not_insured_before_hiring:
        category = 'A'
    elif is_dispatched_worker:
        category = 'B'
    elif applied_for_regular_position and hired_as_fixed_term_instead:
        category = 'C'

    if category is None:
        return {
            'is_priority_target': False,
            'category': None,
            'additional_amount': 0,
            'message': '重点支援対象者には該当しません',
        }
    return {
        'is_priority_target': True,
        'category': category,
        'additional_amount': policy.subsidy_priority_addition,
        'message': f'重点支援対象者（カテゴリ{category}）：{PRIORITY_CATEGORY_REASONS[category]}',
    }


def estimate_subsidy_amount(is_small_business, is_priority_target, policy=DEFAULT_POLICY):
    """
    Estimated subsidy per worker. Priority targets receive a second payment
    (phase 2) of the same amount.
    """
    base_amount = policy.subsidy_small_business if is_small_business else policy.subsidy_large_business
    additional_amount = policy.subsidy_priority_addition if is_priority_target else 0
    phase1 = base_amount + additional_amount
    phase2 = phase1 if is_priority_target else 0
    return {
        'base_amount': base_amount,
        'additional_amount': additional_amount,
        'phase1': phase1,
        'phase2': phase2,
        'total': phase1 + phase2,
    }
