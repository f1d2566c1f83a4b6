# tests/test_requirements.py

import pytest

from app.calculator.engine import EligibilityPolicy
from app.calculator.requirements import (RequirementInput, check_priority_target, check_requirements,
                                         estimate_subsidy_amount)


@pytest.fixture
def eligible_input():
    return RequirementInput(
        has_career_up_plan=True,
        plan_submitted_before_conversion=True,
        employment_period_months=12,
        is_not_regular_from_start=True,
        has_no_termination_history=True,
        company_has_employment_rules=True,
        social_insurance_enrolled=True,
        no_relation_with_employer=True,
    )


def test_all_requirements_met(eligible_input):
    result = check_requirements(eligible_input)
    assert result['is_eligible'] is True
    assert result['fatal_errors'] == []
    assert len(result['checks']) == 7
    assert all(check['passed'] and check['severity'] == 'info' for check in result['checks'])


def test_missing_plan_is_fatal():
    result = check_requirements(RequirementInput(employment_period_months=12))
    assert result['is_eligible'] is False
    assert 'キャリアアップ計画が届出されていません' in result['fatal_errors']


def test_plan_submitted_after_conversion(eligible_input):
    eligible_input.plan_submitted_before_conversion = False
    result = check_requirements(eligible_input)
    assert result['fatal_errors'] == ['キャリアアップ計画の届出が転換後になっています']


@pytest.mark.parametrize('months, passed', [(5, False), (6, True), (36, True), (37, False)])
def test_employment_period_bounds(eligible_input, months, passed):
    eligible_input.employment_period_months = months
    check = next(c for c in check_requirements(eligible_input)['checks'] if c['item'] == '雇用期間')
    assert check['passed'] is passed


def test_salary_pair_below_threshold_reports_shortfall(eligible_input):
    eligible_input.pre_salary = 200000
    eligible_input.post_salary = 205000
    result = check_requirements(eligible_input)
    assert result['is_eligible'] is False
    assert result['fatal_errors'] == ['賃金上昇率が3%未満です（あと月額1,000円必要）']


def test_salary_pair_borderline_is_a_warning(eligible_input):
    eligible_input.pre_salary = 200000
    eligible_input.post_salary = 206000
    result = check_requirements(eligible_input)
    assert result['is_eligible'] is True
    assert len(result['warnings']) == 1


def test_salary_check_skipped_without_pre_salary(eligible_input):
    eligible_input.post_salary = 206000
    items = [c['item'] for c in check_requirements(eligible_input)['checks']]
    assert '賃金上昇' not in items


@pytest.mark.parametrize('kwargs, category', [
    ({'is_within_3_years_of_hiring': True, 'was_not_insured_before_hiring': True}, 'A'),
    ({'is_within_3_years_of_hiring': True, 'was_not_insured_before_hiring': True, 'is_dispatched_worker': True}, 'A'),
    ({'is_dispatched_worker': True}, 'B'),
    ({'applied_for_regular_position': True, 'hired_as_fixed_term_instead': True}, 'C'),
])
def test_priority_categories_in_order(kwargs, category):
    result = check_priority_target(**kwargs)
    assert result['is_priority_target'] is True
    assert result['category'] == category
    assert result['additional_amount'] == 120000
    assert f'カテゴリ{category}' in result['message']


@pytest.mark.parametrize('kwargs', [
    {},
    {'is_within_3_years_of_hiring': True},
    {'applied_for_regular_position': True},
])
def test_not_a_priority_target(kwargs):
    result = check_priority_target(**kwargs)
    assert result == {'is_priority_target': False, 'category': None, 'additional_amount': 0,
                      'message': '重点支援対象者には該当しません'}


@pytest.mark.parametrize('small, priority, phase1, phase2', [
    (True, False, 800000, 0),
    (False, False, 600000, 0),
    (True, True, 920000, 920000),
    (False, True, 720000, 720000),
])
def test_subsidy_estimate(small, priority, phase1, phase2):
    estimate = estimate_subsidy_amount(small, priority)
    assert estimate['phase1'] == phase1
    assert estimate['phase2'] == phase2
    assert estimate['total'] == phase1 + phase2


def test_subsidy_estimate_follows_policy():
    policy = EligibilityPolicy(subsidy_small_business=500000, subsidy_priority_addition=100000)
    assert estimate_subsidy_amount(True, True, policy)['total'] == 1200000
