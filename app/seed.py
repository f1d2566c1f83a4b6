# ==============================================================================
# app/seed.py
# ------------------------------------------------------------------------------
# Default policy settings and the demo office data loaded by `flask seed`.
# ==============================================================================

import json
import logging
from datetime import date, timedelta

from app import db
from app.models import AppSetting
from app import store

DEFAULT_SETTINGS = {
    # key: [value, description, value_type]
    'SALARY_INCREASE_THRESHOLD_PERCENT': ['3.0', '賃金上昇率の要件（%）', 'float'],
    'BORDERLINE_UPPER_PERCENT': ['3.5', 'この上昇率（%）未満は「ギリギリ」として警告する', 'float'],
    'ATTENDANCE_WARNING_RATIO': ['0.8', '実労働日数が所定労働日数のこの割合未満なら警告する（例: 0.8 で 80%）', 'float'],
    'REQUIRED_MONTHS': ['6', '転換前・転換後それぞれに必要な賃金データの月数', 'int'],
    'DEFAULT_SALARY_PAYMENT_DAY': ['25', '申請期限の計算に使う賃金支払日（日）', 'int'],
    'DEADLINE_MONTHS_AFTER_PAYMENT': ['2', '6ヶ月目の賃金支払日から申請期限までの月数', 'int'],
    'SUBSIDY_AMOUNTS': [json.dumps({'small': 800000, 'large': 600000, 'priority_addition': 120000}),
                        '助成金額（中小企業・大企業・重点支援加算、円）（JSON形式）', 'json'],
}

DEMO_CLIENTS = [
    {
        'company_name': '株式会社山田製作所',
        'registration_number': '1301-123456-7',
        'is_small_business': True,
        'career_up_manager': '山田太郎',
        'has_employment_rules': True,
        'career_up_plan_submitted_at': date(2024, 10, 1),
    },
    {
        'company_name': '有限会社鈴木商事',
        'registration_number': '1302-234567-8',
        'is_small_business': True,
        'career_up_manager': '鈴木一郎',
        'has_employment_rules': True,
        'career_up_plan_submitted_at': date(2024, 11, 15),
    },
    {
        'company_name': '株式会社テクノソリューションズ',
        'registration_number': '1303-345678-9',
        'is_small_business': False,
        'career_up_manager': '佐藤花子',
        'has_employment_rules': True,
        'career_up_plan_submitted_at': date(2024, 9, 20),
    },
]

# (client index, days until deadline, fields)
DEMO_APPLICATIONS = [
    (0, 7, {
        'worker_name': '田中健太', 'worker_name_kana': 'タナカ ケンタ', 'birth_date': date(1990, 5, 15),
        'gender': 'male', 'hire_date': date(2024, 4, 1), 'conversion_date': date(2024, 10, 1),
        'conversion_type': 'fixed_to_regular', 'status': 'documents_ready',
        'is_priority_target': True, 'priority_category': 'A', 'priority_reason': '雇用保険未加入者',
        'pre_salary': 250000, 'post_salary': 265000, 'salary_increase_rate': 6.0,
        'estimated_phase1': 1200000, 'estimated_phase2': 1200000, 'estimated_total': 2400000,
        'notes': '書類準備完了、来週申請予定',
    }),
    (0, 21, {
        'worker_name': '佐々木美咲', 'worker_name_kana': 'ササキ ミサキ', 'birth_date': date(1985, 11, 20),
        'gender': 'female', 'hire_date': date(2024, 3, 1), 'conversion_date': date(2024, 9, 1),
        'conversion_type': 'fixed_to_regular', 'status': 'preparing',
        'pre_salary': 230000, 'post_salary': 240000, 'salary_increase_rate': 4.3,
        'estimated_phase1': 800000, 'estimated_phase2': 0, 'estimated_total': 800000,
    }),
    (1, 3, {
        'worker_name': '高橋翔太', 'worker_name_kana': 'タカハシ ショウタ', 'birth_date': date(1995, 3, 10),
        'gender': 'male', 'hire_date': date(2024, 5, 15), 'conversion_date': date(2024, 11, 15),
        'conversion_type': 'fixed_to_regular', 'status': 'preparing',
        'is_priority_target': True, 'priority_category': 'C', 'priority_reason': '就職氷河期世代',
        'pre_salary': 220000, 'post_salary': 230000, 'salary_increase_rate': 4.5,
        'estimated_phase1': 1200000, 'estimated_phase2': 1200000, 'estimated_total': 2400000,
        'notes': '期限間近！至急対応',
    }),
    (1, -5, {
        'worker_name': '伊藤さくら', 'worker_name_kana': 'イトウ サクラ', 'birth_date': date(1988, 7, 25),
        'gender': 'female', 'hire_date': date(2024, 2, 1), 'conversion_date': date(2024, 8, 1),
        'conversion_type': 'indefinite_to_regular', 'status': 'submitted',
        'pre_salary': 200000, 'post_salary': 210000, 'salary_increase_rate': 5.0,
        'estimated_phase1': 800000, 'estimated_phase2': 0, 'estimated_total': 800000,
        'notes': '申請済み、審査待ち',
    }),
    (2, 45, {
        'worker_name': '渡辺大輝', 'worker_name_kana': 'ワタナベ ダイキ', 'birth_date': date(1992, 9, 5),
        'gender': 'male', 'hire_date': date(2024, 1, 15), 'conversion_date': date(2024, 7, 15),
        'conversion_type': 'dispatch_to_regular', 'status': 'approved',
        'is_priority_target': True, 'priority_category': 'B', 'priority_reason': '5年間に5回以上離職',
        'pre_salary': 280000, 'post_salary': 300000, 'salary_increase_rate': 7.1,
        'estimated_phase1': 900000, 'estimated_phase2': 900000, 'estimated_total': 1800000,
        'notes': '承認済み、第2期準備中',
    }),
    (2, 60, {
        'worker_name': '中村優子', 'worker_name_kana': 'ナカムラ ユウコ', 'birth_date': date(1980, 12, 30),
        'gender': 'female', 'hire_date': date(2024, 6, 1), 'conversion_date': date(2024, 12, 1),
        'conversion_type': 'fixed_to_regular', 'status': 'preparing',
        'pre_salary': 260000, 'post_salary': 275000, 'salary_increase_rate': 5.8,
        'estimated_phase1': 600000, 'estimated_phase2': 0, 'estimated_total': 600000,
    }),
]


def seed_data():
    """Populates the database with the default policy settings."""
    for key, data in DEFAULT_SETTINGS.items():
        setting = AppSetting.query.filter_by(key=key).first()
        if not setting:  # Only add if it doesn't exist
            setting = AppSetting(key=key, value=data[0], description=data[1], value_type=data[2])
            db.session.add(setting)
            logging.info(f'Seeding setting: {key}')
    db.session.commit()


def seed_demo_data(office_id, today=None):
    """
    Loads the demo clients and applications into an office that has no clients
    yet. Deadlines are placed relative to `today` so the dashboard always shows
    a mix of overdue, urgent and relaxed cases.

    Returns:
        int: Number of applications created (0 when the office already had data).
    """
    if store.list_clients(office_id):
        logging.info(f'Office {office_id} already has clients; demo data skipped.')
        return 0

    today = today or date.today()
    clients = [store.create_client(office_id, **data) for data in DEMO_CLIENTS]
    for client_index, days, data in DEMO_APPLICATIONS:
        store.create_application(
            office_id,
            client_id=clients[client_index].id,
            application_deadline=today + timedelta(days=days),
            **data,
        )
    logging.info(f'Seeded {len(clients)} demo clients and {len(DEMO_APPLICATIONS)} demo applications.')
    return len(DEMO_APPLICATIONS)
