# ==============================================================================
# app/calculator/schema.py
# ------------------------------------------------------------------------------
# Defines the expected structure of uploaded salary ledgers and of the JSON
# backup document. This schema is the single source of truth for the validator
# and for the export code.
# ==============================================================================

SALARY_LEDGER = {
    'required_columns': [
        '期間', '年月', '基本給', '固定的手当', '残業代', '通勤手当', '実労働日数', '所定労働日数'
    ],
    'numeric_columns': ['基本給', '固定的手当', '残業代', '通勤手当', '実労働日数', '所定労働日数'],
    'period_values': {'転換前': 'pre', '転換後': 'post'},
}

# Ledger column -> MonthlySalaryRecord attribute
SALARY_LEDGER_FIELDS = {
    '年月': 'year_month',
    '基本給': 'base_salary',
    '固定的手当': 'fixed_allowances',
    '残業代': 'overtime_pay',
    '通勤手当': 'commuting_allowance',
    '実労働日数': 'work_days',
    '所定労働日数': 'scheduled_work_days',
}

BACKUP_VERSION = 1

# JSON backup key -> model attribute. Keys stay camelCase to match existing backup files.
CLIENT_FIELDS = {
    'id': 'id',
    'companyName': 'company_name',
    'registrationNumber': 'registration_number',
    'isSmallBusiness': 'is_small_business',
    'careerUpManager': 'career_up_manager',
    'hasEmploymentRules': 'has_employment_rules',
    'careerUpPlanSubmittedAt': 'career_up_plan_submitted_at',
}

APPLICATION_FIELDS = {
    'id': 'id',
    'clientId': 'client_id',
    'workerName': 'worker_name',
    'workerNameKana': 'worker_name_kana',
    'birthDate': 'birth_date',
    'gender': 'gender',
    'hireDate': 'hire_date',
    'conversionDate': 'conversion_date',
    'conversionType': 'conversion_type',
    'applicationDeadline': 'application_deadline',
    'status': 'status',
    'isPriorityTarget': 'is_priority_target',
    'priorityCategory': 'priority_category',
    'priorityReason': 'priority_reason',
    'preSalary': 'pre_salary',
    'postSalary': 'post_salary',
    'salaryIncreaseRate': 'salary_increase_rate',
    'notes': 'notes',
}

DATE_FIELDS = {
    'career_up_plan_submitted_at', 'birth_date', 'hire_date', 'conversion_date', 'application_deadline'
}

REQUIRED_CLIENT_KEYS = ['id', 'companyName']
REQUIRED_APPLICATION_KEYS = ['id', 'clientId', 'workerName', 'conversionDate', 'applicationDeadline']

CONVERSION_TYPE_LABELS = {
    'fixed_to_regular': '有期→正規',
    'indefinite_to_regular': '無期→正規',
    'dispatch_to_regular': '派遣→正規',
}

GENDER_LABELS = {'male': '男性', 'female': '女性'}

APPLICATIONS_CSV_COLUMNS = [
    '企業名', '労働者名', 'フリガナ', '生年月日', '性別', '雇入れ日', '転換日', '転換区分',
    '申請期限', '残り日数', 'ステータス', '重点支援', 'カテゴリ', '理由',
    '転換前賃金', '転換後賃金', '上昇率', '1期目', '2期目', '合計', 'メモ'
]

CLIENTS_CSV_COLUMNS = [
    '企業名', '事業所番号', '企業規模', 'キャリアアップ管理者', '就業規則', '計画届出日', '申請件数', '想定助成金総額'
]

# Allowed range of each numeric policy setting: (min, max), None = unbounded.
# Values outside these would break the calculator or the deadline arithmetic.
SETTING_RANGES = {
    'SALARY_INCREASE_THRESHOLD_PERCENT': (0, None),
    'BORDERLINE_UPPER_PERCENT': (0, None),
    'ATTENDANCE_WARNING_RATIO': (0, 1),
    'REQUIRED_MONTHS': (1, None),
    'DEFAULT_SALARY_PAYMENT_DAY': (1, 31),
    'DEADLINE_MONTHS_AFTER_PAYMENT': (0, None),
}

# Keys allowed in the SUBSIDY_AMOUNTS setting; each value is a non-negative amount in yen.
SUBSIDY_AMOUNT_KEYS = ('small', 'large', 'priority_addition')
