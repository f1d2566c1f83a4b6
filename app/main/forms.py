# ==============================================================================
# app/main/forms.py
# ------------------------------------------------------------------------------
# Defines web forms using Flask-WTF for user input and validation.
# ==============================================================================

from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired
from wtforms import (Form, StringField, FloatField, IntegerField, SubmitField, SelectField, PasswordField,
                     TextAreaField, BooleanField, DateField, FieldList, FormField, HiddenField)
from wtforms.validators import DataRequired, NumberRange, InputRequired, Optional, Regexp, Length

from app.calculator.deadline import STATUS_LABELS
from app.calculator.schema import CONVERSION_TYPE_LABELS, GENDER_LABELS
from app.ocr.fields import DOCUMENT_TYPE_LABELS

REQUIRED = "この項目は必須です。"
NON_NEGATIVE = "0以上の数値を入力してください。"


class LoginForm(FlaskForm):
    """Shared office password."""
    password = PasswordField('パスワード', validators=[InputRequired(message="パスワードを入力してください。")])
    submit = SubmitField('ログイン')


class ClientForm(FlaskForm):
    """Form for adding or editing a client company."""
    company_name = StringField('企業名', validators=[DataRequired(message=REQUIRED), Length(max=128)])
    registration_number = StringField(
        '雇用保険適用事業所番号',
        validators=[Optional(), Regexp(r'^\d{4}-\d{6}-\d$', message="形式は 1234-567890-1 です。")]
    )
    is_small_business = BooleanField('中小企業', default=True)
    career_up_manager = StringField('キャリアアップ管理者', validators=[Optional(), Length(max=64)])
    has_employment_rules = BooleanField('就業規則あり')
    career_up_plan_submitted_at = DateField('キャリアアップ計画届出日', validators=[Optional()])
    submit = SubmitField('保存')


class ApplicationForm(FlaskForm):
    """Form for adding or editing a worker conversion application."""
    client_id = SelectField('顧問先', validators=[InputRequired(message=REQUIRED)])
    worker_name = StringField('労働者名', validators=[DataRequired(message=REQUIRED), Length(max=64)])
    worker_name_kana = StringField('フリガナ', validators=[Optional(), Length(max=64)])
    birth_date = DateField('生年月日', validators=[Optional()])
    gender = SelectField('性別', choices=[('', '-')] + list(GENDER_LABELS.items()), validators=[Optional()])
    hire_date = DateField('雇入れ日', validators=[Optional()])
    conversion_date = DateField('転換日', validators=[InputRequired(message=REQUIRED)])
    conversion_type = SelectField('転換区分', choices=list(CONVERSION_TYPE_LABELS.items()))
    salary_payment_day = IntegerField('賃金支払日', validators=[Optional(), NumberRange(min=1, max=31)])
    status = SelectField('ステータス', choices=list(STATUS_LABELS.items()))
    is_priority_target = BooleanField('重点支援対象者')
    priority_category = SelectField('カテゴリ', choices=[('', '-'), ('A', 'A'), ('B', 'B'), ('C', 'C')],
                                    validators=[Optional()])
    priority_reason = StringField('理由', validators=[Optional(), Length(max=256)])
    pre_salary = FloatField('転換前賃金（月額）', validators=[Optional(), NumberRange(min=0)])
    post_salary = FloatField('転換後賃金（月額）', validators=[Optional(), NumberRange(min=0)])
    notes = TextAreaField('メモ', validators=[Optional()], render_kw={'rows': 3})
    submit = SubmitField('保存')


class StatusForm(FlaskForm):
    status = SelectField('ステータス', choices=list(STATUS_LABELS.items()))
    submit = SubmitField('更新')


class MonthlySalaryForm(Form):
    """One month of the calculator. Plain wtforms Form: CSRF lives on the parent."""
    year_month = HiddenField('年月')
    base_salary = FloatField('基本給', validators=[Optional(), NumberRange(min=0, message=NON_NEGATIVE)])
    fixed_allowances = FloatField('固定的手当', validators=[Optional(), NumberRange(min=0, message=NON_NEGATIVE)])
    overtime_pay = FloatField('残業代', validators=[Optional(), NumberRange(min=0, message=NON_NEGATIVE)])
    commuting_allowance = FloatField('通勤手当', validators=[Optional(), NumberRange(min=0, message=NON_NEGATIVE)])
    work_days = FloatField('実労働日数', validators=[Optional(), NumberRange(min=0, message=NON_NEGATIVE)])
    scheduled_work_days = FloatField('所定労働日数', validators=[Optional(), NumberRange(min=0, message=NON_NEGATIVE)])


class SalaryCalculatorForm(FlaskForm):
    pre = FieldList(FormField(MonthlySalaryForm), min_entries=6)
    post = FieldList(FormField(MonthlySalaryForm), min_entries=6)
    submit = SubmitField('計算する')


class LedgerUploadForm(FlaskForm):
    file = FileField('賃金台帳（.xlsx / .csv）', validators=[FileRequired(message="ファイルを選択してください。")])
    submit = SubmitField('読み込んで計算')


class OcrForm(FlaskForm):
    document_type = SelectField('書類の種類', choices=list(DOCUMENT_TYPE_LABELS.items()))
    file = FileField('書類（画像 / PDF）', validators=[FileRequired(message="ファイルを選択してください。")])
    submit = SubmitField('読み取る')


class ImportForm(FlaskForm):
    file = FileField('バックアップファイル（.json）', validators=[FileRequired(message="ファイルを選択してください。")])
    submit = SubmitField('インポート')


class ConfirmForm(FlaskForm):
    """Bare form for POST-only actions (delete, clear) so they carry a CSRF token."""
    submit = SubmitField('実行')


class RequirementForm(FlaskForm):
    has_career_up_plan = BooleanField('キャリアアップ計画を届出済み')
    plan_submitted_before_conversion = BooleanField('計画の届出は転換前')
    employment_period_months = IntegerField('転換前の雇用期間（月）', default=6,
                                            validators=[InputRequired(message=REQUIRED), NumberRange(min=0)])
    is_not_regular_from_start = BooleanField('転換前は非正規雇用')
    has_no_termination_history = BooleanField('過去6ヶ月に会社都合の解雇なし')
    company_has_employment_rules = BooleanField('就業規則あり')
    social_insurance_enrolled = BooleanField('社会保険加入')
    no_relation_with_employer = BooleanField('事業主の親族ではない')
    pre_salary = FloatField('転換前賃金（月額）', validators=[Optional(), NumberRange(min=0)])
    post_salary = FloatField('転換後賃金（月額）', validators=[Optional(), NumberRange(min=0)])

    is_small_business = BooleanField('中小企業', default=True)
    is_within_3_years_of_hiring = BooleanField('雇入れから3年以内')
    was_not_insured_before_hiring = BooleanField('雇入れ前に雇用保険未加入')
    is_dispatched_worker = BooleanField('派遣労働者からの転換')
    applied_for_regular_position = BooleanField('正社員求人に応募')
    hired_as_fixed_term_instead = BooleanField('有期雇用で採用された')

    conversion_date = DateField('転換日', validators=[Optional()])
    salary_payment_day = IntegerField('賃金支払日', validators=[Optional(), NumberRange(min=1, max=31)])
    submit = SubmitField('判定する')


class AppSettingForm(FlaskForm):
    """Form for editing a single policy setting."""
    value = TextAreaField('値', validators=[DataRequired(message=REQUIRED)], render_kw={'rows': 3})
    submit = SubmitField('保存')
