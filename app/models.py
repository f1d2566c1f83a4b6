# ==============================================================================
# app/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# ==============================================================================

import json
import uuid
from datetime import datetime
from app import db


def _new_id():
    return str(uuid.uuid4())


class Client(db.Model):
    """
    A client company advised by the office. Every client belongs to exactly
    one office; deleting a client also deletes its applications.
    """
    __tablename__ = 'client'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    office_id = db.Column(db.String(64), nullable=False, index=True)
    company_name = db.Column(db.String(128), nullable=False)
    registration_number = db.Column(db.String(32))  # 雇用保険適用事業所番号
    is_small_business = db.Column(db.Boolean, nullable=False, default=True)
    career_up_manager = db.Column(db.String(64))
    has_employment_rules = db.Column(db.Boolean, nullable=False, default=False)
    career_up_plan_submitted_at = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    applications = db.relationship('Application', backref='client', lazy='dynamic',
                                   cascade="all, delete-orphan")

    def __repr__(self):
        return f'<Client {self.id}: {self.company_name}>'


class Application(db.Model):
    """
    One worker conversion application. Only persisted facts live here;
    days remaining and the status label are derived on every read.
    """
    __tablename__ = 'application'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    office_id = db.Column(db.String(64), nullable=False, index=True)
    client_id = db.Column(db.String(36), db.ForeignKey('client.id'), nullable=False, index=True)

    worker_name = db.Column(db.String(64), nullable=False)
    worker_name_kana = db.Column(db.String(64))
    birth_date = db.Column(db.Date, nullable=True)
    gender = db.Column(db.String(8))  # 'male' / 'female'
    hire_date = db.Column(db.Date, nullable=True)

    conversion_date = db.Column(db.Date, nullable=False)
    conversion_type = db.Column(db.String(32), nullable=False, default='fixed_to_regular')
    application_deadline = db.Column(db.Date, nullable=False, index=True)
    status = db.Column(db.String(32), nullable=False, default='preparing')

    is_priority_target = db.Column(db.Boolean, nullable=False, default=False)
    priority_category = db.Column(db.String(1), nullable=True)  # 'A' / 'B' / 'C'
    priority_reason = db.Column(db.String(256))

    pre_salary = db.Column(db.Float, nullable=True)
    post_salary = db.Column(db.Float, nullable=True)
    salary_increase_rate = db.Column(db.Float, nullable=True)

    estimated_phase1 = db.Column(db.Float, default=0)
    estimated_phase2 = db.Column(db.Float, default=0)
    estimated_total = db.Column(db.Float, default=0)

    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<Application {self.id}: {self.worker_name} ({self.status})>'


class AppSetting(db.Model):
    """
    Stores key-value pairs for the business policy constants (thresholds,
    deadline offsets, subsidy amounts) so they can be changed from the
    settings screen without a deploy.
    """
    __tablename__ = 'app_setting'
    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(128), unique=True, nullable=False, index=True)
    value = db.Column(db.String(256), nullable=False)
    description = db.Column(db.String(512))
    value_type = db.Column(db.String(32), default='string')  # 'float', 'int', 'string', 'json'

    def __repr__(self):
        return f'<AppSetting {self.key}: {self.value}>'

    def get_value(self):
        """Casts the string value to its correct Python type."""
        if self.value_type == 'float':
            return float(self.value)
        if self.value_type == 'int':
            return int(self.value)
        if self.value_type == 'json':
            return json.loads(self.value)
        return self.value
