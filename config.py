# ==============================================================================
# config.py
# ------------------------------------------------------------------------------
# Configuration settings for the Flask application.
# Uses environment variables for sensitive data to keep them out of version control.
# ==============================================================================

import os
from dotenv import load_dotenv

# Determine the absolute path of the project directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from a .env file located in the project root
load_dotenv(os.path.join(basedir, '.env'))

class Config:
    """
    Base configuration class. Contains default settings that can be overridden
    by environment-specific configurations.
    """
    # --- Security ---
    # A strong, random secret key is crucial for session security and CSRF protection.
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-should-really-set-a-secret-key-in-your-env-file'

    # Shared password for the office. Everyone who knows it works on the same office data.
    APP_PASSWORD = os.environ.get('APP_PASSWORD') or 'change-this-default-password'
    OFFICE_ID = os.environ.get('OFFICE_ID') or 'demo-office'
    OFFICE_NAME = os.environ.get('OFFICE_NAME') or 'テスト社労士事務所'

    # --- Database Configuration ---
    # The SQLite database file lives in the 'instance' folder unless DATABASE_URL is set.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance/app.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- File Upload Configuration ---
    UPLOAD_FOLDER = os.path.join(basedir, 'instance/uploads')

    # Salary ledgers may be uploaded as Excel or CSV.
    ALLOWED_LEDGER_EXTENSIONS = {'.xlsx', '.csv'}

    # Scanned documents sent to the OCR service.
    ALLOWED_OCR_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.pdf'}

    MAX_CONTENT_LENGTH = 16 * 1024 * 1024

    # --- AI-OCR (Gemini) ---
    GEMINI_API_KEY = os.environ.get('GEMINI_API_KEY') or ''
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL') or 'gemini-2.0-flash'

    # --- PDF export ---
    WKHTMLTOPDF_PATH = os.environ.get('WKHTMLTOPDF_PATH') or None


class TestConfig(Config):
    """Configuration used by the test suite: in-memory database, no CSRF."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    APP_PASSWORD = 'test-password'
    GEMINI_API_KEY = 'test-key'
