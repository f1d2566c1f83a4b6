# ==============================================================================
# app/__init__.py
# ------------------------------------------------------------------------------
# Application factory for creating and configuring the Flask app instance.
# ==============================================================================

import os
import logging
import click
from flask import Flask
from config import Config
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect

# Initialize extensions globally to be accessible by other modules
db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()

def create_app(config_class=Config):
    """
    Application factory function. Creates and configures the Flask application.

    Args:
        config_class (class): The configuration class to use.

    Returns:
        Flask: The configured Flask application instance.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_class)

    # Configure logging
    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    # Ensure the instance folder exists for the SQLite database and uploads
    os.makedirs(app.instance_path, exist_ok=True)

    # Initialize extensions with the application instance
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    # Register blueprints with the application
    from app.main import bp as main_bp
    app.register_blueprint(main_bp)

    @app.cli.command("seed")
    @click.option('--demo', is_flag=True, help='Also load the demo clients and applications.')
    def seed(demo):
        """Seeds the database with default policy settings (and optionally demo data)."""
        from app.seed import seed_data, seed_demo_data
        seed_data()
        if demo:
            seed_demo_data(app.config['OFFICE_ID'])
        app.logger.info("Database has been seeded with default values.")

    app.logger.info('Career-up subsidy manager startup complete')

    return app
