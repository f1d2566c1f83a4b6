from datetime import datetime

from flask import Blueprint, current_app, session

from app.auth import OfficeSession

bp = Blueprint('main', __name__)

# Makes 'now' and the office session available in all templates
@bp.app_context_processor
def inject_globals():
    return {
        'now': datetime.now(),
        'office': OfficeSession.from_app(session, current_app.config),
    }

# Import routes, filters, and forms at the bottom
from app.main import routes, filters, forms
