# Routes package
from flask import Blueprint

api_bp = Blueprint('api', __name__)

from agency_ledger.api.ledger import ledger_bp

api_bp.register_blueprint(ledger_bp)
