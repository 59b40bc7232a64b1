from flask import Flask
from flask_cors import CORS
from agency_ledger.extensions import db, migrate, jwt
from config import Config



def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    origins = [o.strip() for o in app.config.get('CORS_ORIGINS', '').split(',') if o.strip()]
    CORS(app, origins=origins or '*')

    # Register Blueprint
    from agency_ledger.api import api_bp
    app.register_blueprint(api_bp)

    from agency_ledger.db_init.cli import register_commands
    register_commands(app)

    return app
