from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_restx import Api
import os
from dotenv import load_dotenv

load_dotenv()

db = SQLAlchemy()


def create_app(config_name='development'):
    app = Flask(__name__)

    # Config
    if config_name == 'testing':
        app.config['TESTING'] = True
        app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
    else:
        app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv(
            'DATABASE_URL',
            'sqlite:///wirsuchen.db'
        )

    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    # Translation settings
    app.config['GOOGLE_TRANSLATE_API_KEY'] = os.getenv('GOOGLE_TRANSLATE_API_KEY', '')
    app.config['GEMINI_API_KEY'] = os.getenv('GEMINI_API_KEY', '')
    app.config['GEMINI_MODEL'] = os.getenv('GEMINI_MODEL', 'gemini-2.5-flash')
    app.config['REDIS_URL'] = os.getenv('REDIS_URL')
    app.config['TRANSLATION_MAX_RETRIES'] = int(os.getenv('TRANSLATION_MAX_RETRIES', 3))
    app.config['TRANSLATION_RATE_LIMIT_DELAY'] = float(os.getenv('TRANSLATION_RATE_LIMIT_DELAY', 30))
    app.config['TRANSLATION_RETRY_BUFFER'] = float(os.getenv('TRANSLATION_RETRY_BUFFER', 1))
    app.config['TRANSLATION_SYNC_MAX_RETRIES'] = int(os.getenv('TRANSLATION_SYNC_MAX_RETRIES', 1))
    app.config['TRANSLATION_CACHE_TTL'] = int(os.getenv('TRANSLATION_CACHE_TTL', 86400))
    app.config['TRANSLATION_BACKFILL_LIMIT'] = int(os.getenv('TRANSLATION_BACKFILL_LIMIT', 10))
    app.config['TRANSLATION_BACKFILL_DELAY'] = float(os.getenv('TRANSLATION_BACKFILL_DELAY', 0.5))
    app.config['TRANSLATION_BACKFILL_WORKERS'] = int(os.getenv('TRANSLATION_BACKFILL_WORKERS', 2))
    # Tests run backfill inline so results are observable right after the request
    app.config['TRANSLATION_BACKFILL_INLINE'] = config_name == 'testing'

    # Initialize extensions
    db.init_app(app)
    CORS(app)

    # Create API
    Api(app, version='1.0', title='WIRsuchen API', doc='/api/docs')

    # Create tables with error handling
    with app.app_context():
        from wirsuchen import models  # noqa: F401 - register tables
        try:
            db.create_all()
        except Exception as e:
            app.logger.warning(f"Could not create database tables: {e}")

    # Translation service lives for the lifetime of the app
    from wirsuchen.services.translation import build_translation_service
    app.extensions['translation_service'] = build_translation_service(app)

    # Register routes
    from wirsuchen.routes import register_routes
    register_routes(app)

    # Health checks
    @app.route('/health', methods=['GET'])
    def health():
        return {'status': 'ok'}, 200

    @app.route('/api/health', methods=['GET'])
    def api_health():
        service = app.extensions['translation_service']
        return {'status': 'ok', 'translation_configured': service.provider.is_configured()}, 200

    return app
