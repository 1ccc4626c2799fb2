import os
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration"""
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-in-production'
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY') or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv('JWT_ACCESS_TOKEN_HOURS', '8')))
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)

    CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]

    PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///frontdesk.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 300,
    }

    # Object storage (implant/graft photos, generated PDFs)
    STORAGE_ROOT = os.getenv('STORAGE_ROOT', os.path.join(PROJECT_ROOT, 'storage'))
    STORAGE_PUBLIC_URL = os.getenv('STORAGE_PUBLIC_URL', 'http://localhost:5000/storage')
    STORAGE_MAX_UPLOAD_BYTES = int(os.getenv('STORAGE_MAX_UPLOAD_BYTES', '10485760'))  # 10MB
    SURGICAL_RECALL_BUCKET = os.getenv('SURGICAL_RECALL_BUCKET', 'surgical-recall-images')
    AGREEMENT_PDF_BUCKET = os.getenv('AGREEMENT_PDF_BUCKET', 'agreement-pdfs')

    # Letterhead assets and practice details printed on every PDF page
    PDF_ASSETS_PATH = os.getenv('PDF_ASSETS_PATH', os.path.join(PROJECT_ROOT, 'assets'))
    PRACTICE_WEBSITE = os.getenv('PRACTICE_WEBSITE', 'www.nydentalimplants.com')
    PRACTICE_NAME = os.getenv('PRACTICE_NAME', 'New York Dental Implants')
    PRACTICE_PHONES = [p.strip() for p in os.getenv('PRACTICE_PHONES', '(585)-684-1149,(585)-394-5910').split(',') if p.strip()]
    PRACTICE_EMAIL = os.getenv('PRACTICE_EMAIL', 'contact@nysdentalimplants.com')
    PRACTICE_ADDRESS = [a.strip() for a in os.getenv('PRACTICE_ADDRESS', '344 N. Main St, Canandaigua,|New York, 14424').split('|') if a.strip()]

    # Consultation scheduling
    DEFAULT_CONSULTATION_MINUTES = int(os.getenv('DEFAULT_CONSULTATION_MINUTES', '30'))

    # Agreement forms auto-save debounce
    AUTOSAVE_DELAY_SECONDS = float(os.getenv('AUTOSAVE_DELAY_SECONDS', '2.0'))

    # Lab instruction enhancement (Google Gemini)
    GEMINI_API_KEY = os.getenv('GEMINI_API_KEY')
    GEMINI_MODEL = os.getenv('GEMINI_MODEL', 'gemini-2.0-flash')

    # Celery Configuration
    CELERY_BROKER_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CELERY_RESULT_BACKEND = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
    CELERY_ACCEPT_CONTENT = ['json']
    CELERY_TASK_SERIALIZER = 'json'
    CELERY_RESULT_SERIALIZER = 'json'
    CELERY_TIMEZONE = 'UTC'
    CELERY_ENABLE_UTC = True
    CELERY_TASK_ALWAYS_EAGER = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR = os.getenv('LOG_DIR', 'logs')

    MAX_CONTENT_LENGTH = int(os.getenv('MAX_CONTENT_LENGTH', '52428800'))  # 50MB


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    TESTING = False


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    TESTING = False

    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 3600,
        'pool_size': 20,
        'max_overflow': 40,
    }

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'WARNING')

    @classmethod
    def validate(cls):
        """Refuse to boot with the development secret."""
        if not cls.SECRET_KEY or cls.SECRET_KEY == 'dev-secret-key-change-in-production':
            raise ValueError("SECRET_KEY environment variable must be set in production and must not be the default value")


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv('TEST_DATABASE_URL', 'sqlite:///:memory:')
    SQLALCHEMY_ENGINE_OPTIONS = {}
    AUTOSAVE_DELAY_SECONDS = 0.05
    CELERY_TASK_ALWAYS_EAGER = True
    GEMINI_API_KEY = None


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config():
    """Get configuration based on FLASK_ENV"""
    env = os.getenv('FLASK_ENV', 'development')
    return config.get(env, config['default'])
