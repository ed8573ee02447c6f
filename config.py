"""
Configuration for the Little Palms school office
"""
import os

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))
INSTANCE_DIR = os.path.join(BASE_DIR, 'instance')


def _truthy(value, default=False):
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def _database_url():
    database_url = os.environ.get('DATABASE_URL')
    if database_url and database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql://", 1)
    if database_url:
        return database_url
    return f"sqlite:///{os.path.join(INSTANCE_DIR, 'littlepalms.db')}"


class Config:
    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY', 'your-secret-key-here')
    DEBUG = False
    TESTING = False

    # Database (single key-value table of JSON collections)
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Administrator login
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'littlepalms')
    ADMIN_PASSWORD_HASH = os.environ.get('ADMIN_PASSWORD_HASH')
    BCRYPT_ROUNDS = int(os.environ.get('BCRYPT_ROUNDS', '12'))

    # Startup data
    SEED_SAMPLE_DATA = _truthy(os.environ.get('SEED_SAMPLE_DATA'), default=True)

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_TO_FILE = _truthy(os.environ.get('LOG_TO_FILE'), default=True)
    LOG_DIR = os.environ.get('LOG_DIR', os.path.join(BASE_DIR, 'logs'))

    # Receipt header
    SCHOOL_NAME = os.environ.get('SCHOOL_NAME', 'Little Palms Kindergarten Dasaya')
    SCHOOL_ADDRESS = os.environ.get('SCHOOL_ADDRESS', 'Near Monte Cafe, DAV College, Dasaya')
    SCHOOL_PHONE = os.environ.get('SCHOOL_PHONE', '01883-503529')
    SCHOOL_EMAIL = os.environ.get('SCHOOL_EMAIL', 'little.palms.kindergarten@gmail.com')
    SCHOOL_WEBSITE = os.environ.get('SCHOOL_WEBSITE', '')
    SCHOOL_LOGO = os.environ.get('SCHOOL_LOGO', '')
    CURRENCY_LABEL = os.environ.get('CURRENCY_LABEL', 'Rs.')

    # Receipt defaults (free text, editable on the receipt page)
    RECEIPT_SESSION_PERIOD = os.environ.get('RECEIPT_SESSION_PERIOD', '01-04-2024 - 31-03-2025')
    RECEIPT_FEE_PERIOD = os.environ.get('RECEIPT_FEE_PERIOD', '01-04-2024 - 30-04-2024')
    RECEIPT_NUMBER_OF_MONTHS = os.environ.get('RECEIPT_NUMBER_OF_MONTHS', 'One (1)')


class DevelopmentConfig(Config):
    DEBUG = True
    SESSION_COOKIE_SECURE = False


class ProductionConfig(Config):
    PREFERRED_URL_SCHEME = 'https'

    # Security
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 3600  # 1 hour

    SQLALCHEMY_ENGINE_OPTIONS = {
        'pool_pre_ping': True,
        'pool_recycle': 1800,  # Recycle connections after 30 minutes
    }

    @staticmethod
    def init_app(app):
        if app.config['SECRET_KEY'] == 'your-secret-key-here':
            app.logger.warning("SECRET_KEY is not set; using the development default")
        if not app.config.get('ADMIN_PASSWORD_HASH') and app.config['ADMIN_PASSWORD'] == 'littlepalms':
            app.logger.warning("ADMIN_PASSWORD is the default; set ADMIN_PASSWORD_HASH in production")


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    ADMIN_PASSWORD = 'test-password'
    ADMIN_PASSWORD_HASH = None
    BCRYPT_ROUNDS = 4
    SEED_SAMPLE_DATA = False
    LOG_TO_FILE = False


config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
}
