import os
from datetime import timedelta

basedir = os.path.abspath(os.path.dirname(__file__))


def _database_url():
    url = os.environ.get('DATABASE_URL', 'sqlite:///' + os.path.join(basedir, 'incidents.db'))
    # Heroku/Render style URLs are not accepted by SQLAlchemy 1.4+
    if url.startswith('postgres://'):
        url = url.replace('postgres://', 'postgresql://', 1)
    return url


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-secret-key')
    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.environ.get('JWT_SECRET_KEY', 'dev-jwt-secret')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.environ.get('JWT_ACCESS_TOKEN_HOURS', 24)))

    MAIL_SERVER = os.environ.get('MAIL_SERVER', 'smtp.gmail.com')
    MAIL_PORT = int(os.environ.get('MAIL_PORT', 587))
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS', 'true').lower() == 'true'
    MAIL_USE_SSL = False
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'no-reply@incidents.local')

    STORAGE_ROOT = os.environ.get('STORAGE_ROOT', os.path.join(basedir, 'storage'))
    # 10 MB per media file, a few files per request
    MAX_MEDIA_SIZE = 10 * 1024 * 1024
    MAX_CONTENT_LENGTH = 64 * 1024 * 1024

    INCIDENTS_PER_PAGE = 15
    NOTIFICATIONS_PER_PAGE = 20
    MAX_PER_PAGE = 100

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    JWT_SECRET_KEY = 'test-jwt-secret-with-enough-length-for-hs256'
    MAIL_SUPPRESS_SEND = True
    LOG_LEVEL = 'DEBUG'
