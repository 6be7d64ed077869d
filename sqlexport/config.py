import os
import tempfile


def _env_bool(name, default):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """Base configuration"""

    # Azure identity
    AZURE_SUBSCRIPTION_ID = os.environ.get('AZURE_SUBSCRIPTION_ID')
    # Optional user-assigned managed identity; system-assigned when unset
    AZURE_CLIENT_ID = os.environ.get('AZURE_CLIENT_ID')

    # Source database
    RESOURCE_GROUP_NAME = os.environ.get('RESOURCE_GROUP_NAME')
    DATABASE_SERVER_NAME = os.environ.get('DATABASE_SERVER_NAME')
    DATABASE_NAME = os.environ.get('DATABASE_NAME')
    DATABASE_ADMIN_USERNAME = os.environ.get('DATABASE_ADMIN_USERNAME')
    DATABASE_ADMIN_PASSWORD = os.environ.get('DATABASE_ADMIN_PASSWORD')

    # Target storage
    STORAGE_RESOURCE_GROUP_NAME = os.environ.get('STORAGE_RESOURCE_GROUP_NAME')
    STORAGE_ACCOUNT_NAME = os.environ.get('STORAGE_ACCOUNT_NAME')
    STORAGE_KEY = os.environ.get('STORAGE_KEY')
    BLOB_CONTAINER_NAME = os.environ.get('BLOB_CONTAINER_NAME')
    ENSURE_CONTAINER = _env_bool('ENSURE_CONTAINER', True)

    # Retention (<= 0 disables pruning)
    RETENTION_DAYS = os.environ.get('RETENTION_DAYS', '0')

    # Export polling
    EXPORT_POLL_INTERVAL = os.environ.get('EXPORT_POLL_INTERVAL', '15')
    FAIL_ON_EXPORT_FAILURE = _env_bool('FAIL_ON_EXPORT_FAILURE', False)

    # Scheduler
    SCHEDULE_CRON = os.environ.get('SCHEDULE_CRON')
    SCHEDULER_TIMEZONE = 'UTC'

    # Logging
    LOG_DIR = os.environ.get('LOG_DIR') or os.path.join(
        os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'data', 'logs'
    )


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class TestingConfig(Config):
    """Testing configuration"""
    DEBUG = False
    TESTING = True
    SCHEDULE_CRON = None
    LOG_DIR = os.path.join(tempfile.gettempdir(), 'sqlexport-test-logs')


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': ProductionConfig
}
