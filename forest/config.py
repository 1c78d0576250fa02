"""Settings for the forest service, read from the environment."""

import os


def _env_flag(name, default=False):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-change-me')
    MAIN_APP_URL = os.getenv('MAIN_APP_URL')
    LOCAL_DEV_ORIGIN = 'http://localhost:3000'

    FOREST_DB_HOST = os.getenv('FOREST_DB_HOST', 'localhost')
    FOREST_DB_PORT = int(os.getenv('FOREST_DB_PORT', '3306'))
    FOREST_DB_USER = os.getenv('FOREST_DB_USER', 'root')
    FOREST_DB_PASSWORD = os.getenv('FOREST_DB_PASSWORD', '')
    FOREST_DB_NAME = os.getenv('FOREST_DB_NAME', 'habit_forest')

    FOREST_TREE_COST = int(os.getenv('FOREST_TREE_COST', '200'))
    FOREST_NEGATIVE_BASELINE = os.getenv('FOREST_NEGATIVE_BASELINE', 'allow')

    FOREST_REQUIRE_AUTH = _env_flag('FOREST_REQUIRE_AUTH')
    FOREST_PASSWORD_HASH = os.getenv('FOREST_PASSWORD_HASH')
    FOREST_SESSION_COOKIE = os.getenv('FOREST_SESSION_COOKIE', 'forest_session')

    # 0 disables the background sweep; reads and writes still sweep lazily.
    FOREST_SWEEP_INTERVAL_MINUTES = int(os.getenv('FOREST_SWEEP_INTERVAL_MINUTES', '0'))
    SCHEDULER_API_ENABLED = False


def db_config(config):
    return {
        'host': config['FOREST_DB_HOST'],
        'port': config['FOREST_DB_PORT'],
        'user': config['FOREST_DB_USER'],
        'password': config['FOREST_DB_PASSWORD'],
        'database': config['FOREST_DB_NAME'],
    }


def allowed_origins(config):
    return [origin for origin in (config.get('MAIN_APP_URL'), config['LOCAL_DEV_ORIGIN']) if origin]
