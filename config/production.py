import os

from .config import Config

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")
DB_CONFIG = Config.db_config()

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL
IOT_DRAIN_LIMIT = Config.IOT_DRAIN_LIMIT

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
