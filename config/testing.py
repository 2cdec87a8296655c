from .config import Config

SECRET_KEY = "test-secret"
DB_CONFIG = Config.db_config()

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"
IOT_DRAIN_LIMIT = 10

AUTO_INIT_DB = False
