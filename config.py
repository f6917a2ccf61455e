import os
import log
from dotenv import load_dotenv

# Load .env file into environment
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    def __init__(self):
        self.valkey_host = os.getenv("VALKEY_HOST", "localhost")
        self.valkey_port = int(os.getenv("VALKEY_PORT", 6379))
        self.database_url = os.getenv("DATABASE_URL", "sqlite:///./experience.db")
        self.log_level = os.getenv("LOG_LEVEL", default="INFO")
        self.log_file = os.getenv("LOG_FILE", default="experience_service.log")
        self.valid_tokens = [t for t in os.getenv("VALID_TOKENS", "").split(",") if t]
        self.celery_broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/1" )
        self.celery_backend_url = os.getenv("CELERY_BACKEND_URL", "redis://localhost:6379/1" )
        self.celery_task_always_eager = _env_flag("CELERY_TASK_ALWAYS_EAGER")

        # Visitor storage lifetimes
        self.cookie_max_age_days = int(os.getenv("COOKIE_MAX_AGE_DAYS", 365))
        self.session_ttl_seconds = int(os.getenv("SESSION_TTL_SECONDS", 30 * 60))
        self.utm_expiry_days = int(os.getenv("UTM_EXPIRY_DAYS", 30))

        # Call setup_logging when the application starts
        log.setup_logging(self.log_level, self.log_file)

    def __repr__(self):
        return f"<Settings host={self.valkey_host} port={self.valkey_port} loglevel={self.log_level}, broker_url:{self.celery_broker_url}, backend_url:{self.celery_backend_url}>"

config = Config()
