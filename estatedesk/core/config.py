from pydantic import BaseModel
from dotenv import load_dotenv
import os

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseModel):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "EstateDesk Backend")
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./estatedesk.db")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    CORS_ALLOW_ORIGINS: str = os.getenv("CORS_ALLOW_ORIGINS", "*")

    JWT_SECRET: str = os.getenv("JWT_SECRET", "dev-only-change-me")
    JWT_ALG: str = os.getenv("JWT_ALG", "HS256")
    ACCESS_TOKEN_MINUTES: int = int(os.getenv("ACCESS_TOKEN_MINUTES", "60"))
    REFRESH_TOKEN_DAYS: int = int(os.getenv("REFRESH_TOKEN_DAYS", "7"))

    # Brute-force protection: the rate limit trips first, the account lockout later
    LOGIN_RATE_LIMIT_ATTEMPTS: int = int(os.getenv("LOGIN_RATE_LIMIT_ATTEMPTS", "5"))
    LOGIN_RATE_LIMIT_WINDOW_MINUTES: int = int(os.getenv("LOGIN_RATE_LIMIT_WINDOW_MINUTES", "15"))
    ACCOUNT_LOCKOUT_THRESHOLD: int = int(os.getenv("ACCOUNT_LOCKOUT_THRESHOLD", "10"))
    ACCOUNT_LOCKOUT_MINUTES: int = int(os.getenv("ACCOUNT_LOCKOUT_MINUTES", "30"))

    MAX_CONCURRENT_SESSIONS: int = int(os.getenv("MAX_CONCURRENT_SESSIONS", "3"))
    SESSION_IDLE_TIMEOUT_MINUTES: int = int(os.getenv("SESSION_IDLE_TIMEOUT_MINUTES", "30"))
    SESSION_ABSOLUTE_TIMEOUT_HOURS: int = int(os.getenv("SESSION_ABSOLUTE_TIMEOUT_HOURS", "12"))

    PASSWORD_MIN_LENGTH: int = int(os.getenv("PASSWORD_MIN_LENGTH", "8"))
    PASSWORD_RESET_TOKEN_MINUTES: int = int(os.getenv("PASSWORD_RESET_TOKEN_MINUTES", "15"))
    PASSWORD_RESET_MAX_ATTEMPTS: int = int(os.getenv("PASSWORD_RESET_MAX_ATTEMPTS", "3"))
    PASSWORD_RESET_WINDOW_MINUTES: int = int(os.getenv("PASSWORD_RESET_WINDOW_MINUTES", "60"))

    INVOICE_DUE_DAYS: int = int(os.getenv("INVOICE_DUE_DAYS", "30"))
    INVOICE_LATE_FEE_PERCENTAGE: str = os.getenv("INVOICE_LATE_FEE_PERCENTAGE", "5.0")
    INVOICE_REMINDER_DAYS_BEFORE: int = int(os.getenv("INVOICE_REMINDER_DAYS_BEFORE", "7"))
    PDC_DUE_WINDOW_DAYS: int = int(os.getenv("PDC_DUE_WINDOW_DAYS", "7"))
    COMPLIANCE_DUE_SOON_DAYS: int = int(os.getenv("COMPLIANCE_DUE_SOON_DAYS", "30"))
    COMPLIANCE_INITIAL_DUE_DAYS: int = int(os.getenv("COMPLIANCE_INITIAL_DUE_DAYS", "30"))
    PM_WORK_ORDER_LEAD_DAYS: int = int(os.getenv("PM_WORK_ORDER_LEAD_DAYS", "7"))

    SWEEP_INTERVAL_SECONDS: int = int(os.getenv("SWEEP_INTERVAL_SECONDS", "300"))

    APP_BASE_URL: str = os.getenv("APP_BASE_URL", "http://localhost:3000")
    EMAIL_PROVIDER: str = os.getenv("EMAIL_PROVIDER", "disabled")
    EMAIL_FROM: str = os.getenv("EMAIL_FROM", "")
    EMAIL_API_KEY: str = os.getenv("EMAIL_API_KEY", "")
    SMTP_HOST: str = os.getenv("SMTP_HOST", "")
    SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
    SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
    SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
    SMTP_USE_TLS: bool = _env_bool("SMTP_USE_TLS", "true")

settings = Settings()
