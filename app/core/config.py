from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "local"
    APP_NAME: str = "MCAN Lodge API"
    # Comma-separated origins for CORS (e.g. https://lodge.mcanfct.org). If empty, uses localhost defaults.
    CORS_ORIGINS: str = ""

    SECRET_KEY: str
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    DATABASE_URL: str

    @field_validator("DATABASE_URL", mode="after")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Render and others give postgres://; SQLAlchemy expects postgresql+psycopg2://."""
        if v and v.startswith("postgres://"):
            return "postgresql+psycopg2://" + v[11:]
        return v
    REDIS_URL: str = "redis://localhost:6379/0"

    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # text|json

    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 25
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_FROM: str = "lodge@mcanfct.org"

    SENDGRID_API_KEY: str = ""
    SENDGRID_FROM_EMAIL: str = ""

    # Serverless send-email function; takes {to, subject, content}. Preferred when set.
    EMAIL_FUNCTION_URL: str = ""
    EMAIL_FUNCTION_TOKEN: str = ""
    EMAIL_MAX_ATTEMPTS: int = 3

    CLIENT_BASE_URL: str = ""  # e.g. https://lodge.mcanfct.org - for password reset links

    # Receipt storage
    RECEIPTS_BUCKET: str = "payment-receipts"
    RECEIPT_LOCAL_DIR: str = "./data/receipts"
    RECEIPT_PUBLIC_BASE_URL: str = "/media/receipts"
    RECEIPT_MAX_BYTES: int = 10 * 1024 * 1024
    GCS_BUCKET_NAME: str = ""
    GOOGLE_APPLICATION_CREDENTIALS: str = ""

    # Lodge account guests transfer to
    BANK_NAME: str = "Jaiz Bank Nigeria"
    BANK_ACCOUNT_NUMBER: str = "0001194315"
    BANK_ACCOUNT_NAME: str = "MCAN AMAC"
    CURRENCY_SYMBOL: str = "₦"

    # First admin account, created by app.seed when missing
    SEED_ADMIN_EMAIL: str = "admin@mcanfct.org"
    SEED_ADMIN_PASSWORD: str = "admin12345"
    SEED_ADMIN_NAME: str = "Lodge Admin"


settings = Settings()
