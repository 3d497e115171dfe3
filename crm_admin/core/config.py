from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "CRM Admin Console"
    API_ADMIN_STR: str = "/admin"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Record service (one base URL for both consultations and bookings)
    RECORD_API_BASE_URL: str = "http://localhost:5000"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Logging
    LOG_LEVEL: str = "INFO"
    ERROR_LOG_PATH: str = "logs/errors.log"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
