from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    sql_echo: bool = False
    log_level: str = "INFO"

    # Повторные попытки выделения номера версии
    version_retry_attempts: int = 5
    version_retry_backoff_seconds: float = 0.05

    model_config = {"env_file": ".env", "extra": "ignore"}

settings = Settings()
