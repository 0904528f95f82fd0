from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Carwash Inventory"
    DATABASE_URL: str = "sqlite:///./inventory.db"

    # Bearer tokens are issued by the users service; only verification happens here
    SECRET_KEY: str = "change-me-in-production"
    ACCESS_TOKEN_EXPIRE_HOURS: int = 72

    # Seconds a SQLite writer waits for the database lock before giving up
    SQLITE_BUSY_TIMEOUT: float = 15.0

    # Restrict purchases derived from a requisition to the requisitioned products and quantities
    ENFORCE_REQUISITION_ITEMS: bool = False

    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env"}


settings = Settings()
