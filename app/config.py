from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    BOT_TOKEN: str

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "bot.log"

    # Output limits
    SEARCH_RESULTS_LIMIT: int = 10
    SEARCH_BUTTONS_LIMIT: int = 3
    TOP_MODELS_LIMIT: int = 10

    class Config:
        env_file = ".env"
