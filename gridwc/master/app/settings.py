from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DEADLINE_S: float = 10.0
    POLL_INTERVAL_S: float = 0.05
    LOG_LEVEL: str = "INFO"
    MAX_TOKENIZERS: int = 0   # 0 = one thread per input file
    SHUTDOWN_GRACE_S: float = 0.5

settings = Settings()
