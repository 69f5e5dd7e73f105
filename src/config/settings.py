from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Name of the process-wide UI/main run loop
    MAIN_CONTEXT_NAME: str = "main"

    # "strong" keeps a decorator alive until its pending callbacks ran,
    # "weak" lets it go and drops completions that arrive afterwards
    CALLBACK_CAPTURE: str = "strong"

    CONTEXT_POLL_INTERVAL_SECONDS: float = 0.05
    CONTEXT_STOP_TIMEOUT_SECONDS: float = 2.0

    RUNTIME_LOGGER_NAME: str = "runtime"
    LOG_RESULT_PAYLOADS: bool = False


settings = Settings()
