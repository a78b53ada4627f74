from pydantic import BaseModel, Field
import os


def _env(name: str, default: str | None = None):
    # read at instantiation so a .env loaded by the entry point is seen
    return Field(default_factory=lambda: os.getenv(name, default))


class Settings(BaseModel):
    openrouter_api_key: str | None = _env("OPENROUTER_API_KEY")
    openrouter_base_url: str = _env("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1")
    default_model: str = _env("PATHFLOW_MODEL", "openai/gpt-4o-mini")
    temperature: float = Field(default_factory=lambda: float(os.getenv("PATHFLOW_TEMPERATURE", "0.3")))

    # Sent upstream as HTTP-Referer; OpenRouter uses it for attribution.
    app_url: str = Field(
        default_factory=lambda: os.getenv(
            "PATHFLOW_APP_URL", os.getenv("NEXT_PUBLIC_APP_URL", "http://localhost:3000")
        )
    )

    # Pathway store: "sqlite" (local persistent) or "memory" (in-process)
    store_backend: str = _env("PATHFLOW_STORE", "sqlite")
    sqlite_path: str = _env("PATHFLOW_SQLITE_PATH", "./pathflow.sqlite")

    # If true, don't call the provider; use deterministic stub.
    mock_llm: bool = Field(default_factory=lambda: os.getenv("MOCK_LLM", "0") == "1")

    log_level: str = _env("PATHFLOW_LOG_LEVEL", "INFO")
