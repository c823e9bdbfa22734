import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

DEFAULT_OPENAI_MODEL = "gpt-4o"


@dataclass(frozen=True)
class LlmEnv:
    api_key: str | None
    base_url: str | None
    model: str
    timeout_seconds: float

    @property
    def configured(self) -> bool:
        return bool(self.api_key)


def load_llm_env() -> LlmEnv:
    api_key = (os.getenv("OPENAI_API_KEY") or os.getenv("OPENAI_KEY") or "").strip()
    base_url = (os.getenv("OPENAI_BASE_URL") or "").strip().rstrip("/")

    return LlmEnv(
        api_key=api_key or None,
        base_url=base_url or None,
        model=(os.getenv("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL).strip(),
        timeout_seconds=float(os.getenv("OPENAI_TIMEOUT_SECONDS", "30")),
    )
