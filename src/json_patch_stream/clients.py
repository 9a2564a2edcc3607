from __future__ import annotations

from functools import lru_cache
from typing import Any

from langchain.chat_models import init_chat_model
from langchain_core.language_models import BaseChatModel

from json_patch_stream.settings import get_settings


@lru_cache(maxsize=1)
def get_chat_model() -> BaseChatModel:
    """Return an instance of the configured chat model used to stream patches."""
    settings = get_settings()
    kwargs: dict[str, Any] = {
        "temperature": settings.CHAT_TEMPERATURE,
        "max_tokens": settings.CHAT_MAX_TOKENS,
    }
    if settings.OPENAI_API_KEY is not None:
        kwargs["api_key"] = settings.OPENAI_API_KEY.get_secret_value()
    return init_chat_model(settings.CHAT_MODEL, **kwargs)


def reset_clients_cache() -> None:
    """Clear the cache of the clients."""
    get_chat_model.cache_clear()
