"""Translation port implementations."""

from typing import Dict, Type

from linguini.core.exceptions import ConfigurationError
from linguini.translation.base import TranslationPort

from .openai_backend import OpenAIBackend
from .free_backend import FreeBackend
from .local_backend import LocalBackend

BACKENDS: Dict[str, Type[TranslationPort]] = {
    "openai": OpenAIBackend,
    "free": FreeBackend,
    "local": LocalBackend,
}


def create_backend(name: str, **kwargs) -> TranslationPort:
    """Instantiate a backend by name."""
    key = (name or "").lower().strip()
    if key not in BACKENDS:
        raise ConfigurationError(
            f"Unknown backend: {name}",
            config_key="backend",
            invalid_value=name,
            valid_values=sorted(BACKENDS),
        )
    return BACKENDS[key](**kwargs)


__all__ = [
    'OpenAIBackend',
    'FreeBackend',
    'LocalBackend',
    'BACKENDS',
    'create_backend',
]
