"""Configuration loading and management."""

import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional

from dotenv import load_dotenv

from linguini.core.exceptions import ConfigurationError

# Environment variable -> (config path, type)
ENV_MAPPINGS = {
    "OPENAI_API_KEY": (["api_keys", "openai"], str),
    "LINGUINI_BACKEND": (["translation", "backend"], str),
    "LINGUINI_BATCH_SIZE": (["translation", "batch_size"], int),
    "LINGUINI_TARGET_LANGUAGE": (["translation", "target_language"], str),
}


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file (defaults to configs/default.yaml)

    Returns:
        Configuration dictionary
    """
    load_dotenv()

    if config_path is None:
        possible_paths = [
            Path("configs/default.yaml"),
            Path(__file__).parent.parent.parent / "configs" / "default.yaml"
        ]

        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break
        else:
            return override_with_env(get_default_config())

    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        loaded = yaml.safe_load(f) or {}

    config = _merge(get_default_config(), loaded)
    return override_with_env(config)


def save_config(config: Dict[str, Any], config_path: str) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration dictionary
        config_path: Output path
    """
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w', encoding='utf-8') as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False, allow_unicode=True)


def override_with_env(config: Dict[str, Any]) -> Dict[str, Any]:
    """Override config with environment variables."""
    for env_var, (path, cast) in ENV_MAPPINGS.items():
        value = os.getenv(env_var)
        if not value:
            continue

        try:
            value = cast(value)
        except ValueError:
            raise ConfigurationError(
                f"Invalid value for {env_var}: {value}",
                config_key=env_var,
                invalid_value=value,
            )

        current = config
        for key in path[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    return config


def get_default_config() -> Dict[str, Any]:
    """Get default configuration."""
    return {
        "translation": {
            "backend": "local",
            "model": None,
            "target_language": "en-US",
            "batch_size": 6,
            "max_sessions": 6,
            "simplify_context_chars": 200,
            "context_window_chars": 160
        },
        "segmentation": {
            "granularity": "word",
            "max_phrase_words": 4,
            "use_model_chunker": False
        },
        "detection": {
            "min_length": 10,
            "min_confidence": 0.5
        },
        "logging": {
            "level": "INFO",
            "file": None
        },
        "api_keys": {
            "openai": ""
        }
    }


def config_from_dict(config: Dict[str, Any]):
    """
    Build an AnnotationConfig from a loaded configuration dictionary.

    Missing sections fall back to the defaults.
    """
    from linguini.core.pipeline import AnnotationConfig

    merged = _merge(get_default_config(), config or {})
    translation = merged["translation"]
    segmentation = merged["segmentation"]
    detection = merged["detection"]
    backend = translation["backend"]

    return AnnotationConfig(
        backend=backend,
        model_name=translation.get("model"),
        api_key=merged["api_keys"].get(backend) or None,
        max_sessions=int(translation["max_sessions"]),
        simplify_context_chars=int(translation["simplify_context_chars"]),
        batch_size=int(translation["batch_size"]),
        segment_granularity=segmentation["granularity"],
        max_phrase_words=int(segmentation["max_phrase_words"]),
        use_model_chunker=bool(segmentation["use_model_chunker"]),
        min_detection_length=int(detection["min_length"]),
        min_detection_confidence=float(detection["min_confidence"]),
        context_window_chars=int(translation["context_window_chars"]),
        log_level=merged["logging"]["level"],
    )


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result
