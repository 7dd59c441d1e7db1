"""Configuration package for the interview coach services."""
from .app_config import AppConfig, LlmRoute, load_config, resolve_registry
from .registry import ADAPTIVE_QUESTION_KEY, EVAL_KEY, QUESTION_KEY, bind_model, get_model, unbind_model
from .settings import Settings, settings

__all__ = [
    "AppConfig",
    "LlmRoute",
    "load_config",
    "resolve_registry",
    "ADAPTIVE_QUESTION_KEY",
    "EVAL_KEY",
    "QUESTION_KEY",
    "bind_model",
    "get_model",
    "unbind_model",
    "Settings",
    "settings",
]
