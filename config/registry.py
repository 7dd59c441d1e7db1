"""In-memory model registry for question and evaluation models."""
from typing import Any, Callable, Dict

_REGISTRY: Dict[str, Callable[..., Any]] = {}


def bind_model(key: str, fn: Callable[..., Any]) -> None:
    """Bind a callable implementation to a registry key.

    The callable receives ``inputs=<dict>`` as a keyword argument and may
    return either the raw payload or an awaitable resolving to it.
    """
    _REGISTRY[key] = fn


def unbind_model(key: str) -> None:
    """Drop the binding for ``key`` if one exists."""
    _REGISTRY.pop(key, None)


def get_model(key: str) -> Callable[..., Any]:
    """Retrieve a callable from the registry.

    Raises:
        KeyError: If no callable has been bound for ``key``.
    """

    if key not in _REGISTRY:
        raise KeyError(f"Model not bound in registry: {key}")
    return _REGISTRY[key]


QUESTION_KEY = "models.question_generator"
ADAPTIVE_QUESTION_KEY = "models.adaptive_question_generator"
EVAL_KEY = "models.response_evaluator"
