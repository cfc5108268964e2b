"""Pipe text through language model chat APIs."""

__version__ = "2.2.0"

from .customizer import ParamOverrides, customize_prompt
from .pipeline import Orchestrator
from .schemas import PLACEHOLDER_TOKEN, Api, ApiConfig, Message, Prompt

__all__ = [
    "__version__",
    "ParamOverrides",
    "customize_prompt",
    "Orchestrator",
    "PLACEHOLDER_TOKEN",
    "Api",
    "ApiConfig",
    "Message",
    "Prompt",
]
