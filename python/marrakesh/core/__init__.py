# ruff: noqa: F401
from .llm_router import LanguageModel, ModelRequest, ModelResponse, RouterModel
from .prompt import Prompt, RenderedPrompt
from .tool import Tool, tool
