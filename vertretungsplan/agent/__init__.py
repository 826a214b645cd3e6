"""Agno agent logic for the interpreter extraction strategy.

Responsibilities:
    - Agent initialization with OpenAI-compatible models
    - Extraction prompt construction
    - Plain text request/response interface for the extractor

Maintains clean separation from the parsing and HTTP layers.
"""

from vertretungsplan.agent.config import AgentConfig, get_agent_config
from vertretungsplan.agent.interpreter import InterpreterService, get_interpreter_service
from vertretungsplan.agent.prompts import build_extraction_prompt

__all__ = [
    "AgentConfig",
    "InterpreterService",
    "build_extraction_prompt",
    "get_agent_config",
    "get_interpreter_service",
]
