"""Agno interpreter service for the LLM extraction strategy.

Wraps an Agno agent behind a single ``interpret(prompt) -> str`` call so the
extractor does not depend on Agno's interface. Each call is stateless: plan
documents are interpreted independently and no session history is kept.
"""

import logging

from agno.agent import Agent
from agno.models.openai import OpenAIChat

from vertretungsplan.agent.config import AgentConfig, get_agent_config

logger = logging.getLogger(__name__)


class InterpreterService:
    """Service for sending plan text to the interpreter model.

    Wraps Agno's Agent with:
    - OpenAI or OpenAI-compatible model selection from config
    - Singleton lifecycle management
    - Plain string interface for the extractor
    """

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the interpreter service.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_agent_config()
        self._agent = self._create_agent()

    def _create_agent(self) -> Agent:
        """Create the Agno agent instance.

        Returns:
            Configured Agent with OpenAI model and no storage.
        """
        model = OpenAIChat(
            id=self._config.model_name,
            api_key=self._config.api_key,
            base_url=self._config.base_url,
            temperature=self._config.temperature,
            max_tokens=self._config.max_tokens,
            timeout=self._config.request_timeout,
            max_retries=self._config.max_retries,
        )

        return Agent(
            model=model,
            description="Extracts structured entries from German school substitution plans.",
            instructions=[
                "Answer with a JSON array only.",
                "Never invent entries that are not in the given text.",
            ],
            # Raw JSON is parsed downstream, markdown would only add fences
            markdown=False,
        )

    async def interpret(self, prompt: str) -> str:
        """Send one prompt and return the model's complete answer.

        Args:
            prompt: Full instruction including the plan text.

        Returns:
            Response text (empty when the model returned no content).

        Raises:
            Exception: Whatever the model client raises; the extractor
                absorbs it.
        """
        logger.debug(f"Sending {len(prompt)} character prompt to {self._config.model_name}")
        response = await self._agent.arun(prompt)
        content = response.content or ""
        if not isinstance(content, str):
            content = str(content)
        logger.debug(f"Interpreter answered with {len(content)} characters")
        return content


# Module-level singleton instance
_interpreter_service: InterpreterService | None = None


def get_interpreter_service() -> InterpreterService:
    """Get or create the global interpreter service.

    Uses singleton pattern for resource efficiency.

    Returns:
        The InterpreterService instance.
    """
    global _interpreter_service
    if _interpreter_service is None:
        _interpreter_service = InterpreterService()
    return _interpreter_service
