"""Text classifier backed by the Claude SDK."""

import logging

from claude_code_sdk import AssistantMessage, ClaudeCodeOptions, ClaudeSDKClient, TextBlock

logger = logging.getLogger(__name__)


class ClaudeTextClassifier:
    """TextClassifier that runs a single tool-less Claude query."""

    def __init__(self, model: str = "sonnet") -> None:
        """Initialize with the Claude model alias to use."""
        self._model = model

    async def generate_text(self, system: str, user: str) -> str:
        """Send the prompt pair and return the concatenated text response."""
        options = ClaudeCodeOptions(model=self._model, system_prompt=system, allowed_tools=[])
        client = ClaudeSDKClient(options=options)
        response_text = ""

        async with client:
            await client.query(user)
            logger.info("[Classifier] Query sent, waiting for response")

            async for message in client.receive_response():
                # Collect text response
                if isinstance(message, AssistantMessage):
                    for block in message.content:
                        if isinstance(block, TextBlock):
                            response_text += block.text

        logger.info(f"[Classifier] Response length: {len(response_text)} chars")
        return response_text
