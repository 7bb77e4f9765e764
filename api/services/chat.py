import logging

from api.models import PromptEnvelope, RetrievedContext
from lib.error_handler import CompletionFailure, must_succeed

logger = logging.getLogger(__name__)

BASE_PROMPT = (
    "You are a friendly, concise WhatsApp assistant. "
    "Reply naturally and conversationally."
)
NEW_CONVERSATION_NOTE = "This is a new conversation."


class ChatService:
    def __init__(self, completion_client):
        self.client = completion_client

    def build_prompt(self, context: RetrievedContext, message: str) -> PromptEnvelope:
        """Build the system prompt with context"""
        if context.is_empty:
            system_prompt = f"{BASE_PROMPT}\n\n{NEW_CONVERSATION_NOTE}"
        else:
            system_prompt = (
                f"{BASE_PROMPT}\n\n"
                f"Here is relevant context from past conversations with this user:\n"
                f"{context.serialize()}\n\n"
                "Use this context to make your reply personalized and aware of the conversation history."
            )
        return PromptEnvelope(system_prompt=system_prompt, user_message=message)

    async def generate_reply(self, envelope: PromptEnvelope) -> str:
        """Get one reply from the completion service. Raises CompletionFailure."""
        return await must_succeed(
            lambda: self.client.complete(envelope.system_prompt, envelope.user_message),
            CompletionFailure
        )
