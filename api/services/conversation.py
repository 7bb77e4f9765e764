import asyncio
import logging

from api.models import InboundEvent, Role, TurnResult, namespace_for
from api.services.chat import ChatService
from api.services.memory import MemoryService
from api.services.whatsapp import WhatsAppService
from lib.error_handler import CompletionFailure, DeliveryFailure, InvalidEvent

logger = logging.getLogger(__name__)


class ConversationService:
    """Turns one inbound message into one delivered reply.

    Every step is awaited before the next one starts:
    persist user turn -> retrieve context -> generate -> persist reply -> deliver.
    The two persistence steps and the retrieval are best effort; generation
    and delivery failures abort the turn.
    """

    def __init__(
        self,
        memory_service: MemoryService,
        chat_service: ChatService,
        whatsapp_service: WhatsAppService,
        context_top_k: int = 6,
        turn_timeout: float = 25.0,
    ):
        self.memory = memory_service
        self.chat = chat_service
        self.whatsapp = whatsapp_service
        self.context_top_k = context_top_k
        self.turn_timeout = turn_timeout

    async def handle_inbound_message(self, event: InboundEvent) -> TurnResult:
        if not event.sender or not event.sender.strip():
            raise InvalidEvent("Inbound event has no sender address")

        logger.info(f"Message from {event.sender}: {event.text}")
        progress = {'replied': False}
        try:
            return await asyncio.wait_for(self._run_turn(event, progress), timeout=self.turn_timeout)
        except asyncio.TimeoutError as e:
            failure = DeliveryFailure if progress['replied'] else CompletionFailure
            raise failure(f"Turn for {event.sender} exceeded {self.turn_timeout}s") from e

    async def _run_turn(self, event: InboundEvent, progress: dict) -> TurnResult:
        namespace = namespace_for(event.sender)

        user_record_id = await self.memory.persist_turn(namespace, event.sender, event.text, Role.USER)

        context = await self.memory.retrieve_context(
            namespace,
            event.text,
            k=self.context_top_k,
            exclude_ids=[user_record_id]
        )

        envelope = self.chat.build_prompt(context, event.text)
        reply = await self.chat.generate_reply(envelope)
        progress['replied'] = True

        assistant_record_id = await self.memory.persist_turn(namespace, event.sender, reply, Role.ASSISTANT)

        await self.whatsapp.deliver_reply(event.sender, reply)
        logger.info(f"Replied: {reply}")

        return TurnResult(
            namespace=namespace,
            reply=reply,
            user_record_id=user_record_id,
            assistant_record_id=assistant_record_id,
            context_size=len(context)
        )
