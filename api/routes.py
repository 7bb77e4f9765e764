from flask import Flask, request, jsonify
import logging
from typing import Optional

from .models import InboundEvent
from .services.chat import ChatService
from .services.conversation import ConversationService
from .services.memory import MemoryService
from .services.whatsapp import WhatsAppService
from lib.config import Settings
from lib.error_handler import AppError, InvalidEvent
from lib.openrouter_client import OpenRouterClient
from lib.vector_store import PineconeClient

logger = logging.getLogger(__name__)


def build_conversation_service(settings: Settings) -> ConversationService:
    """Wire the real OpenRouter, Pinecone and WhatsApp clients together"""
    logger.info("Initializing OpenRouter client...")
    openrouter_client = OpenRouterClient(settings)

    logger.info(f"Initializing Pinecone for index: {settings.pinecone_index}")
    vector_store = PineconeClient(settings)

    memory_service = MemoryService(
        vector_store=vector_store,
        embedder=openrouter_client,
        max_context_chars=settings.context_max_chars,
        max_entry_chars=settings.context_entry_max_chars
    )
    chat_service = ChatService(completion_client=openrouter_client)
    whatsapp_service = WhatsAppService(settings)

    logger.info("All services initialized successfully")
    return ConversationService(
        memory_service=memory_service,
        chat_service=chat_service,
        whatsapp_service=whatsapp_service,
        context_top_k=settings.context_top_k,
        turn_timeout=settings.turn_timeout_seconds
    )


def create_app(settings: Settings, conversation_service: Optional[ConversationService] = None) -> Flask:
    app = Flask(__name__)
    conversation = conversation_service or build_conversation_service(settings)

    @app.route("/", methods=['GET'])
    def verify_webhook():
        """WhatsApp webhook verification handshake"""
        mode = request.args.get('hub.mode')
        token = request.args.get('hub.verify_token')
        challenge = request.args.get('hub.challenge', '')

        if mode == 'subscribe' and token == settings.verify_token:
            logger.info("Webhook verified!")
            return challenge, 200, {'Content-Type': 'text/plain'}
        logger.warning("Webhook verification failed")
        return "Forbidden", 403

    @app.route("/", methods=['POST'])
    async def webhook():
        payload = request.get_json(silent=True)
        event = InboundEvent.from_webhook(payload)
        if event is None:
            return "OK", 200

        try:
            await conversation.handle_inbound_message(event)
            return "OK", 200
        except InvalidEvent as e:
            logger.warning(f"Ignoring invalid event: {e.message}")
            return "OK", 200
        except AppError as e:
            logger.error(f"Webhook error: {e.message}", exc_info=True)
            return "Error", 500
        except Exception as e:
            logger.error(f"Webhook error: {str(e)}", exc_info=True)
            return "Error", 500

    @app.route("/health", methods=['GET'])
    def health():
        """Basic health check"""
        return jsonify({
            'status': 'healthy',
            'index': settings.pinecone_index
        })

    return app
