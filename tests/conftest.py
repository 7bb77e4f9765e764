import pytest
from unittest.mock import AsyncMock
import sys
from pathlib import Path

# Add project root to Python path
project_root = str(Path(__file__).parent.parent)
sys.path.append(project_root)

from api.models import Role
from api.services.chat import ChatService
from api.services.conversation import ConversationService
from api.services.memory import MemoryService
from lib.config import Settings

TEST_SENDER = "15551234567"


class FakeVectorStore:
    """In-memory stand-in for PineconeClient, keyed by namespace"""

    def __init__(self):
        self.namespaces = {}
        self.upserts = []
        self.queries = []
        self.fail_upsert = False
        self.fail_query = False

    async def upsert(self, namespace, record_id, embedding, metadata):
        if self.fail_upsert:
            raise RuntimeError("pinecone write unavailable")
        self.upserts.append((namespace, record_id, metadata))
        self.namespaces.setdefault(namespace, []).append({
            'id': record_id,
            'score': 1.0,
            'metadata': metadata
        })

    async def query(self, namespace, embedding, top_k=6):
        if self.fail_query:
            raise RuntimeError("pinecone query unavailable")
        self.queries.append((namespace, top_k))
        return list(reversed(self.namespaces.get(namespace, [])))[:top_k]


class FakeEmbedder:
    async def embed(self, text):
        return [float(len(text)), 0.0, 1.0]


class SequentialIds:
    def __init__(self):
        self.count = 0

    def __call__(self, role: Role) -> str:
        self.count += 1
        return f"{role.value}_{self.count}"


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        verify_token="verify-secret",
        wa_token="wa-token",
        phone_id="1234",
        openrouter_key="or-key",
        pinecone_api_key="pc-key",
        pinecone_index="whatsapp-memory",
    )


@pytest.fixture
def vector_store():
    return FakeVectorStore()


@pytest.fixture
def memory_service(vector_store):
    return MemoryService(
        vector_store=vector_store,
        embedder=FakeEmbedder(),
        id_generator=SequentialIds()
    )


@pytest.fixture
def completion_client():
    client = AsyncMock()
    client.complete = AsyncMock(return_value="I don't have real-time weather access.")
    return client


@pytest.fixture
def whatsapp_service():
    service = AsyncMock()
    service.deliver_reply = AsyncMock(return_value=None)
    return service


@pytest.fixture
def conversation_service(memory_service, completion_client, whatsapp_service):
    return ConversationService(
        memory_service=memory_service,
        chat_service=ChatService(completion_client),
        whatsapp_service=whatsapp_service,
        context_top_k=6,
        turn_timeout=5.0
    )


def whatsapp_payload(sender=TEST_SENDER, text="What's the weather?"):
    message = {'from': sender, 'id': 'wamid.TEST', 'type': 'text'}
    if text is not None:
        message['text'] = {'body': text}
    return {
        'object': 'whatsapp_business_account',
        'entry': [{
            'changes': [{
                'value': {
                    'messaging_product': 'whatsapp',
                    'messages': [message]
                }
            }]
        }]
    }
