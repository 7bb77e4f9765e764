import logging
from typing import Iterable, List, Optional

from api.models import (
    ContextEntry,
    IdGenerator,
    MessageRecord,
    RetrievedContext,
    Role,
    default_id_generator,
)
from lib.error_handler import MemoryReadFailure, MemoryWriteFailure, best_effort

logger = logging.getLogger(__name__)


class MemoryService:
    """Conversation memory kept in one Pinecone namespace per sender."""

    def __init__(
        self,
        vector_store,
        embedder,
        id_generator: IdGenerator = default_id_generator,
        max_context_chars: int = 4000,
        max_entry_chars: int = 1000,
    ):
        self.vector_store = vector_store
        self.embedder = embedder
        self.id_generator = id_generator
        self.max_context_chars = max_context_chars
        self.max_entry_chars = max_entry_chars

    async def persist_turn(self, namespace: str, owner: str, text: str, role: Role) -> Optional[str]:
        """Store one turn. Returns the record id, or None if the write failed."""
        async def write() -> str:
            record = MessageRecord(
                id=self.id_generator(role),
                content=text,
                role=role,
                owner=owner,
            )
            embedding = await self.embedder.embed(text)
            await self.vector_store.upsert(
                namespace=namespace,
                record_id=record.id,
                embedding=embedding,
                metadata=record.to_metadata()
            )
            logger.info(f"Saved {role.value} message to Pinecone namespace: {namespace}")
            return record.id

        return await best_effort(write, MemoryWriteFailure, None)

    async def retrieve_context(
        self,
        namespace: str,
        query_text: str,
        k: int = 6,
        exclude_ids: Iterable[Optional[str]] = (),
    ) -> RetrievedContext:
        """Fetch up to k related turns. Never raises; failures yield an empty context."""
        excluded = {record_id for record_id in exclude_ids if record_id}

        async def read() -> RetrievedContext:
            embedding = await self.embedder.embed(query_text)
            matches = await self.vector_store.query(
                namespace=namespace,
                embedding=embedding,
                top_k=k
            )
            entries = [
                ContextEntry.from_match(match)
                for match in matches
                if match.get('id') not in excluded
            ]
            context = RetrievedContext(entries=tuple(self._truncate(entries)))
            logger.info(f"Retrieved {len(context)} context messages from namespace: {namespace}")
            return context

        return await best_effort(read, MemoryReadFailure, RetrievedContext())

    def _truncate(self, entries: List[ContextEntry]) -> List[ContextEntry]:
        """Cap each entry, then drop the least relevant entries past the total budget."""
        kept = []
        used = 0
        for entry in entries:
            if len(entry.content) > self.max_entry_chars:
                entry = entry.model_copy(update={'content': entry.content[:self.max_entry_chars]})
            line_length = len(entry.to_line()) + (1 if kept else 0)
            if used + line_length > self.max_context_chars:
                break
            kept.append(entry)
            used += line_length
        return kept
