import asyncio
import logging
from typing import Any, Dict, List

from pinecone import Pinecone, ServerlessSpec

from lib.config import Settings

logger = logging.getLogger(__name__)


class PineconeClient:
    def __init__(self, settings: Settings, pc: Pinecone = None):
        self.settings = settings
        self.index_name = settings.pinecone_index
        self.pc = pc or Pinecone(api_key=settings.pinecone_api_key)
        self._index = None

    @property
    def index(self):
        # Connected on first use
        if self._index is None:
            logger.info(f"Connecting to index: {self.index_name}")
            if self.settings.pinecone_host:
                self._index = self.pc.Index(name=self.index_name, host=self.settings.pinecone_host)
            else:
                self._index = self.pc.Index(self.index_name)
        return self._index

    def ensure_index(self) -> bool:
        """Create the index if it does not exist. Returns True if it was created."""
        if self.pc.has_index(self.index_name):
            logger.info(f"Index '{self.index_name}' already exists")
            return False

        logger.info(f"Creating Pinecone index '{self.index_name}'...")
        self.pc.create_index(
            name=self.index_name,
            dimension=self.settings.embedding_dimension,
            metric="cosine",
            spec=ServerlessSpec(
                cloud=self.settings.pinecone_cloud,
                region=self.settings.pinecone_region
            )
        )
        logger.info("Index created successfully")
        return True

    async def upsert(
        self,
        namespace: str,
        record_id: str,
        embedding: List[float],
        metadata: Dict[str, Any]
    ) -> None:
        """Store a single vector in the given namespace"""
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None,
            lambda: self.index.upsert(
                vectors=[{
                    'id': record_id,
                    'values': embedding,
                    'metadata': metadata
                }],
                namespace=namespace
            )
        )

    async def query(
        self,
        namespace: str,
        embedding: List[float],
        top_k: int = 6
    ) -> List[Dict[str, Any]]:
        """Search for similar vectors in the given namespace"""
        loop = asyncio.get_running_loop()
        results = await loop.run_in_executor(
            None,
            lambda: self.index.query(
                vector=embedding,
                top_k=top_k,
                namespace=namespace,
                include_metadata=True
            )
        )
        return [
            {
                'id': match.id,
                'score': match.score,
                'metadata': match.metadata or {}
            }
            for match in results.matches
        ]
