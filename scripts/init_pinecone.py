import sys
from pathlib import Path

from dotenv import load_dotenv

# Add project root to Python path
sys.path.append(str(Path(__file__).resolve().parent.parent))

from lib.config import get_settings
from lib.vector_store import PineconeClient


def init_pinecone():
    """Initialize the Pinecone index used for conversation memory"""
    try:
        settings = get_settings()
        client = PineconeClient(settings)
        if client.ensure_index():
            print(f"Index '{settings.pinecone_index}' created successfully!")
        else:
            print(f"Index '{settings.pinecone_index}' already exists.")
    except Exception as e:
        print(f"Error initializing Pinecone: {str(e)}")
        raise


if __name__ == "__main__":
    load_dotenv()
    init_pinecone()
