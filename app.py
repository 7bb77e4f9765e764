import logging
import sys

from dotenv import load_dotenv

from api.routes import create_app
from lib.config import get_settings
from lib.error_handler import ConfigurationError

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout,
    force=True
)
logger = logging.getLogger(__name__)


def main():
    try:
        settings = get_settings()
    except ConfigurationError as e:
        logger.error(f"Missing required environment variables! {e.message}")
        sys.exit(1)

    logging.getLogger().setLevel(settings.log_level.upper())
    app = create_app(settings)

    logger.info(f"WhatsApp + OpenRouter RAG bot LIVE on port {settings.port}")
    logger.info(f"Pinecone index: {settings.pinecone_index}")
    app.run(host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
