"""Configuration management for the site order assistant."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Keys
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
SUPABASE_TABLE_NAME = os.getenv("SUPABASE_TABLE_NAME", "orders")

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# Model Configuration
CONVERSATION_MODEL = os.getenv("CONVERSATION_MODEL", "llama-3.3-70b-versatile")
EXTRACTION_MODEL = os.getenv("EXTRACTION_MODEL", "llama-3.3-70b-versatile")
LEGACY_MODEL = os.getenv("LEGACY_MODEL", "llama-3.1-8b-instant")

# Session Configuration
SESSION_TTL_SECONDS = 2 * 60 * 60
SESSION_MAX_MESSAGES = 15
CONVERSATION_HISTORY_WINDOW = 10  # turns sent to the conversational agent

# Outbound Message Chunking
MAX_MESSAGE_CHUNK_SIZE = 3500  # characters
CHUNK_SEARCH_WINDOW = 500  # characters searched backward for a break

# Orchestration
AGENT_TIMEOUT_SECONDS = 30.0
STORE_COMPLETENESS_THRESHOLD = 0.8
PENDING_COMPLETENESS_THRESHOLD = 0.5

# Validation
MIN_DELIVERY_YEAR = 2024
MAX_DELIVERY_YEAR = 2030

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
