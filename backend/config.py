"""Configuration management for the Red AI conversation pipeline."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Conversation store
CONVERSATION_BACKEND = os.getenv("CONVERSATION_BACKEND", "supabase")
CHAT_TABLE = os.getenv("CHAT_TABLE")
DEFAULT_CHAT_TABLE = "ChatTable"
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")
AWS_REGION = os.getenv("AWS_REGION")

# Completion provider
COMPLETION_BACKEND = os.getenv("COMPLETION_BACKEND", "openai")
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
COMPLETION_MODEL = os.getenv("COMPLETION_MODEL", "gpt-3.5-turbo")
COMPLETION_MAX_TOKENS = int(os.getenv("COMPLETION_MAX_TOKENS", "100"))
COMPLETION_TEMPERATURE = float(os.getenv("COMPLETION_TEMPERATURE", "0.7"))
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")
RECORD_ASSISTANT_TURNS = _flag("RECORD_ASSISTANT_TURNS", "true")

# Speech synthesis
SPEECH_BACKEND = os.getenv("SPEECH_BACKEND", "openai")
OPENAI_TTS_MODEL = os.getenv("OPENAI_TTS_MODEL", "tts-1")
OPENAI_TTS_VOICE = os.getenv("OPENAI_TTS_VOICE", "nova")
POLLY_VOICE_ID = os.getenv("POLLY_VOICE_ID", "Joanna")
POLLY_ENGINE = os.getenv("POLLY_ENGINE")

# Audio storage
AUDIO_BUCKET = os.getenv("AUDIO_BUCKET")
AUDIO_KEY_PREFIX = os.getenv("AUDIO_KEY_PREFIX", "audio/")
AUDIO_PUBLIC_BASE_URL = os.getenv("AUDIO_PUBLIC_BASE_URL")

# Pipeline wiring
ENABLED_FLOWS = [
    flow.strip()
    for flow in os.getenv("ENABLED_FLOWS", "ingest,complete,synthesize").split(",")
    if flow.strip()
]
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "30"))

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")

# CORS Configuration
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:3001"
).split(",")

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
