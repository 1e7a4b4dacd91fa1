"""
Simple configuration for the Legal Document Analyzer.
"""
import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class Config:
    """Configuration class for the Legal Document Analyzer."""

    # API Configuration
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")

    # Model Settings (one per capability family)
    PROMPT_MODEL = os.environ.get("PROMPT_MODEL", "gpt-4o-mini")
    SUMMARIZER_MODEL = os.environ.get("SUMMARIZER_MODEL", "gpt-4o-mini")
    REWRITER_MODEL = os.environ.get("REWRITER_MODEL", "gpt-4o-mini")
    WRITER_MODEL = os.environ.get("WRITER_MODEL", "gpt-4o-mini")
    PROMPT_TEMPERATURE = 0.3
    SUMMARIZER_TEMPERATURE = 0
    REWRITER_TEMPERATURE = 0.3
    WRITER_TEMPERATURE = 0.5

    # User Settings
    DEFAULT_OUTPUT_LANGUAGE = os.environ.get("OUTPUT_LANGUAGE", "en")
    ANALYSIS_DEPTH = os.environ.get("ANALYSIS_DEPTH", "standard")  # quick, standard, deep

    # Document Processing
    MAX_PROMPT_LENGTH = 10000
    CHUNK_SIZE = 8000
    MIN_ANALYSIS_LENGTH = 100
    MIN_REQUEST_TEXT_LENGTH = 50
    PAGE_TEXT_MAX_WORDS = 500

    # Model Preparation
    PREPARE_POLL_INTERVAL = 3  # seconds
    PREPARE_TIMEOUT = 3 * 60  # seconds

    # API Settings
    API_HOST = "0.0.0.0"
    API_PORT = 5001
    API_DEBUG = os.environ.get("API_DEBUG", "false").lower() == "true"
    API_VERSION = "1.0.0"
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


# Backward compatibility - keep module-level variables
OPENAI_API_KEY = Config.OPENAI_API_KEY
DEFAULT_OUTPUT_LANGUAGE = Config.DEFAULT_OUTPUT_LANGUAGE
ANALYSIS_DEPTH = Config.ANALYSIS_DEPTH
MAX_PROMPT_LENGTH = Config.MAX_PROMPT_LENGTH
CHUNK_SIZE = Config.CHUNK_SIZE
MIN_ANALYSIS_LENGTH = Config.MIN_ANALYSIS_LENGTH
MIN_REQUEST_TEXT_LENGTH = Config.MIN_REQUEST_TEXT_LENGTH
PAGE_TEXT_MAX_WORDS = Config.PAGE_TEXT_MAX_WORDS
PREPARE_POLL_INTERVAL = Config.PREPARE_POLL_INTERVAL
PREPARE_TIMEOUT = Config.PREPARE_TIMEOUT
API_HOST = Config.API_HOST
API_PORT = Config.API_PORT
API_DEBUG = Config.API_DEBUG
API_VERSION = Config.API_VERSION
LOG_LEVEL = Config.LOG_LEVEL
