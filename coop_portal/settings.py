import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./coop_portal.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]

# Document numbering
DEFAULT_TEMPLATE_KIND = os.getenv("DEFAULT_TEMPLATE_KIND", "document_number")
DEFAULT_DOCUMENT_LANGUAGE = os.getenv("DEFAULT_DOCUMENT_LANGUAGE", "thai")
DEFAULT_DOCUMENT_PREFIX = os.getenv("DEFAULT_DOCUMENT_PREFIX", "DOC")
DEFAULT_DOCUMENT_DIGITS = int(os.getenv("DEFAULT_DOCUMENT_DIGITS", "6"))
DEFAULT_DOCUMENT_SUFFIX = os.getenv("DEFAULT_DOCUMENT_SUFFIX", "")
SEQUENCE_MAX_RETRIES = int(os.getenv("SEQUENCE_MAX_RETRIES", "5"))

# Printing
PRINT_REQUIRES_APPROVAL = os.getenv("PRINT_REQUIRES_APPROVAL", "true").lower() == "true"
