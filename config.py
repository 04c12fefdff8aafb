import os

ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY")
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", "claude-sonnet-4-5-20250929")

# Optional - not every deployment has a TRMNL display
TRMNL_WEBHOOK_URL = os.getenv("TRMNL_WEBHOOK_URL") or None
