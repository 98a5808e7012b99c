import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./flows.db")
if DATABASE_URL.startswith("postgres://"):
    # SQLAlchemy only accepts the postgresql:// scheme
    DATABASE_URL = "postgresql://" + DATABASE_URL[10:]

# Instagram Graph API
INSTAGRAM_GRAPH_API_BASE = os.getenv("INSTAGRAM_GRAPH_API_BASE", "https://graph.instagram.com")
INSTAGRAM_GRAPH_API_VERSION = os.getenv("INSTAGRAM_GRAPH_API_VERSION", "v21.0")

# Webhooks
INSTAGRAM_WEBHOOK_VERIFY_TOKEN = os.getenv("INSTAGRAM_WEBHOOK_VERIFY_TOKEN", "my_verify_token_123")
INSTAGRAM_APP_SECRET = os.getenv("INSTAGRAM_APP_SECRET", "")

# Outbound HTTP
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "15"))

# Flow engine
FLOW_MAX_STEPS = int(os.getenv("FLOW_MAX_STEPS", "100"))  # Node visits per run before a cycle is assumed
MAX_TEMPLATE_BUTTONS = 3  # Instagram's max for button templates
