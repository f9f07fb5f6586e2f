"""
Portal configuration. The exam API location itself comes from exam_client.config.
"""
import os

# Durable session store (survives portal restarts, like browser storage survives reloads)
STORE_URL = os.environ.get("EXAM_CLIENT_STORE_URL", "sqlite:///./exam_session.db")

# Organization origin used when the login form leaves organizationId empty
DEFAULT_ORIGIN = os.environ.get("EXAM_PORTAL_ORIGIN", "localhost")
