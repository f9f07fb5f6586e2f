"""
Development exam API configuration. Token lifetimes, DB and seed credentials come from env.
"""
import os

# Issuer claim placed in access tokens
ISSUER = os.environ.get("EXAM_API_ISSUER", "http://localhost:8080").rstrip("/")

# All routes are served under this prefix, matching the portal's API_BASE_URL
API_PREFIX = "/api/v1"

DATABASE_URL = os.environ.get("EXAM_API_DATABASE_URL", "sqlite:///./exam_api.db")

# Short-lived access tokens so renewal is exercised during manual runs
ACCESS_TOKEN_EXPIRES = int(os.environ.get("EXAM_API_ACCESS_TOKEN_EXPIRES", "300"))
REFRESH_TOKEN_EXPIRES = int(os.environ.get("EXAM_API_REFRESH_TOKEN_EXPIRES", "86400"))

# RSA private key PEM for signing; generated and saved here when missing
SIGNING_KEY_PATH = os.environ.get("EXAM_API_SIGNING_KEY_PATH", ".exam_api_signing_key.pem")
