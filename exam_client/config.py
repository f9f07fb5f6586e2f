"""
Exam client configuration. Base URL and timings come from env; no secrets here.
"""
import os

# Exam portal REST API (all endpoint paths below are relative to this)
API_BASE_URL = os.environ.get("EXAM_API_BASE_URL", "http://localhost:8080/api/v1").rstrip("/")

# Upper bound for every network call, renewal exchange included (seconds)
REQUEST_TIMEOUT = float(os.environ.get("EXAM_CLIENT_TIMEOUT", "30"))

# Access token counts as expired this many seconds before its exp claim
EXPIRY_SKEW_SECONDS = int(os.environ.get("EXAM_CLIENT_EXPIRY_SKEW", "30"))

# Unauthenticated entry point; teardown always navigates here
LOGIN_REDIRECT_PATH = "/login"
