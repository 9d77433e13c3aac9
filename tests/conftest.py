"""
Test configuration — sets required env vars before any imports.
"""

import os

# Set dummy env vars so Settings() is deterministic during test collection.
# These are never used for real calls; all external services are mocked.
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_KEY", "test-service-key")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("RECORD_SOURCE", "mock")
os.environ.setdefault("AUTH_ENABLED", "true")
os.environ.setdefault("PERSIST_CALLS", "false")
