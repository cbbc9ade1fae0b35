from __future__ import annotations

import os
import tempfile

# Settings are read once at import time; pin them before the package loads.
_TMP_DIR = tempfile.mkdtemp(prefix="notes-backend-tests-")

os.environ["APP_ENV"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'notes.db')}"
os.environ["LOG_FILE"] = os.path.join(_TMP_DIR, "app.log")
os.environ["EMAIL_BACKEND"] = "console"
os.environ["ENABLE_RATE_LIMIT"] = "false"
os.environ["OTP_SWEEP_INTERVAL"] = "0"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["ALLOWED_ORIGINS"] = "http://localhost:5173"
