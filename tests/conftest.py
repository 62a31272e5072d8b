"""Point settings at SQLite before any crm_identity module is imported."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("JWT_SECRET", "test-secret")
