import os
import tempfile

# Testdatenbank und Mailversand festlegen, bevor app/core.config importiert werden
_DB_FD, _DB_PATH = tempfile.mkstemp(suffix=".db")
os.close(_DB_FD)
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_DB_PATH}")
os.environ.setdefault("EMAILS_ENABLED", "false")
os.environ.setdefault("MAIL_PROVIDER", "console")
