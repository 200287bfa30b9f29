from flask import jsonify
from sqlalchemy import select, literal
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from auth import ph, create_session  # noqa: F401  (Tests / Skripte)
from core.app_factory import create_app
from core.config import PORT
from core.db import engine, ensure_tables
from core.helpers import _now, _as_utc_aware  # noqa: F401

# --------------------------------------------------------
# Init
# --------------------------------------------------------
app = create_app()
ensure_tables()

app.logger.info("DB         : %s", engine.url.render_as_string(hide_password=True))


# --------------------------------------------------------
# Health
# --------------------------------------------------------
@app.get("/healthz")
@app.get("/api/health")
def health():
    try:
        with Session(engine) as s:
            s.execute(select(literal(1)))
        return jsonify({"ok": True, "service": "api", "time": _now().isoformat()})
    except SQLAlchemyError as e:
        app.logger.warning("health check failed: %r", e)
        return jsonify({"ok": False, "message": "database unavailable"}), 500


# --------------------------------------------------------
# Start
# --------------------------------------------------------
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=PORT)
