from datetime import datetime, timezone

from flask import jsonify, request


# --------------------------------------------------------
# Zeit / Utilities
# --------------------------------------------------------
def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _from_db_as_iso_utc(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return _as_utc_aware(dt).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _json_error(msg, code=400):
    return jsonify({"message": msg}), code


def _server_error(msg="Internal Server Error!"):
    return _json_error(msg, 500)


def _json_body() -> dict:
    data = request.get_json(force=True, silent=True)
    return data if isinstance(data, dict) else {}


def _utf16_len(s: str) -> int:
    """Länge in UTF-16-Code-Units (wie ``String.length`` im Browser)."""
    return len(s.encode("utf-16-le", "surrogatepass")) // 2
