import logging

from flask import Flask
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from core.config import ALLOWED_ORIGINS, LOG_LEVEL, SECRET
from core.helpers import _json_error


def create_app():
    app = Flask(__name__)
    app.config["SECRET_KEY"] = SECRET
    app.json.sort_keys = False
    app.logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

    CORS(
        app,
        resources={
            r"/users/*": {"origins": ALLOWED_ORIGINS},
            r"/blogs": {"origins": ALLOWED_ORIGINS},
            r"/blogs/*": {"origins": ALLOWED_ORIGINS},
            r"/api/*": {"origins": ALLOWED_ORIGINS},
        },
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "OPTIONS"],
    )

    @app.after_request
    def add_headers(resp):
        resp.headers.setdefault("Cache-Control", "no-store")
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "DENY")
        resp.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        return resp

    @app.errorhandler(HTTPException)
    def http_error(e: HTTPException):
        return _json_error(e.description or e.name, e.code or 500)

    @app.errorhandler(Exception)
    def unhandled_error(e: Exception):
        app.logger.exception("unhandled error")
        return _json_error("Internal Server Error!", 500)

    from blogs import bp as blogs_bp
    from users import bp as users_bp

    app.register_blueprint(users_bp)
    app.register_blueprint(blogs_bp)

    return app
