import logging

from dotenv import load_dotenv
from flask import Flask, request

from app.backoffice.config import load_config
from app.backoffice.db import init_db, teardown_db_session
from app.backoffice.errors import register_error_handlers
from app.backoffice.permissions import PermissionEngine, default_matrix
from app.backoffice.sessions import SessionManager
from app.backoffice.routes import bp as routes_bp
from app.backoffice.auth import bp as auth_bp, load_current_user
from app.backoffice.admin import bp as admin_bp
from app.backoffice.modules.settings.admin import bp as settings_bp
from app.backoffice.modules.cancelled_orders.admin import bp as cancelled_orders_bp
from app.backoffice.modules.late_orders.admin import bp as late_orders_bp
from app.backoffice.modules.installment_orders.admin import bp as installment_orders_bp
from app.backoffice.modules.finance.admin import bp as finance_bp
from app.backoffice.modules.reward_points.admin import bp as reward_points_bp
from app.backoffice.modules.inactive_coupons.admin import bp as inactive_coupons_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())
    app.config.setdefault("MAX_CONTENT_LENGTH", 5 * 1024 * 1024)  # JSON bodies and cardholder sheets

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    def _dispose_engine_on_fork() -> None:
        import os
        if hasattr(os, "register_at_fork"):
            def _after_fork_child():
                engine = app.extensions.get("sqlalchemy_engine")
                if engine:
                    engine.dispose()
                    app.logger.info("Disposed DB engine after fork (pid=%s)", os.getpid())

            os.register_at_fork(after_in_child=_after_fork_child)

    _dispose_engine_on_fork()

    # Loaded once, never mutated afterwards.
    app.extensions["permission_engine"] = PermissionEngine(default_matrix())
    app.extensions["session_manager"] = SessionManager.from_app(app)

    register_error_handlers(app)

    app.register_blueprint(routes_bp)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(admin_bp, url_prefix="/api")
    app.register_blueprint(settings_bp, url_prefix="/api")
    app.register_blueprint(cancelled_orders_bp, url_prefix="/api")
    app.register_blueprint(late_orders_bp, url_prefix="/api")
    app.register_blueprint(installment_orders_bp, url_prefix="/api")
    app.register_blueprint(finance_bp, url_prefix="/api")
    app.register_blueprint(reward_points_bp, url_prefix="/api")
    app.register_blueprint(inactive_coupons_bp, url_prefix="/api")

    def _load_user_wrapper():
        if request.path.startswith(("/health", "/healthz")):
            return None
        return load_current_user()

    app.before_request(_load_user_wrapper)
    app.teardown_appcontext(teardown_db_session)

    # Startup logging
    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app
