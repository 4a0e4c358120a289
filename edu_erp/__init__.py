import logging

from flask import Flask, redirect, url_for

from edu_erp.config import Config
from edu_erp.errors import register_error_handlers
from edu_erp.extensions import db, migrate

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(app):
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("edu_erp").setLevel(level)
    app.logger.setLevel(level)


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)

    # Registers every model with SQLAlchemy metadata
    from edu_erp import models  # noqa

    from edu_erp.routes.auth_routes import auth_bp
    from edu_erp.routes.api_auth_routes import api_auth_bp
    from edu_erp.routes.api_routes import api_bp
    from edu_erp.routes.finance_routes import finance_bp
    from edu_erp.routes.page_routes import pages_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(api_auth_bp, url_prefix="/api/auth")
    app.register_blueprint(api_bp, url_prefix="/api")
    app.register_blueprint(finance_bp, url_prefix="/api/finance")
    app.register_blueprint(pages_bp)

    register_error_handlers(app)

    @app.cli.command("init-db")
    def init_db_command():
        """Create any missing tables straight from the models."""
        db.create_all()
        print("Database tables created")

    @app.cli.command("seed-db")
    def seed_db_command():
        """Populate the database with the development data set."""
        from edu_erp.seed import run_seed

        counts = run_seed()
        for table, count in counts.items():
            print(f"{table}: {count}")

    @app.route('/')
    def index():
        return redirect(url_for('pages.dashboard'))

    app.logger.info("Educational ERP started (%s)", config_object.__name__)
    return app
