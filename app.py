import logging

from flask import Flask, jsonify
from config import Config
from routes import health_bp, schedule_bp, appointments_bp, audit_bp

from models import db
from models.db import configure_sqlite
from flask_migrate import Migrate
from scheduling.errors import SchedulingError
from utils.audit import register_activity_recorders
from utils.auth_context import load_current_actor


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(schedule_bp)
    app.register_blueprint(appointments_bp)
    app.register_blueprint(audit_bp)

    # Database init
    db.init_app(app)
    with app.app_context():
        configure_sqlite(db.engine)

    # Migrations
    Migrate(app, db)

    # Activity feed listens to scheduling events
    register_activity_recorders()

    @app.before_request
    def _load_actor():
        load_current_actor()

    @app.errorhandler(SchedulingError)
    def _scheduling_error(exc):
        db.session.rollback()
        return jsonify(error=exc.message), exc.status_code

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp


    register_cli(app)


    return app

#-------------------------
import click
from datetime import timedelta
from utils import clock
from scheduling.materializer import materialize_for_range
from scheduling.templates import list_templates
from scheduling.timeparse import parse_date

def register_cli(app):
    @app.cli.command("generate-slots")
    @click.argument("provider_id")
    @click.argument("start_date", required=False)
    @click.argument("end_date", required=False)
    @click.option("--facility", "facility_id", default=None, help="Facility to stamp on new slots.")
    def generate_slots(provider_id, start_date, end_date, facility_id):
        """Materialize PROVIDER_ID's slots from START_DATE to END_DATE (default: next 7 days)."""
        try:
            start_date = parse_date(start_date or clock.today(), "start_date")
            end_date = parse_date(end_date, "end_date") if end_date else start_date + timedelta(days=7)
            slots = materialize_for_range(provider_id, start_date, end_date, facility_id)
        except SchedulingError as exc:
            db.session.rollback()
            raise click.ClickException(exc.message)
        db.session.commit()
        click.echo(f"{len(slots)} slots ready for {provider_id} ({start_date} .. {end_date})")

    @app.cli.command("list-templates")
    @click.option("--provider", "provider_id", default=None)
    def show_templates(provider_id):
        """Print the weekly availability templates."""
        rows = list_templates(provider_id=provider_id)
        if not rows:
            click.echo("No templates found")
            return
        for t in rows:
            state = "active" if t.is_active else "inactive"
            click.echo(
                f"{t.provider_id:<20} {t.day_of_week:<10} {t.start_time}-{t.end_time} "
                f"every {t.slot_duration_minutes}m x{t.max_bookings_per_slot} ({state})"
            )

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
