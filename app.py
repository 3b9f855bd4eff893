from flask import Flask, jsonify
from config import Config
from routes import health_bp, booking_bp, slots_bp

from models import db
from flask_migrate import Migrate
from utils.auth_context import load_current_actor


def create_app(overrides=None):
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(slots_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    @app.before_request
    def _load_actor():
        load_current_actor()

    @app.errorhandler(404)
    def _not_found(_err):
        return jsonify(error="Not found", code="NotFound"), 404

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
from reservations import catalog, ledger
from utils.audit import log_event
from utils.clock import utc_now

def register_cli(app):
    @app.cli.command("complete-bookings")
    def complete_bookings():
        """Mark confirmed bookings whose end time has passed as COMPLETED."""
        count = ledger.complete_elapsed_bookings(utc_now())
        log_event("BOOKING_COMPLETE_SWEEP", metadata={"count": count})
        print(f"{count} booking(s) completed")

    @app.cli.command("create-slot")
    @click.argument("owner_id")
    @click.argument("number")
    @click.option("--category", default=None, help="e.g. covered, uncovered")
    @click.option("--rate", default=None, help="Hourly rate; omit for quote-required pricing")
    def create_slot(owner_id, number, category, rate):
        """Register a slot for OWNER_ID (bootstrap)."""
        try:
            slot = catalog.create_slot(owner_id, number, category=category, rate_per_hour=rate)
        except ValueError as exc:
            raise click.BadParameter(str(exc))

        log_event("SLOT_CREATE", actor_id=owner_id, entity="slot", entity_id=slot.id)
        print(f"slot {slot.id} created for {owner_id}")

#-------------------------




if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
