import os
import logging

import click
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from werkzeug.security import generate_password_hash

from lovevibes.config import config_by_name
from lovevibes.errors import AppError
from lovevibes.extensions import db, migrate, login_manager, limiter

logger = logging.getLogger(__name__)


def create_app(config_name=None, overrides=None):
    """Application factory.

    `overrides` is applied on top of the selected config class, before
    extensions are bound (tests use it to point at a different database).
    """

    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if overrides:
        app.config.update(overrides)

    # --- Validate required env vars (skip in testing) ---
    if config_name != "testing":
        try:
            config_by_name[config_name].validate()
        except RuntimeError as e:
            app.logger.warning(f"Config validation: {e}")

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    limiter.init_app(app)

    # --- Import models so Alembic can discover them ---
    with app.app_context():
        from lovevibes import models  # noqa: F401

    # --- Register blueprints ---
    from lovevibes.blueprints.auth import auth_bp
    from lovevibes.blueprints.swipes import swipes_bp
    from lovevibes.blueprints.billing import billing_bp
    from lovevibes.blueprints.webhooks import webhooks_bp
    from lovevibes.blueprints.health import health_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(swipes_bp)
    app.register_blueprint(billing_bp)
    app.register_blueprint(webhooks_bp)
    app.register_blueprint(health_bp)

    # --- Error handlers ---
    @app.errorhandler(AppError)
    def app_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def http_error(e):
        return jsonify({"error": e.description, "code": e.name.upper().replace(" ", "_")}), e.code

    @app.errorhandler(Exception)
    def server_error(e):
        logger.error(f"Unhandled error: {e}", exc_info=True)
        return jsonify({"error": "An unexpected error occurred", "code": "INTERNAL_ERROR"}), 500

    # --- CLI commands ---
    register_cli(app)

    # --- Security headers ---
    @app.after_request
    def add_security_headers(response):
        """Add security headers to every response."""
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"
        # JSON only: nothing may be loaded or framed
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'"
        )
        response.headers["Cache-Control"] = "no-store"
        # Strict Transport Security (only in production)
        if not app.debug:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response

    # --- Logging ---
    if not app.debug:
        logging.basicConfig(level=logging.INFO)

    return app


def register_cli(app):
    """Register custom CLI commands with the Flask app."""

    @app.cli.command("seed-demo")
    @click.option("--password", default="vibes1234", help="Password for both demo users")
    def seed_demo(password):
        """Create two demo users who can like each other.

        Usage:
            flask seed-demo
            flask seed-demo --password s3cret123
        """
        from lovevibes.models.user import User
        from lovevibes.services.auth_service import issue_token

        demo_users = [
            ("ava@lovevibes.local", "Ava"),
            ("noah@lovevibes.local", "Noah"),
        ]

        click.echo("")
        click.echo("=" * 60)
        for email, name in demo_users:
            user = User.query.filter_by(email=email).first()
            if user:
                click.echo(f"  Exists:  {email} (id: {user.id})")
            else:
                user = User(
                    email=email,
                    password_hash=generate_password_hash(password),
                    name=name,
                )
                db.session.add(user)
                db.session.commit()
                click.echo(f"  Created: {email} / {password} (id: {user.id})")
            click.echo(f"  Token:   {issue_token(user)}")
        click.echo("=" * 60)

    @app.cli.command("grant-credits")
    @click.option("--email", required=True, help="User to credit")
    @click.option("--credits", type=click.IntRange(min=1), required=True)
    def grant_credits_command(email, credits):
        """Manually grant credits (support refunds, promos).

        Appends an admin_grant Transaction alongside the balance change.
        """
        from lovevibes.models.user import User
        from lovevibes.services.billing_service import grant_credits, log_billing_audit

        user = User.query.filter_by(email=email.lower().strip()).first()
        if not user:
            click.echo(f"ERROR: no user with email {email}")
            return

        transaction = grant_credits(db.session, user.id, credits, tx_type="admin_grant")
        log_billing_audit(db.session, user.id, "credits.granted", {
            "credits": credits,
            "transaction_id": transaction.id,
            "source": "cli",
        })
        db.session.commit()
        click.echo(f"Granted {credits} credits to {email}. Balance: {user.credits_balance}")
