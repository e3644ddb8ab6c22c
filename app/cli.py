"""Define the CLI commands for the app."""

import click
from flask import current_app
from flask.cli import with_appcontext
from sqlalchemy.exc import SQLAlchemyError

from app.database import db
from leadmagnet.signature import compute_signature


@click.command("init-db")
@with_appcontext
def init_db_command():
    """Create the database tables that do not exist yet."""
    try:
        db.create_all()
        click.echo("Created database tables.")
    except SQLAlchemyError as e:
        raise click.ClickException(f"Error creating tables: {e}") from e

    click.echo("Initialized the database.")


@click.command("sign-webhook")
@click.argument("payload", type=click.File("rb"))
@click.option("--secret", help="Webhook secret, defaults to RAZORPAY_WEBHOOK_SECRET.")
@with_appcontext
def sign_webhook_command(payload, secret):
    """Print the X-Razorpay-Signature value for a webhook payload file.

    Use it to replay a webhook by hand, e.g.

        curl -X POST -H "X-Razorpay-Signature: $(flask sign-webhook event.json)" \\
            --data-binary @event.json http://localhost:5000/api/v1/payments/webhook
    """
    secret = secret or current_app.config.get("RAZORPAY_WEBHOOK_SECRET")
    if not secret:
        raise click.ClickException("No secret given and RAZORPAY_WEBHOOK_SECRET is not set")
    click.echo(compute_signature(payload.read(), secret))
