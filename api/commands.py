"""
Flask CLI commands:
- flask --app api make-admin <email>   promote a user to ADMIN
- flask --app api cleanup-tokens       delete expired / long-revoked refresh tokens

cleanup-tokens is meant to run from cron or a scheduler, not on the request path.
"""
import click

from models import storage
from models.user import ROLE_ADMIN, User
from utils.ledger import cleanup_expired_tokens


def register_commands(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote the user with EMAIL to ADMIN."""
        session = storage.get_session()
        user = session.query(User).filter(User.email == email.strip().lower()).first()
        if user is None:
            raise click.ClickException(f"No user with email {email}")
        user.role = ROLE_ADMIN
        user.save()
        click.echo(f"User updated to admin: {user.email} ({user.id})")

    @app.cli.command("cleanup-tokens")
    def cleanup_tokens():
        """Delete expired refresh tokens and revoked ones past retention."""
        deleted = cleanup_expired_tokens()
        click.echo(f"Deleted {deleted} refresh token(s)")
