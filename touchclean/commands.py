import click
from flask import current_app
from flask.cli import with_appcontext

from touchclean.errors import AppError
from touchclean.extensions import db
from touchclean.permissions import ADMIN_LEVELS
from touchclean.services import AuthService


@click.command("init-db")
@click.option("--drop", is_flag=True, help="Drop every table before creating the schema.")
@with_appcontext
def init_db_command(drop):
    """Create the database schema."""
    if drop:
        click.confirm("This deletes all data. Continue?", abort=True)
        db.drop_all()
        current_app.logger.warning("All tables dropped.")
    db.create_all()
    click.echo("Database schema ready.")


@click.command("create-user")
@click.option("--role", type=click.Choice(["customer", "staff", "admin"]), default="admin", show_default=True)
@click.option("--admin-level", type=click.Choice(sorted(ADMIN_LEVELS)), default="super", show_default=True)
@click.option("--name", "full_name", prompt="Full name")
@click.option("--email", prompt="Email")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_user_command(role, admin_level, full_name, email, password):
    """Create an account without an acting admin, e.g. the first super admin."""
    try:
        user = AuthService.bootstrap_user(role, full_name, email, password, admin_level=admin_level)
    except AppError as exc:
        raise click.ClickException(exc.message) from exc
    click.echo(f"Created {user.role} {user.email} (id={user.id}).")


def register_commands(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_user_command)
