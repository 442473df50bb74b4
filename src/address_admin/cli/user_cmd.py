"""User management CLI commands."""

import asyncio

import typer

user_app = typer.Typer()


@user_app.command("create")
def create_user(
    username: str = typer.Option(..., prompt=True, help="Username"),
    email: str = typer.Option(..., prompt=True, help="Email address"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True, help="Password"),
    role: str = typer.Option("user", prompt=True, help="User role (admin/user)"),
    if_not_exists: bool = typer.Option(
        False,
        "--if-not-exists",
        help="Exit successfully if user already exists (idempotent mode)",
    ),
) -> None:
    """Create a new user interactively."""
    asyncio.run(_create_user(username, email, password, role, if_not_exists=if_not_exists))


async def _create_user(
    username: str,
    email: str,
    password: str,
    role: str,
    *,
    if_not_exists: bool = False,
) -> None:
    """Async implementation of user creation."""
    from pydantic import ValidationError

    from address_admin.core.config import get_settings
    from address_admin.core.database import session_scope
    from address_admin.schemas.auth import UserCreateRequest
    from address_admin.services.auth_service import create_user

    try:
        request = UserCreateRequest(username=username, email=email, password=password, role=role)
    except ValidationError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e

    settings = get_settings()
    async with session_scope(settings.database_url, schema=settings.database_schema) as session:
        try:
            user = await create_user(session, request)
        except ValueError as e:
            if if_not_exists and "already exists" in str(e):
                typer.echo(f"User '{username}' already exists, skipping (--if-not-exists)")
                return
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(code=1) from e
    typer.echo(f"User '{user.username}' created with role '{user.role}'")


@user_app.command("list")
def list_users() -> None:
    """List all users."""
    asyncio.run(_list_users())


async def _list_users() -> None:
    """Async implementation of user listing."""
    from address_admin.core.config import get_settings
    from address_admin.core.database import session_scope
    from address_admin.services.auth_service import list_users

    settings = get_settings()
    async with session_scope(settings.database_url, schema=settings.database_schema) as session:
        users, total = await list_users(session, page_size=1000)
    typer.echo(f"{'Username':<20} {'Email':<30} {'Role':<10} {'Active':<8}")
    typer.echo("-" * 68)
    for user in users:
        typer.echo(f"{user.username:<20} {user.email:<30} {user.role:<10} {user.is_active!s:<8}")
    typer.echo(f"\nTotal: {total}")
