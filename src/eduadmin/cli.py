from __future__ import annotations

import logging
from typing import Optional

import typer

from eduadmin import __version__
from eduadmin.access.menu_tree import menu_icon
from eduadmin.access.workspace import RoleWorkspace
from eduadmin.config import get_settings
from eduadmin.context import institution_id_var
from eduadmin.exceptions.handlers import AdminException
from eduadmin.integrations.admin_api import AdminApiClient

app = typer.Typer(add_completion=False, help="Institution admin role tools")


@app.callback()
def _root(
    institution: Optional[int] = typer.Option(
        None, "--institution", help="Institution id sent with every request"
    ),
) -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    if institution is not None:
        institution_id_var.set(institution)


def _workspace() -> RoleWorkspace:
    workspace = RoleWorkspace(AdminApiClient())
    try:
        workspace.refresh()
    except AdminException as exc:
        typer.echo(f"Error: {exc.user_message}", err=True)
        raise typer.Exit(code=1)
    return workspace


@app.command()
def version() -> None:
    typer.echo(__version__)


@app.command()
def roles(
    search: str = typer.Option("", "--search", "-s", help="Filter by name or description"),
) -> None:
    """
    List roles grouped into custom and system roles.
    """
    workspace = _workspace()
    workspace.directory.search(search)
    for group in workspace.directory.groups():
        typer.echo(f"{group.label} ({len(group.roles)})")
        for role in group.roles:
            line = f"  {role.id:>5}  {role.name}"
            if role.description:
                line += f"  - {role.description}"
            typer.echo(line)


@app.command("role-tree")
def role_tree(role_id: int = typer.Argument(..., help="Role id")) -> None:
    """
    Show a role's menu permissions as a tri-state tree and its data scopes.
    """
    workspace = _workspace()
    if not workspace.directory.contains(role_id):
        typer.echo(f"Role {role_id} not found", err=True)
        raise typer.Exit(code=1)
    workspace.select_role(role_id)

    role = workspace.session.role
    suffix = " [system]" if role.is_system else ""
    typer.echo(f"{role.name}{suffix}")
    typer.echo("Menus:")
    for row in workspace.menu_rows():
        indent = "  " * (row.level + 1)
        typer.echo(f"{indent}{row.state.symbol} {menu_icon(row.node.icon)} {row.node.name}")

    typer.echo("Data scopes:")
    for group in workspace.scope_groups():
        selected = group.selected(workspace.session.data_scope_selection)
        scope = selected.scope_type.value if selected else "none"
        typer.echo(f"  {group.label}: {scope}")


if __name__ == "__main__":
    app()
