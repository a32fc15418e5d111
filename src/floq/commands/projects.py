"""``floq projects`` -- list projects to record hours on."""

from __future__ import annotations

import datetime as dt

import typer

from floq.output import print_table


def projects_command(
    show_all: bool = typer.Option(
        False, "--all", "-a", help="Show every project, not only the ones you used lately."
    ),
) -> None:
    """List the projects you recorded hours on in the last two weeks.

    With ``--all``, list every project instead.
    """
    from floq.client import FloqClient
    from floq.commands import resolve_user

    user, settings = resolve_user()
    with FloqClient.from_user(user, settings) as client:
        if show_all:
            projects = client.get_projects()
        else:
            projects = client.get_timestamped_projects_for_employee(dt.date.today())

    projects.sort(key=lambda p: p.id)
    print_table(
        ["ID", "CUSTOMER", "DESCRIPTION"],
        [[p.id, p.customer.name, p.name] for p in projects],
    )
