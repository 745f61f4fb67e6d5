"""Rich terminal rendering for session state."""

from typing import Optional

from rich.console import Console
from rich.table import Table

from shared.models import UserRecord
from modules.auth.models import SessionSnapshot

console = Console()

PROFILE_FIELDS = (
    ("ID", "id"),
    ("Name", "name"),
    ("Email", "email"),
    ("Phone", "phone"),
    ("Address", "address"),
    ("City", "city"),
    ("State", "state"),
    ("Zipcode", "zipcode"),
)


def format_role(user: Optional[UserRecord]) -> str:
    """Role label for display; unknown roles are shown as such."""
    if user is None:
        return "Not logged in"
    if user.role is None:
        return "[yellow]unrecognised[/yellow]"
    return user.role.value.title()


def user_table(user: UserRecord) -> Table:
    """Two-column table of an account's profile."""
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column(style="bold green")
    table.add_column()
    for label, attr in PROFILE_FIELDS:
        value = getattr(user, attr)
        table.add_row(label, str(value) if value not in (None, "") else "[dim]-[/dim]")
    table.add_row("Role", format_role(user))
    if user.is_approved is not None:
        table.add_row("Approved", "yes" if user.is_approved else "pending")
    if user.created_at is not None:
        table.add_row("Member since", user.created_at.strftime("%Y-%m-%d"))
    return table


def show_session(snapshot: SessionSnapshot) -> None:
    """Print the current session summary."""
    if not snapshot.is_authenticated or snapshot.user is None:
        console.print("[dim]Not logged in.[/dim]")
        return
    console.print(f"[bold]Signed in[/bold] ({snapshot.status.value})")
    console.print(user_table(snapshot.user))


def show_error(message: Optional[str]) -> None:
    console.print(f"[bold red]Error:[/bold red] {message or 'Unknown error'}")


def show_success(message: str) -> None:
    console.print(f"[bold green]✓[/bold green] {message}")
