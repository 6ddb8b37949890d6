"""Schema inspection command."""

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from crudmind.config.loader import load_config
from crudmind.schema.discovery import discover_sqlite_schema

console = Console()


def schema_command(config_path: str | None = None) -> None:
    """Print the discovered schema as one table per database table.

    Args:
        config_path: Optional path to config file
    """
    path = Path(config_path) if config_path else None
    try:
        config = load_config(path)
        schema = discover_sqlite_schema(
            config.database.path,
            tables=config.database.tables or None,
            read_only_tables=config.database.read_only_tables,
        )
    except Exception as e:
        console.print(f"[red]Failed to load schema: {e}[/red]")
        return

    if not schema.tables:
        console.print(f"[yellow]No tables found in {config.database.path}[/yellow]")
        return

    for db_table in schema.tables:
        actions = ", ".join(action.value for action in db_table.allowed_actions)
        table = Table(title=escape(f"{db_table.name} [{actions}]"), show_header=True, header_style="bold cyan")
        table.add_column("Column", style="cyan")
        table.add_column("Type")
        table.add_column("Flags", style="dim")

        for column in db_table.columns:
            flags = []
            if column.is_primary:
                flags.append("PK")
            if column.nullable:
                flags.append("nullable")
            if column.max_length:
                flags.append(f"max {column.max_length}")
            table.add_row(column.name, column.type.value, ", ".join(flags))

        console.print(table)

        for relation in db_table.relations:
            console.print(
                f"  [dim]{relation.type.value} {relation.related_table} via {relation.foreign_key}[/dim]"
            )
