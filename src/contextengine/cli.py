"""Context Engine CLI - token-budgeted context packs for AI coding agents."""

import typer

app = typer.Typer(
    name="ce",
    help="Context Engine - work packets, semantic anchors and token-budgeted context packs for AI coding agents",
    no_args_is_help=True,
)


@app.callback()
def main(ctx: typer.Context) -> None:
    """Context Engine - curated context for AI coding agents."""
    from .config import load_env
    from .logging import log_from_cli

    load_env()
    try:
        log_from_cli()
    except OSError:
        # Don't let logging failures break the CLI
        pass


# Import and register command modules
from .commands import init as init_cmd
from .commands import switch as switch_cmd
from .commands import packet as packet_cmd
from .commands import anchor as anchor_cmd
from .commands import assemble as assemble_cmd
from .commands import journal as journal_cmd
from .commands import index as index_cmd
from .commands import query as query_cmd
from .commands import health as health_cmd
from .commands import logs as logs_cmd

# Register single commands at top level
app.command(name="init")(init_cmd.init)
app.command(name="switch")(switch_cmd.switch)
app.command(name="assemble")(assemble_cmd.assemble)
app.command(name="index")(index_cmd.index)
app.command(name="query")(query_cmd.query)
app.command(name="health")(health_cmd.health)

# Register command groups
app.add_typer(packet_cmd.app, name="packet", help="Manage work packets")
app.add_typer(anchor_cmd.app, name="anchor", help="Create and check semantic anchors")
app.add_typer(journal_cmd.app, name="journal", help="Record and list journal entries")
app.add_typer(logs_cmd.app, name="logs")


if __name__ == "__main__":
    app()
