"""Main CLI entry point for vaultctl."""

from __future__ import annotations

import click

from vaultctl import __version__
from vaultctl.cli.common import Context, global_options, handle_errors
from vaultctl.cli.deposit import deposit
from vaultctl.core.output import OutputFormat, print_output, print_success

# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="vaultctl")
def cli() -> None:
    """vaultctl - Chunked, resumable uploads to a Vault preservation repository.

    Get started:

      export VAULT_URL=https://vault.example.org VAULT_USER=me VAULT_PASS=...

      vaultctl health ping                              # Check the server

      vaultctl deposit upload ./data -c /Org/Collection # Deposit files

    Use --help on any command for more information.
    """
    pass


cli.add_command(deposit)


# =============================================================================
# Top-Level Commands
# =============================================================================


@cli.group()
def health() -> None:
    """Server health and connectivity checks."""
    pass


@health.command("ping")
@global_options
@handle_errors
def health_ping(ctx: Context) -> None:
    """Check server connectivity, authentication and API version."""
    with ctx.get_client() as client:
        result = client.ping()

    if ctx.output_format == OutputFormat.JSON:
        print_output(result, format=OutputFormat.JSON)
        return

    print_success(f"Server reachable: {result['url']}")
    print_output(
        {
            "status": result["status"],
            "version": result["version"],
            "latency": f"{result['latency_ms']}ms",
        },
        format=OutputFormat.TABLE,
        quiet=ctx.quiet,
        id_field="status",
    )


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
