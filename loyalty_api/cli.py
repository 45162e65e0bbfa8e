"""
CLI entry point for the Course Loyalty API.
"""

import asyncio
from pathlib import Path
from typing import Optional

import structlog
import typer

from . import __version__
from .config import Settings
from .errors import LoyaltyError
from .keys import SuiKeypair
from .sui import LoyaltyClientConfig, SuiLoyaltyClient, mist_to_sui

# Configure structlog
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ]
)

app = typer.Typer(
    name="loyalty-cli",
    help="Course Loyalty badge service tools",
    add_completion=False,
)


def _load_settings(config_path: Optional[Path]) -> Settings:
    return Settings(_env_file=config_path) if config_path else Settings()


@app.command()
def serve() -> None:
    """
    Start the HTTP API server.
    """
    from .main import run

    run()


@app.command("generate-wallet")
def generate_wallet() -> None:
    """
    Generate a fresh Ed25519 keypair and print its address and private key.
    """
    keypair = SuiKeypair.generate()
    typer.echo(f"Address:     {keypair.to_sui_address()}")
    typer.echo(f"Private key: {keypair.export_private_key()}")


@app.command()
def address(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to .env configuration file",
    ),
) -> None:
    """
    Show the operating address derived from SUI_PRIVATE_KEY.
    """
    settings = _load_settings(config_path)
    if not settings.sui_private_key:
        typer.echo("Error: SUI_PRIVATE_KEY is required", err=True)
        raise typer.Exit(code=1)

    try:
        keypair = SuiKeypair.from_private_key(settings.sui_private_key)
    except LoyaltyError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(keypair.to_sui_address())


@app.command()
def balance(
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to .env configuration file",
    ),
) -> None:
    """
    Show the SUI balance of the operating address.
    """
    settings = _load_settings(config_path)

    async def fetch() -> tuple[str, str]:
        async with SuiLoyaltyClient(LoyaltyClientConfig.from_settings(settings)) as client:
            return client.get_address(), await client.get_balance()

    try:
        owner, raw = asyncio.run(fetch())
    except LoyaltyError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"Network: {settings.sui_network}")
    typer.echo(f"Address: {owner}")
    typer.echo(f"Balance: {mist_to_sui(raw)} SUI ({raw} MIST)")


@app.command()
def version() -> None:
    """Show the API version."""
    typer.echo(f"loyalty-api v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
