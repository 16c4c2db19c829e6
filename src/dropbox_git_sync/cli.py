"""Command-line interface for the Dropbox/Git sync application."""

import logging
import sys
from pathlib import Path

import click
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from .auth.dropbox_auth import DropboxAuth
from .config.settings import CredentialsConfig, SyncConfig, SyncDirection
from .sources.dropbox_client import DropboxClient
from .sync.sync_manager import SyncManager
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

console = Console()

DIRECTION_CHOICES = ['forward', 'reverse', 'dbx-to-git', 'git-to-dbx']

@click.group()
@click.version_option(version="1.0.0")
def cli():
    """Dropbox/Git Sync Tool

    Mirrors Dropbox directories onto Git branches (forward) and uploads
    branch changes back to Dropbox (reverse), one incremental batch per run.
    """
    pass

@cli.command()
@click.option('--config', '-c',
              type=click.Path(path_type=Path),
              default=Path('config/config.yaml'),
              help='Path to configuration file')
@click.option('--credentials',
              type=click.Path(path_type=Path),
              default=Path('config/credentials.yaml'),
              help='Path to credentials file (falls back to environment variables)')
@click.option('--direction', '-d',
              type=click.Choice(DIRECTION_CHOICES, case_sensitive=False),
              help='Sync direction (default: direction from the configuration file)')
def sync(config: Path, credentials: Path, direction: str):
    """Run one sync pass."""
    try:
        sync_config = SyncConfig.from_yaml(config)
        creds_config = CredentialsConfig.from_yaml(credentials)

        setup_logging(sync_config.logging)
        logger.info(f"Configuration loaded from {config}")

        sync_direction = SyncDirection.from_argument(direction) if direction else None
        manager = SyncManager(sync_config, creds_config)
        results = manager.run(sync_direction)

        _display_sync_results(results, manager)

    except Exception as e:
        logger.error(f"Sync failed: {e}", exc_info=True)
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)

def _display_sync_results(results, manager):
    """Display sync results in a table."""
    table = Table(title="Sync Results")
    table.add_column("Group / Branch", style="cyan")
    table.add_column("Status", style="magenta")
    table.add_column("Downloaded", justify="right", style="green")
    table.add_column("Deleted", justify="right", style="yellow")
    table.add_column("Uploaded", justify="right", style="green")
    table.add_column("Filtered", justify="right")
    table.add_column("Duration", justify="right")

    for result in results:
        status_style = "green" if result['status'] == 'completed' else "yellow"
        table.add_row(
            result['name'],
            f"[{status_style}]{result['status']}[/{status_style}]",
            str(result.get('files_downloaded', 0)),
            str(result.get('files_deleted', 0)),
            str(result.get('files_uploaded', 0)),
            str(result.get('files_filtered', 0)),
            f"{result.get('duration', 0):.1f}s"
        )

    console.print(table)

    summary = manager.get_sync_summary(results)
    rprint(f"\n📊 [bold]Summary:[/bold]")
    rprint(f"   • Processed: {summary['total']}")
    rprint(f"   • With changes: [green]{summary['completed']}[/green]")
    rprint(f"   • Unchanged: [yellow]{summary['skipped']}[/yellow]")
    rprint(f"   • Files downloaded: {summary['files_downloaded']}")
    rprint(f"   • Files deleted: {summary['files_deleted']}")
    rprint(f"   • Files uploaded: {summary['files_uploaded']}")

@cli.command()
@click.option('--config', '-c',
              type=click.Path(path_type=Path),
              default=Path('config/config.yaml'),
              help='Path to configuration file')
def status(config: Path):
    """Show configured directories and their cursor state."""
    try:
        sync_config = SyncConfig.from_yaml(config)
        manager = SyncManager(sync_config)

        console.print("📁 [bold]Repository:[/bold]")
        rprint(f"   • Remote: {sync_config.github.remote_url}")
        rprint(f"   • Local clone: {sync_config.sync.local_repo_path}")
        rprint(f"   • Reverse sync subtree: '{sync_config.sync.sync_target_dir}'")
        rprint(f"   • Extensions: {', '.join(sync_config.sync.target_file_extensions)}")

        table = Table(title="Cursors")
        table.add_column("Directory", style="cyan")
        table.add_column("Cursor")
        table.add_column("Pending", style="yellow")

        for item in manager.get_cursor_status():
            cursor_text = "✅ Saved" if item['has_cursor'] else "None (full listing next run)"
            pending_text = "⚠️ Interrupted run" if item['pending'] else ""
            table.add_row(item['group'], cursor_text, pending_text)

        console.print(table)

    except Exception as e:
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)

@cli.command()
@click.option('--config', '-c',
              type=click.Path(path_type=Path),
              default=Path('config/config.yaml'),
              help='Path to configuration file')
@click.option('--credentials',
              type=click.Path(path_type=Path),
              default=Path('config/credentials.yaml'),
              help='Path to credentials file')
def test(config: Path, credentials: Path):
    """Test the Dropbox connection."""
    try:
        sync_config = SyncConfig.from_yaml(config)
        creds_config = CredentialsConfig.from_yaml(credentials)

        auth = DropboxAuth.from_credentials(creds_config, timeout=sync_config.dropbox.timeout)
        client = DropboxClient(auth, timeout=sync_config.dropbox.timeout)

        console.print("🔍 Testing Dropbox connection...\n")
        if client.test_connection():
            console.print("🎉 Dropbox connection successful!", style="green bold")
        else:
            console.print("⚠️ Dropbox connection failed. Check your credentials.", style="yellow bold")
            sys.exit(1)

    except Exception as e:
        console.print(f"❌ Error: {e}", style="red bold")
        sys.exit(1)

@cli.command()
@click.option('--config', '-c',
              type=click.Path(path_type=Path),
              default=Path('config/config.yaml'),
              help='Path to save configuration file')
def init(config: Path):
    """Initialize a new configuration file."""
    if config.exists():
        if not click.confirm(f"Configuration file {config} already exists. Overwrite?"):
            return

    console.print("🚀 Creating new configuration file...")

    sample_config = {
        'github': {
            'remote_url': 'https://github.com/your-user/your-repo.git'
        },
        'sync': {
            'local_repo_path': 'work/repo',
            'cursor_dir': 'work/cursors',
            'target_file_extensions': ['.md', '.txt'],
            'target_directories': ['/notes'],
            'sync_target_dir': 'review',
            'main_branch': 'main'
        },
        'direction': 'forward'
    }

    SyncConfig(**sample_config).to_yaml(config)

    console.print(f"✅ Configuration saved to {config}", style="green")
    console.print("\n📝 Next steps:")
    console.print("1. Edit the configuration file to match your setup")
    console.print("2. Create credentials.yaml with your Dropbox and GitHub tokens")
    console.print("3. Run 'dropbox-git-sync test' to verify the Dropbox connection")
    console.print("4. Run 'dropbox-git-sync sync --direction forward' to start syncing")

if __name__ == '__main__':
    cli()
