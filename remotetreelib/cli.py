"""Command line front end: print a repository snapshot.

    remotetree OWNER NAME COMMIT_ISH [PATH] [--format paths|json|tree]

Exits 0 when the snapshot is complete and 1 when some paths failed.
"""

import json
import logging
import sys

import click

from .api import traverse_repository
from .aio.core.paths import format_path
from .config import DEFAULT_ENDPOINT, ClientConfig, RetryConfig, TraversalConfig


def _print_result(result, output_format: str) -> None:
    snapshot = result.snapshot
    if output_format == 'json':
        click.echo(json.dumps({
            'files': snapshot.as_dict(),
            'failures': {path: str(error) for path, error in result.failure_dict().items()},
            'completed': result.completed,
        }, indent=2))
    elif output_format == 'tree':
        click.echo(json.dumps(snapshot.to_tree(), indent=2))
    else:
        for path, text in snapshot.items():
            click.echo(f"{format_path(path) or '.'}\t{len(text)}")

    for path, error in result.failures:
        click.echo(f"error: {format_path(path) or '.'}: {error}", err=True)


@click.command()
@click.argument('owner')
@click.argument('name')
@click.argument('commit_ish')
@click.argument('path', required=False, default='')
@click.option('--endpoint', default=None,
              help=f'GraphQL endpoint (env: REMOTETREE_ENDPOINT, default: {DEFAULT_ENDPOINT})')
@click.option('--token', default=None,
              help='API token (env: REMOTETREE_GITHUB_TOKEN, then GITHUB_TOKEN)')
@click.option('--concurrency', '-j', type=click.IntRange(min=1), default=8, show_default=True,
              help='Maximum resolutions in flight')
@click.option('--max-attempts', type=click.IntRange(min=1), default=5, show_default=True,
              help='Attempts per object for rate-limited or transient failures')
@click.option('--format', 'output_format', type=click.Choice(['paths', 'json', 'tree']),
              default='paths', show_default=True, help='Output format')
@click.option('--verbose', '-v', count=True, help='Increase log verbosity (-v, -vv)')
@click.version_option(package_name='remotetreelib')
def main(owner, name, commit_ish, path, endpoint, token, concurrency, max_attempts,
         output_format, verbose):
    """Snapshot the tree of OWNER/NAME at COMMIT_ISH, optionally below PATH."""
    level = logging.WARNING - 10 * min(verbose, 2)
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s')

    result = traverse_repository(
        owner,
        name,
        commit_ish,
        path=path,
        config=TraversalConfig(
            concurrency_limit=concurrency,
            retry=RetryConfig(max_attempts=max_attempts),
        ),
        client_config=ClientConfig.from_env(endpoint=endpoint, token=token),
    )
    _print_result(result, output_format)
    sys.exit(0 if result.completed else 1)


if __name__ == '__main__':
    main()
