#!/usr/bin/env python3

import asyncio
import functools
import json
import sys

import click

from commitlog.api import CommitLog
from commitlog.config import (
    load_config,
    save_config,
    get_config_path,
    get_default_config,
    configure_logging,
    logger,
)
from commitlog.exit_codes import CommandError, ConfigError, get_exit_code_for_exception, INTERRUPTED
from commitlog.output import emit, emit_error
from commitlog.services import packages_for_paths

pretty_option = click.option('--pretty', '-p', is_flag=True,
                             help='Human-readable table output (default: JSONL)')


def handle_errors(func):
    """Report CommandErrors on stderr and exit with their code."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        pretty = kwargs.get('pretty', False)
        try:
            return func(*args, **kwargs)
        except CommandError as e:
            if pretty:
                click.echo(f"Error: {e}", err=True)
            else:
                error_type = 'config_error' if isinstance(e, ConfigError) else 'git_error'
                emit_error(str(e), type=error_type)
            sys.exit(e.exit_code)
        except KeyboardInterrupt:
            click.echo("\nInterrupted", err=True)
            sys.exit(INTERRUPTED)
    return wrapper


def _open(ctx: click.Context, fetch=None) -> CommitLog:
    """CommitLog for the repository selected with --repo."""
    obj = ctx.find_root().obj
    return CommitLog(obj['repo'], config=obj['config'], fetch=fetch)


@click.group()
@click.version_option(package_name='commitlog')
@click.option('--repo', '-C', 'repo', default='.', show_default=True,
              type=click.Path(file_okay=False),
              help='Path inside the repository to query')
@click.option('--verbose', '-v', is_flag=True, help='Log git invocations')
@click.pass_context
def cli(ctx, repo, verbose):
    """commitlog - Commit history extraction for changelog generation.

    Lists tags, commit ranges (with duplicate suppression against
    backport branches) and the files touched by commits, as JSONL
    for a changelog renderer or as tables with --pretty.
    """
    config = load_config()
    configure_logging(config, verbose=verbose)
    ctx.obj = {'repo': repo, 'config': config}


@cli.command('tags')
@pretty_option
@click.pass_context
@handle_errors
def tags_cmd(ctx, pretty):
    """List every tag in the repository."""
    log = _open(ctx)
    emit(({'tag': name} for name in log.list_tag_names()), pretty=pretty)


@cli.command('last-tag')
@pretty_option
@click.pass_context
@handle_errors
def last_tag_cmd(ctx, pretty):
    """Show the nearest tag reachable from HEAD."""
    log = _open(ctx)
    tag = log.last_tag()
    if pretty:
        click.echo(tag)
    else:
        emit([{'tag': tag}])


@cli.command('commits')
@click.argument('from_ref')
@click.argument('to_ref', default='', required=False)
@click.option('--dedupe-branch', '-d', 'branches', multiple=True,
              help='Hide commits whose summary also appears only on this branch (repeatable)')
@click.option('--no-fetch', is_flag=True, help='Do not fetch from the remote first')
@click.option('--with-paths', is_flag=True, help='Resolve changed paths for each commit')
@click.option('--packages', is_flag=True,
              help='With --with-paths, attribute commits to packages/<name> sub-projects')
@pretty_option
@click.pass_context
@handle_errors
def commits_cmd(ctx, from_ref, to_ref, branches, no_fetch, with_paths, packages, pretty):
    """List commits in FROM_REF..TO_REF, newest first.

    TO_REF defaults to the current position.

    \b
    Examples:
      commitlog commits v1.0.0 v1.1.0
      commitlog commits v1.0.0 -d release-1.x --pretty
      commitlog commits v1.0.0 HEAD --with-paths --packages
    """
    log = _open(ctx, fetch=False if no_fetch else None)
    commits = log.list_commits(from_ref, to_ref, branches)

    if not with_paths:
        emit(commits, pretty=pretty)
        return

    paths_by_sha = asyncio.run(log.changed_paths_many(c.sha for c in commits))
    ignored = log.project_config().ignore_file_path if packages else []

    rows = []
    for commit in commits:
        row = commit.to_dict()
        row['paths'] = paths_by_sha[commit.sha]
        if packages:
            row['packages'] = packages_for_paths(row['paths'], ignore_file_path=ignored)
        rows.append(row)
    emit(rows, pretty=pretty)


@cli.command('changed-paths')
@click.argument('shas', nargs=-1, required=True)
@click.option('--packages', is_flag=True, help='Also list the packages/<name> sub-projects touched')
@pretty_option
@click.pass_context
@handle_errors
def changed_paths_cmd(ctx, shas, packages, pretty):
    """Show the files modified by each SHA.

    Several commits are resolved concurrently.
    """
    log = _open(ctx)
    paths_by_sha = asyncio.run(log.changed_paths_many(shas))
    ignored = log.project_config().ignore_file_path if packages else []

    rows = []
    for sha, paths in paths_by_sha.items():
        row = {'sha': sha, 'paths': paths}
        if packages:
            row['packages'] = packages_for_paths(paths, ignore_file_path=ignored)
        rows.append(row)
    emit(rows, pretty=pretty)


@cli.group('config')
def config_cmd():
    """Show or create configuration."""
    pass


@config_cmd.command('show')
@click.pass_context
def config_show(ctx):
    """Print the effective runtime configuration as JSON."""
    config = ctx.find_root().obj['config']
    click.echo(json.dumps(config, indent=2))


@config_cmd.command('init')
@click.option('--force', is_flag=True, help='Overwrite an existing file')
def config_init(force):
    """Write the default configuration file."""
    path = get_config_path()
    if path.exists() and not force:
        click.echo(f"Configuration already exists at {path} (use --force to overwrite)", err=True)
        sys.exit(1)
    saved = save_config(get_default_config(), path)
    click.echo(str(saved))


@config_cmd.command('project')
@click.option('--next-version-from-metadata', is_flag=True,
              help='Infer the next version from package.json / lerna.json')
@click.pass_context
@handle_errors
def config_project(ctx, next_version_from_metadata):
    """Show the changelog settings of the repository."""
    log = _open(ctx)
    click.echo(json.dumps(log.project_config(next_version_from_metadata).to_dict(), indent=2))


def main():
    try:
        cli()
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        sys.exit(get_exit_code_for_exception(e))


if __name__ == "__main__":
    main()
