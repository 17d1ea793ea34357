#!/usr/bin/env python3
# SPDX-License-Identifier: BSD-3-Clause
# Copyright (c) 2025-2026 @yosagi
"""ccreplay - Claude Code session history replay tool

Rebuild a session's chat history from its JSONL logs and print it as
render-ready JSON or a Markdown transcript.
"""

import json
import sys
import time
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import Config, ConfigError
from .extractor import MessageExtractor
from .locator import encode_project_path
from .md_formatter import format_as_markdown
from .pipeline import prepare_messages_for_client
from .tools import ADAPTER_CATEGORIES


def _load_config(config_file: Optional[str], verbose: bool = False,
                 adapter: Optional[str] = None) -> Config:
    try:
        return Config(config_file=config_file, verbose=verbose, adapter=adapter)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _write_output(content: str, output: Optional[str]):
    if not output:
        click.echo(content)
        return
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(content)
    click.echo(f"Export completed: {output_path}", err=True)


@click.group()
@click.version_option(__version__, prog_name='ccreplay')
def cli():
    """Claude Code session history replay tool"""
    pass


@cli.command()
@click.option('--session', '-s', required=True, help='Session ID (UUID format)')
@click.option('--project', '-p', 'project_path', required=True, help='Project filesystem path')
@click.option('--format', '-f', 'output_format', default='json',
              type=click.Choice(['json', 'md']), help='Output format')
@click.option('--output', '-o', type=click.Path(), default=None, help='Output file path (stdout if omitted)')
@click.option('--raw', is_flag=True, help='Print chat messages before grouping')
@click.option('--adapter', type=click.Choice(sorted(ADAPTER_CATEGORIES)), default=None,
              help='Adapter whose tool categories apply')
@click.option('--verbose', '-v', is_flag=True, help='Verbose logging')
@click.option('--config-file', type=click.Path(exists=True), help='Config file path')
def history(session: str, project_path: str, output_format: str, output: Optional[str],
            raw: bool, adapter: Optional[str], verbose: bool, config_file: Optional[str]):
    """Replay a session's history"""

    def debug(msg: str):
        if verbose:
            click.echo(f"[DEBUG] {msg}", err=True)

    total_start = time.time()
    config = _load_config(config_file, verbose=verbose, adapter=adapter)
    extractor = MessageExtractor(config.projects_dir, config)

    t0 = time.time()
    try:
        messages = extractor.load_history(session, project_path)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    debug(f"History loaded: {time.time() - t0:.3f}s ({len(messages)} messages)")

    if not messages:
        click.echo(f"Warning: No history for session '{session}'", err=True)
        sys.exit(1)

    if raw:
        if output_format == 'md':
            click.echo("Error: --raw only supports JSON output", err=True)
            sys.exit(1)
        content = json.dumps([m.to_dict() for m in messages], ensure_ascii=False, indent=2)
        _write_output(content, output)
        return

    t0 = time.time()
    render_messages = prepare_messages_for_client(messages, adapter_id=config.adapter)
    debug(f"Grouping: {time.time() - t0:.3f}s ({len(render_messages)} render messages)")

    if output_format == 'md':
        content = format_as_markdown(render_messages, Path(project_path).name or project_path)
    else:
        content = json.dumps([m.to_dict() for m in render_messages], ensure_ascii=False, indent=2)
    _write_output(content, output)
    debug(f"Total: {time.time() - total_start:.3f}s")


@cli.command()
@click.option('--session', '-s', required=True, help='Session ID (UUID format)')
@click.option('--project', '-p', 'project_path', required=True, help='Project filesystem path')
@click.option('--json', 'as_json', is_flag=True, help='Output in JSON format')
@click.option('--config-file', type=click.Path(exists=True), help='Config file path')
def files(session: str, project_path: str, as_json: bool, config_file: Optional[str]):
    """List a session's log files (primary first, then continuations)"""
    config = _load_config(config_file)
    extractor = MessageExtractor(config.projects_dir, config)
    try:
        session_files = extractor.session_files(session, project_path)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([str(p) for p in session_files], ensure_ascii=False, indent=2))
        return
    if not session_files:
        click.echo(f"No log files found: {session}")
        return
    click.echo(f"Log files ({len(session_files)}):")
    for path in session_files:
        click.echo(f"  {path}")


@cli.command()
@click.option('--session', '-s', required=True, help='Session ID (UUID format)')
@click.option('--project', '-p', 'project_path', required=True, help='Project filesystem path')
@click.option('--json', 'as_json', is_flag=True, help='Output in JSON format')
@click.option('--config-file', type=click.Path(exists=True), help='Config file path')
def plans(session: str, project_path: str, as_json: bool, config_file: Optional[str]):
    """List plan files approved during a session"""
    config = _load_config(config_file)
    plan_files = MessageExtractor(config.projects_dir, config).extract_plan_file_paths(session, project_path)

    if as_json:
        click.echo(json.dumps(plan_files, ensure_ascii=False, indent=2))
        return
    if not plan_files:
        click.echo("No plan files found")
        return
    click.echo(f"Plan files ({len(plan_files)}):")
    for path in plan_files:
        click.echo(f"  {path}")


@cli.command()
@click.option('--session', '-s', required=True, help='Session ID (UUID format)')
@click.option('--project', '-p', 'project_path', required=True, help='Project filesystem path')
@click.option('--json', 'as_json', is_flag=True, help='Output in JSON format')
@click.option('--config-file', type=click.Path(exists=True), help='Config file path')
def skills(session: str, project_path: str, as_json: bool, config_file: Optional[str]):
    """List skill files injected into a session"""
    config = _load_config(config_file)
    skill_files = MessageExtractor(config.projects_dir, config).extract_skill_file_paths(session, project_path)

    if as_json:
        click.echo(json.dumps([s.to_dict() for s in skill_files], ensure_ascii=False, indent=2))
        return
    if not skill_files:
        click.echo("No skill files found")
        return
    click.echo(f"Skill files ({len(skill_files)}):")
    for skill in skill_files:
        click.echo(f"  {skill.display_name}  {skill.path}")


@cli.command()
@click.argument('project_path')
def encode(project_path: str):
    """Print the log directory name of a project path"""
    click.echo(encode_project_path(project_path))


if __name__ == '__main__':
    cli()
