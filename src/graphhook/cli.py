"""
graphhook CLI - inspect root graphs from the command line

Specs are ``module:attribute`` import strings. A root spec that resolves to a
function is treated as a factory and called to build the root.
"""

import importlib
import json
import sys
import types
from pathlib import Path
from typing import Any, List, Optional

import click

from . import __version__
from .config import Config, HookConfig, configure_logging, load_config
from .core.locator import GraphLocator
from .core.object_model import (
    format_path,
    has_own,
    is_node,
    own_descriptor,
    read_key,
)

DEFAULT_ROOT_SPEC = "graphhook.demo:build_root"


def import_spec(spec: str) -> Any:
    """Resolve ``package.module:attr.sub`` to an object."""
    module_name, _, attribute = spec.partition(":")
    if not module_name:
        raise click.BadParameter(f"Invalid import spec: {spec!r}")
    try:
        value = importlib.import_module(module_name)
        for part in attribute.split(".") if attribute else []:
            value = getattr(value, part)
    except (ImportError, AttributeError) as e:
        raise click.ClickException(f"Cannot import {spec}: {e}")
    return value


def load_root(spec: str) -> Any:
    value = import_spec(spec)
    if isinstance(value, types.FunctionType):
        value = value()
    if not is_node(value):
        raise click.ClickException(f"{spec} does not resolve to a graph node")
    return value


def parse_path(root: Any, text: str) -> List[Any]:
    """Split ``a.b.0`` into keys, turning digits into list indexes."""
    keys: List[Any] = []
    node = root
    for part in filter(None, text.split(".")):
        key: Any = part
        if isinstance(node, (list, dict)) and part.isdigit() and not has_own(node, part):
            key = int(part)
        try:
            node = read_key(node, key)
        except Exception:
            raise click.ClickException(f"No key {part!r} at {format_path(keys) or '<root>'}")
        keys.append(key)
    return keys


def _root_spec(ctx: click.Context, root_spec: Optional[str]) -> str:
    config: HookConfig = ctx.obj["config"]
    return root_spec or config.root_spec or DEFAULT_ROOT_SPEC


@click.group()
@click.version_option(version=__version__, prog_name="graphhook")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def cli(ctx: click.Context, config: Optional[Path], verbose: bool, debug: bool):
    """graphhook - locate and intercept functions in shared object graphs"""
    # Ensure object exists for subcommands
    ctx.ensure_object(dict)

    # Load configuration
    hook_config = load_config(config) if config else Config.get_instance()
    if debug:
        hook_config.debug = True
    if verbose:
        hook_config.verbose = True
    ctx.obj["config"] = hook_config

    if hook_config.debug or hook_config.verbose:
        configure_logging(hook_config)


@cli.command()
@click.argument("target_spec")
@click.option("--root", "root_spec", default=None, help="Root graph spec (module:attr)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def locate(ctx: click.Context, target_spec: str, root_spec: Optional[str], output_json: bool):
    """Find where TARGET_SPEC lives in the root graph."""
    root_spec = _root_spec(ctx, root_spec)
    root = load_root(root_spec)
    target = import_spec(target_spec)
    if not callable(target):
        raise click.ClickException(f"{target_spec} is not callable")

    info = GraphLocator().locate(target, root)

    if output_json:
        payload = {"target": target_spec, "root": root_spec, "found": info is not None}
        if info is not None:
            payload.update(
                path=list(info.path),
                dotted_path=info.dotted_path,
                key=info.key,
                inherited=info.owner is not info.context,
            )
        click.echo(json.dumps(payload, indent=2, default=str))
    elif info is None:
        click.echo(f"{target_spec} is not reachable from {root_spec}")
    else:
        click.echo(f"{target_spec} found at {info.dotted_path}")
        click.echo(f"  key:     {info.key!s}")
        click.echo(f"  context: {info.context!r}")
        if info.owner is not info.context:
            click.echo(f"  owner:   {info.owner!r} (inherited)")

    if info is None:
        ctx.exit(1)


@cli.command()
@click.argument("path", default="")
@click.option("--root", "root_spec", default=None, help="Root graph spec (module:attr)")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.pass_context
def keys(ctx: click.Context, path: str, root_spec: Optional[str], output_json: bool):
    """List the keys reachable on the node at PATH (dotted)."""
    root = load_root(_root_spec(ctx, root_spec))
    node = root
    for key in parse_path(root, path):
        node = read_key(node, key)

    if not is_node(node):
        raise click.ClickException(f"{path or '<root>'} is a {type(node).__name__}, not a node")

    rows = []
    for key in GraphLocator.collect_keys(node):
        owner = GraphLocator.find_owner(node, key)
        descriptor = own_descriptor(owner, key)
        rows.append(
            {
                "key": key,
                "kind": descriptor.kind.value,
                "enumerable": descriptor.enumerable,
                "configurable": descriptor.configurable,
                "writable": descriptor.writable,
                "inherited": not has_own(node, key),
                "type": "accessor" if descriptor.is_accessor else type(descriptor.value).__name__,
            }
        )

    if output_json:
        click.echo(json.dumps(rows, indent=2, default=str))
        return

    for row in rows:
        flags = "".join(
            flag if row[name] else "-"
            for flag, name in (("e", "enumerable"), ("c", "configurable"), ("w", "writable"))
        )
        origin = " (inherited)" if row["inherited"] else ""
        click.echo(f"{row['key']!s:<20} {row['kind']:<9} {flags} {row['type']}{origin}")


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    sys.exit(main())
