"""Command-line interface — the ``modelroute`` console script.

    modelroute models list [provider]
    modelroute models add <id> [--name N] [--provider P] [--base-url U] [--api-key K]
    modelroute models remove <id>
    modelroute models default [<id>]
    modelroute models resolve [<id>]
    modelroute providers list [--models]
    modelroute providers models <provider>
    modelroute providers pull <model> [--provider ollama]

Exit codes: 0 success, 1 resolution/store failure (message and hint on
stderr), 2 usage or configuration error.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from modelroute.config import get_settings
from modelroute.discovery import probe_providers
from modelroute.errors import ModelRoutingError, NoDefaultModel
from modelroute.identifiers import format_identifier
from modelroute.services import ModelServices, build_services

logger = logging.getLogger("modelroute.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modelroute",
        description="Resolve model identifiers and manage model providers",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    groups = parser.add_subparsers(dest="group", required=True)

    models = groups.add_parser("models", help="Custom models, default model, resolution")
    models_cmds = models.add_subparsers(dest="command", required=True)

    models_list = models_cmds.add_parser("list", help="List custom models, or a provider's models")
    models_list.add_argument("provider", nargs="?", help="Provider id or alias")

    models_add = models_cmds.add_parser("add", help="Add a custom model")
    models_add.add_argument("id", help="provider/model[:tag]")
    models_add.add_argument("--name", help="Display name (defaults to the id)")
    models_add.add_argument("--provider", help="Provider id (defaults to the id's provider)")
    models_add.add_argument("--base-url", help="Base URL override")
    models_add.add_argument("--api-key", help="API key override")

    models_remove = models_cmds.add_parser("remove", help="Remove a custom model")
    models_remove.add_argument("id")

    models_default = models_cmds.add_parser("default", help="Show or set the default model")
    models_default.add_argument("id", nargs="?", help="New default; omit to show the current one")

    models_resolve = models_cmds.add_parser("resolve", help="Resolve an identifier (or the default)")
    models_resolve.add_argument("id", nargs="?")

    providers = groups.add_parser("providers", help="Provider discovery and local model pulls")
    providers_cmds = providers.add_subparsers(dest="command", required=True)

    providers_list = providers_cmds.add_parser("list", help="Probe every provider")
    providers_list.add_argument("--models", action="store_true", help="Also list available models")

    providers_models = providers_cmds.add_parser("models", help="List one provider's models")
    providers_models.add_argument("provider")

    providers_pull = providers_cmds.add_parser("pull", help="Pull a model into a local daemon")
    providers_pull.add_argument("model", help="Model name with tag, e.g. qwen2.5-coder:7b")
    providers_pull.add_argument("--provider", default="ollama", help="Daemon provider (default: ollama)")

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _models_list(services: ModelServices, args: argparse.Namespace) -> int:
    if args.provider:
        return await _providers_models(services, args)
    entries = await services.store.list_custom_models()
    if not entries:
        print("No custom models.")
    for entry in entries:
        extras = []
        if entry.base_url:
            extras.append(entry.base_url)
        if entry.credential:
            extras.append("api key set")
        suffix = f" ({', '.join(extras)})" if extras else ""
        print(f"{entry.id}  {entry.display_name}{suffix}")
    return 0


async def _models_add(services: ModelServices, args: argparse.Namespace) -> int:
    entry = await services.add_custom_model(
        args.id,
        name=args.name,
        provider=args.provider,
        base_url=args.base_url,
        api_key=args.api_key,
    )
    print(f"Added {entry.id}")
    return 0


async def _models_remove(services: ModelServices, args: argparse.Namespace) -> int:
    await services.remove_custom_model(args.id)
    print(f"Removed {args.id}")
    return 0


async def _models_default(services: ModelServices, args: argparse.Namespace) -> int:
    if args.id:
        stored = await services.set_default(args.id)
        print(f"Default model: {stored}")
        return 0
    try:
        ref, source = await services.resolver.default_reference()
    except NoDefaultModel:
        print("No default model.")
        return 0
    print(f"{format_identifier(ref)} ({source})")
    return 0


async def _models_resolve(services: ModelServices, args: argparse.Namespace) -> int:
    resolved = await services.resolver.resolve(args.id)
    print(f"model:          {resolved.identifier}")
    print(f"engine:         {resolved.engine}")
    print(f"base_url:       {resolved.base_url or '-'}")
    print(f"credential:     {'set' if resolved.has_credential else 'none'}")
    print(f"context_length: {resolved.context_length or 'unknown'}")
    print(f"source:         {resolved.source}")
    for warning in resolved.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    return 0


async def _providers_list(services: ModelServices, args: argparse.Namespace) -> int:
    statuses = await probe_providers(
        services.adapters,
        catalog=services.catalog,
        timeout_seconds=services.settings.probe_timeout_seconds,
        include_models=args.models,
    )
    for status in statuses:
        state = "available" if status.available else "unavailable"
        if not status.configured:
            state = "not configured"
        elif status.error:
            state = f"unavailable ({status.error})"
        where = "local" if status.is_local else "remote"
        print(f"{status.provider_id:<12} {status.display_name:<24} {where:<7} {state}")
        for model in status.models:
            print(f"    {model.id}")
    return 0


async def _providers_models(services: ModelServices, args: argparse.Namespace) -> int:
    adapter = services.adapter(args.provider)
    models = await services.list_models(adapter.provider_id)
    if not models:
        print(f"No models listed for {adapter.provider_id}.")
    for model in models:
        details = []
        if model.context_length:
            details.append(f"{model.context_length} ctx")
        if model.is_free:
            details.append("free")
        if model.size_on_disk:
            details.append(model.size_on_disk)
        suffix = f" ({', '.join(details)})" if details else ""
        print(f"{adapter.provider_id}/{model.id}{suffix}")
    return 0


async def _providers_pull(services: ModelServices, args: argparse.Namespace) -> int:
    adapter = services.adapter(args.provider)
    if not adapter.supports_pull:
        print(f"error: provider {adapter.provider_id!r} cannot pull models", file=sys.stderr)
        return 2
    ok = await adapter.pull_model(args.model, print)
    print("Done." if ok else f"Pull of {args.model} failed.")
    return 0 if ok else 1


_COMMANDS = {
    ("models", "list"): _models_list,
    ("models", "add"): _models_add,
    ("models", "remove"): _models_remove,
    ("models", "default"): _models_default,
    ("models", "resolve"): _models_resolve,
    ("providers", "list"): _providers_list,
    ("providers", "models"): _providers_models,
    ("providers", "pull"): _providers_pull,
}


async def run(services: ModelServices, args: argparse.Namespace) -> int:
    """Runs one parsed command, printing routing errors instead of raising."""
    command = _COMMANDS[(args.group, args.command)]
    try:
        return await command(services, args)
    except ModelRoutingError as exc:
        print(f"error: {exc.message}", file=sys.stderr)
        if exc.hint:
            print(f"hint: {exc.hint}", file=sys.stderr)
        return 1


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        settings = get_settings()
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    services = build_services(settings)
    return asyncio.run(run(services, args))


if __name__ == "__main__":
    raise SystemExit(main())
