"""Command-line entry point for the image generation aggregator.

Run with: python main.py generate "a lighthouse at dawn" --model cogview-3-flash
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass

import httpx

from config import Settings, settings
from credentials import CredentialResolver, EnvKeySource, StoreKeySource
from db import create_tables, make_engine, make_session_factory
from logsink import LogSink
from orchestrator import GenerationOrchestrator
from providers.catalog import MODELS
from providers.errors import ImageGenerationError, TaskTimeout
from providers.factory import ProviderRegistry
from storage import HistoryStore, KeyValueStore, LogStore

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


@dataclass
class Services:
    credentials: CredentialResolver
    log_sink: LogSink
    history_store: HistoryStore
    registry: ProviderRegistry
    orchestrator: GenerationOrchestrator


def build_services(
    app_settings: Settings = settings,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Services:
    """Wire storage, credentials, registry and orchestrator once per process."""
    engine = make_engine(app_settings.database_url)
    create_tables(engine)
    session_factory = make_session_factory(engine)

    credentials = CredentialResolver(
        [EnvKeySource(app_settings)],
        StoreKeySource(KeyValueStore(session_factory)),
    )
    log_sink = LogSink(LogStore(session_factory, app_settings.max_logs), app_settings.max_logs)
    history_store = HistoryStore(session_factory, app_settings.max_history)
    registry = ProviderRegistry(credentials, app_settings, transport=transport)
    orchestrator = GenerationOrchestrator(registry, log_sink, history_store, app_settings)
    return Services(credentials, log_sink, history_store, registry, orchestrator)


def cmd_generate(services: Services, args: argparse.Namespace) -> int:
    try:
        batch = asyncio.run(
            services.orchestrator.generate(
                args.prompt,
                args.model,
                args.api_key,
                args.size,
                count=args.count,
                negative_prompt=args.negative_prompt,
            )
        )
    except TaskTimeout as e:
        print(f"Still running: {e}", file=sys.stderr)
        return 2
    except (ImageGenerationError, httpx.HTTPError, ValueError) as e:
        print(f"Generation failed: {e}", file=sys.stderr)
        return 1

    for url in batch.images:
        print(url)
    logger.info("Done in %.1fs", batch.duration_seconds)
    return 0


def cmd_models(services: Services, args: argparse.Namespace) -> int:
    for provider in MODELS:
        print(f"{provider.name} [{provider.value}] key: {provider.api_key_name}")
        for sub_model in provider.children:
            print(f"  {sub_model.value:<28} {sub_model.price}")
    return 0


def cmd_sizes(services: Services, args: argparse.Namespace) -> int:
    sizes = services.registry.model_supported_sizes(args.model)
    print(" ".join(str(size) for size in sizes))
    if args.ratio is not None:
        print(f"recommended: {services.registry.model_recommended_size(args.model, args.ratio)}")
    return 0


def cmd_set_key(services: Services, args: argparse.Namespace) -> int:
    provider = services.registry.get_provider(args.provider)
    if services.credentials.is_pinned(provider.config.api_key_name):
        print(f"{provider.config.api_key_name} is set by the environment and cannot be changed")
        return 1
    provider.set_api_key(args.key)
    print(f"Saved {provider.config.api_key_name}")
    return 0


def cmd_history(services: Services, args: argparse.Namespace) -> int:
    if args.clear:
        services.history_store.clear()
        print("History cleared")
        return 0
    for entry in services.history_store.load():
        print(json.dumps(entry.to_dict(), ensure_ascii=False))
    return 0


def cmd_logs(services: Services, args: argparse.Namespace) -> int:
    if args.clear:
        services.log_sink.clear()
        print("Logs cleared")
        return 0
    for entry in services.log_sink.entries():
        print(json.dumps(entry.to_dict(), ensure_ascii=False, default=str))
    return 0


def positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate images through several text-to-image providers")
    sub = parser.add_subparsers(dest="command", required=True)

    generate = sub.add_parser("generate", help="Generate one or more images")
    generate.add_argument("prompt")
    generate.add_argument("--model", required=True, help="Sub-model id, e.g. cogview-3-flash")
    generate.add_argument("--size", default="1024x1024", help="WIDTHxHEIGHT")
    generate.add_argument("--count", type=positive_int, default=1)
    generate.add_argument("--negative-prompt", default=None)
    generate.add_argument("--api-key", default=None, help="Use this key instead of the stored one")
    generate.set_defaults(func=cmd_generate)

    models = sub.add_parser("models", help="List providers and sub-models")
    models.set_defaults(func=cmd_models)

    sizes = sub.add_parser("sizes", help="Show supported sizes for a model")
    sizes.add_argument("model")
    sizes.add_argument("--ratio", type=float, default=None, help="Aspect ratio (width / height)")
    sizes.set_defaults(func=cmd_sizes)

    set_key = sub.add_parser("set-key", help="Store an API key for a provider")
    set_key.add_argument("provider", choices=[p.value for p in MODELS])
    set_key.add_argument("key")
    set_key.set_defaults(func=cmd_set_key)

    history = sub.add_parser("history", help="Show generation history")
    history.add_argument("--clear", action="store_true")
    history.set_defaults(func=cmd_history)

    logs = sub.add_parser("logs", help="Show recent API logs")
    logs.add_argument("--clear", action="store_true")
    logs.set_defaults(func=cmd_logs)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    services = build_services()
    return args.func(services, args)


if __name__ == "__main__":
    sys.exit(main())
