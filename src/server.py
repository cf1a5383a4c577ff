"""Protean Engine runner.

In production, ``event_processing = "async"``: events raised by a Unit of
Work are picked up here instead of inside the request. The ordering engine
runs the handlers that confirm or cancel orders when the payments domain
settles a transaction, and the notification handler for order transitions.

Usage:
    python src/server.py                    # ordering and payments engines
    python src/server.py --domain ordering  # one engine only
"""

import argparse
import asyncio
import importlib

import structlog
from protean.server.engine import Engine
from shared.logging import add_context, configure_logging

logger = structlog.get_logger(__name__)

# domain name -> (module, attribute)
DOMAINS = {
    "ordering": ("ordering.domain", "ordering"),
    "payments": ("payments.domain", "payments"),
}


def load_domain(name: str):
    if name not in DOMAINS:
        raise ValueError(f"Unknown domain: {name}")
    module_name, attribute = DOMAINS[name]
    domain = getattr(importlib.import_module(module_name), attribute)
    domain.init()
    return domain


async def run(names: list[str]) -> None:
    engines = [Engine(load_domain(name)) for name in names]
    logger.info("Starting engines", domains=names)
    await asyncio.gather(*(engine.run() for engine in engines))


def main():
    parser = argparse.ArgumentParser(description="Run Protean Engine workers")
    parser.add_argument("--domain", choices=sorted(DOMAINS), help="Run a single domain engine (default: all)")
    args = parser.parse_args()

    configure_logging()
    add_context(process="engine")
    asyncio.run(run([args.domain] if args.domain else list(DOMAINS)))


if __name__ == "__main__":
    main()
