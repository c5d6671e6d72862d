"""Command-line entry point: upload an invoice and wait for its prediction.

Usage:
    gemina-client invoice.png
    gemina-client https://example.com/invoice.png --external-id my-invoice-1

Credentials come from GEMINA_API_KEY / GEMINA_CLIENT_ID (environment or .env).
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

from loguru import logger

from gemina_client.core.config import get_settings
from gemina_client.core.exceptions import ConfigurationError
from gemina_client.core.logging_config import setup_logging
from gemina_client.models.schemas import PollResult
from gemina_client.services.gemina_client import GeminaClient
from gemina_client.services.poller import PredictionPoller


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="gemina-client",
        description="Upload an invoice image to Gemina and poll for its prediction.",
    )
    p.add_argument("source", help="Path to a local image, or an http(s) URL")
    p.add_argument("--external-id", default=None, help="Id to correlate the upload (default: random)")
    p.add_argument("--max-attempts", type=int, default=None, help="Stop polling after N fetches")
    p.add_argument("--timeout", type=float, default=None, help="Stop polling after S seconds")
    return p


def print_json(data: dict[str, Any] | None) -> None:
    if data:
        for key, value in data.items():
            print(f"{key}: {value}")
    else:
        print("Received empty JSON response.")


async def run(argv: list[str] | None = None) -> PollResult:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    async with GeminaClient(settings) as client:
        poller = PredictionPoller(
            client,
            max_attempts=args.max_attempts,
            timeout=args.timeout,
        )
        return await poller.run(args.source, args.external_id)


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    setup_logging(debug=settings.debug, log_dir=settings.log_dir)

    try:
        result = asyncio.run(run(argv))
    except ConfigurationError as exc:
        logger.error(f"{exc}. Set GEMINA_API_KEY and GEMINA_CLIENT_ID")
        return 2

    logger.info(f"Finished {result.external_id}: {result.state.value} after {result.attempts} fetches")

    if result.ok:
        print_json(result.response.raw_data if result.response else None)
        return 0

    if result.failure is not None:
        print_json(result.failure.raw_data or ({"body": result.failure.text} if result.failure.text else None))
    return 1


if __name__ == "__main__":
    sys.exit(main())
