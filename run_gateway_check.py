"""
run_gateway_check.py — quick end-to-end check of the AI gateway.

  1. Loads settings from the environment / .env
  2. Prints which providers have credentials
  3. Sends a short probe prompt to every provider concurrently
  4. Prints per-provider results and the health document as JSON

Usage:
    python run_gateway_check.py
    python run_gateway_check.py "Explain TCP in one sentence" openai claude
"""

import asyncio
import json
import logging
import sys

from ai_gateway.core.logging import setup_logging
from ai_gateway.gateway.gateway import Gateway
from ai_gateway.gateway.types import QueryRequest

logger = logging.getLogger("gateway_check")


async def main(argv: list[str]) -> int:
    setup_logging()
    gateway = Gateway.from_settings()

    for name, health in gateway.health().items():
        logger.info("%-10s credential=%s endpoint=%s", name, health.has_credential, health.endpoint)

    if argv:
        prompt, providers = argv[0], argv[1:] or None
        aggregate = await gateway.query_many(QueryRequest(prompt=prompt), providers=providers)
    else:
        aggregate = await gateway.probe_all()

    print(json.dumps(aggregate.to_dict(), indent=2, ensure_ascii=False))
    print(json.dumps(gateway.health_status(), indent=2, ensure_ascii=False))

    return 0 if aggregate.primary.success else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main(sys.argv[1:])))
