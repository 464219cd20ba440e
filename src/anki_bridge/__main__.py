from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from anki_bridge.common.logging_config import setup_logging
from anki_bridge.config_models import load_config
from anki_bridge.errors import ConfigurationError
from anki_bridge.rpc.client import RpcClient
from anki_bridge.rpc.errors import RpcError
from anki_bridge.services.contracts import AI_CONTRACT, ANKI_CONTRACT

logger = logging.getLogger(__name__)

CONTRACTS = {"anki": ANKI_CONTRACT, "ai": AI_CONTRACT}
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def serve(config_path: Optional[Path], host: Optional[str], port: Optional[int], log_level: Optional[str]) -> None:
    """Load configuration and run the FastAPI app with uvicorn."""
    import uvicorn

    from anki_bridge.app import create_app

    config = load_config(config_path)
    server_cfg = config.server
    level = log_level or server_cfg.log_level
    setup_logging(level)
    logger.info(
        "Starting anki-bridge",
        extra={
            "host": host or server_cfg.host,
            "port": port or server_cfg.port,
            "anki_connect": config.anki.url,
            "llm_model": config.llm.model,
        },
    )
    missing = config.llm.missing()
    if missing:
        logger.warning(f"AI routes will fail until configured: {', '.join(missing)}")
    if not config.anki.url:
        logger.warning("Anki routes will fail until ANKI_CONNECT_URL is set")

    uvicorn.run(
        create_app(config),
        host=host or server_cfg.host,
        port=port or server_cfg.port,
        log_level=level.lower(),
    )


async def call_remote(
        service: str,
        base_url: str,
        action: str,
        raw_args: List[str],
        timeout: Optional[float] = None,
) -> Any:
    """Call ``action`` on a running bridge; each raw arg is a JSON value."""
    client = RpcClient(CONTRACTS[service], base_url, timeout=timeout)
    args = [json.loads(raw) for raw in raw_args]
    return await client.call(action, *args)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="anki_bridge", description="AnkiConnect / language model bridge")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP server")
    serve_parser.add_argument(
        "--config",
        required=False,
        default=None,
        help="Path to a YAML config; environment variables override it",
    )
    serve_parser.add_argument("--host", required=False, default=None)
    serve_parser.add_argument("--port", required=False, type=int, default=None)
    serve_parser.add_argument(
        "--log-level",
        required=False,
        default=None,
        choices=LOG_LEVELS,
        help="Logging level (default: from config, INFO). Use DEBUG to see LLM prompts/responses.",
    )

    call_parser = subparsers.add_parser("call", help="Call an action on a running bridge")
    call_parser.add_argument("--service", required=True, choices=sorted(CONTRACTS))
    call_parser.add_argument(
        "--base-url",
        required=True,
        help="Tunnel base URL, e.g. http://127.0.0.1:8000/api/v2/anki-rpc",
    )
    call_parser.add_argument("action", help="Action name, e.g. notesInfo")
    call_parser.add_argument("args", nargs="*", help="Positional arguments, each a JSON value")
    call_parser.add_argument("--log-level", required=False, default="WARNING", choices=LOG_LEVELS)
    call_parser.add_argument(
        "--timeout",
        required=False,
        type=float,
        default=None,
        help="Seconds to wait for the reply (default: wait until the bridge answers)",
    )

    args = parser.parse_args(argv)

    if args.command == "serve":
        try:
            serve(Path(args.config) if args.config else None, args.host, args.port, args.log_level)
        except ConfigurationError as e:
            print(f"Configuration error: {e}", file=sys.stderr)
            return 2
        return 0

    setup_logging(args.log_level, stream=sys.stderr)
    try:
        result = asyncio.run(call_remote(args.service, args.base_url, args.action, args.args, args.timeout))
    except json.JSONDecodeError as e:
        print(f"Arguments must be JSON values: {e}", file=sys.stderr)
        return 2
    except (RpcError, TypeError) as e:
        print(str(e), file=sys.stderr)
        return 1
    print(json.dumps(result, ensure_ascii=False, indent=2, default=_to_jsonable))
    return 0


def _to_jsonable(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(mode="json", by_alias=True)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


if __name__ == "__main__":
    raise SystemExit(main())
