"""explox command line entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from dotenv import load_dotenv

from explox.application.context import make_app_context
from explox.application.generate_routes import generate_routes
from explox.application.query import build_query
from explox.config.settings import load_settings
from explox.domain.exceptions import QueryValidationError
from explox.domain.models import SearchResult
from explox.services.history_service import get_search_result
from explox.shared.exceptions import PersistenceError

load_dotenv()


def _result_payload(result: SearchResult) -> dict:
    payload = result.model_dump(mode="json")
    payload["routes"] = [
        {
            "id": route.route.id,
            "title": route.route.title,
            "distance": route.distance,
            "familiarity_score": route.familiarity_score,
            "reused": route.reused,
        }
        for route in result.routes
    ]
    return payload


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="explox", description="Generate cycling routes from known parts.")
    parser.add_argument("--provider", choices=["real", "fixture", "auto"], default=None)
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="run one route search")
    gen.add_argument("--distance", help="target distance in km (default 5)")
    gen.add_argument("--preference", choices=["discover", "distance", "balanced"])
    gen.add_argument("--difficulty")
    gen.add_argument("--duration")
    gen.add_argument("--start", required=True, help="lat,lng")
    gen.add_argument("--end", help="lat,lng (default: start)")
    gen.add_argument("--user")

    show = sub.add_parser("show", help="print a stored search result")
    show.add_argument("result_id")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    ctx = make_app_context(load_settings(route_provider=args.provider))

    try:
        if args.command == "generate":
            query = build_query(
                {
                    "distance": args.distance,
                    "preference": args.preference,
                    "difficulty": args.difficulty,
                    "duration": args.duration,
                    "start": args.start,
                    "end": args.end,
                    "user": args.user,
                }
            )
            result = generate_routes(query, ctx=ctx)
        else:
            result = get_search_result(ctx=ctx, result_id=args.result_id)
            if result is None:
                print(f"search result {args.result_id} not found", file=sys.stderr)
                return 1
    except QueryValidationError as exc:
        print(f"invalid query: {exc}", file=sys.stderr)
        return 2
    except PersistenceError as exc:
        print(f"route store error: {exc}", file=sys.stderr)
        return 3

    print(json.dumps(_result_payload(result), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
