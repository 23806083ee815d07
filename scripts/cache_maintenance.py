#!/usr/bin/env python3
"""Run cache maintenance against a running API: stats, eviction, dedup, clears."""
import argparse
import json
import sys

import requests

API = "http://localhost:3001/api/v2"


def _show(title: str, payload: dict) -> None:
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}")
    print(json.dumps(payload, indent=2))


def stats(api: str) -> dict:
    resp = requests.get(f"{api}/cache/stats", timeout=30)
    resp.raise_for_status()
    return resp.json()


def evict(api: str, days_old: int) -> dict:
    resp = requests.delete(f"{api}/cache/old", params={"days_old": days_old}, timeout=60)
    resp.raise_for_status()
    return resp.json()


def reconcile(api: str) -> dict:
    resp = requests.post(f"{api}/cache/reconcile", timeout=120)
    resp.raise_for_status()
    return resp.json()


def clear_symbol(api: str, symbol: str) -> dict:
    resp = requests.delete(f"{api}/cache/quotes/{symbol}", timeout=30)
    resp.raise_for_status()
    return resp.json()


def clear_query(api: str, query: str) -> dict:
    resp = requests.delete(f"{api}/cache/search", params={"q": query}, timeout=30)
    resp.raise_for_status()
    return resp.json()


def clear_quotes(api: str) -> dict:
    resp = requests.delete(f"{api}/cache/quotes", timeout=60)
    resp.raise_for_status()
    return resp.json()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--api", default=API, help="API base URL")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("stats", help="Show cache entry counts")
    p_evict = sub.add_parser("evict", help="Remove entries older than N days")
    p_evict.add_argument("--days", type=int, default=7)
    sub.add_parser("reconcile", help="Remove duplicate quote rows, keeping the newest")
    p_symbol = sub.add_parser("clear-symbol", help="Drop the cached quote for one symbol")
    p_symbol.add_argument("symbol")
    p_query = sub.add_parser("clear-query", help="Drop the cached results for one search query")
    p_query.add_argument("query")
    sub.add_parser("clear-quotes", help="Drop every cached quote")
    args = parser.parse_args(argv)

    try:
        if args.command == "stats":
            _show("Cache stats", stats(args.api))
        elif args.command == "evict":
            before = stats(args.api)
            result = evict(args.api, args.days)
            _show(f"Evicted entries older than {args.days} days", {"before": before, **result})
        elif args.command == "reconcile":
            _show("Duplicate reconciliation", reconcile(args.api))
        elif args.command == "clear-symbol":
            _show(f"Cleared quote cache for {args.symbol.upper()}", clear_symbol(args.api, args.symbol))
        elif args.command == "clear-query":
            _show(f"Cleared search cache for {args.query!r}", clear_query(args.api, args.query))
        elif args.command == "clear-quotes":
            _show("Cleared all cached quotes", clear_quotes(args.api))
    except requests.RequestException as e:
        print(f"⚠ request failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
