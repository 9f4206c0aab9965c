#!/usr/bin/env python3
"""
AAS discovery CLI

  aasdiscovery serve    - Run the discovery server
  aasdiscovery register - Create or replace the asset links of an AAS
  aasdiscovery fetch    - Show the asset links of an AAS
  aasdiscovery delete   - Remove an AAS
  aasdiscovery search   - Find AAS ids holding all given asset links

Usage:
  aasdiscovery serve [--config discovery.yaml] [--port 8080]
  aasdiscovery register <aas-id> -l <name>=<value> [-l ...]
  aasdiscovery search -l <name>=<value> [-l ...] [--limit N] [--cursor C] [--all]
"""

import argparse
import json
import sys
from typing import List

from .errors import DiscoveryError, NotFoundError
from .links import NameValue, parse_link_arg


def parse_links(link_list: List[str]) -> List[NameValue]:
    return [parse_link_arg(text) for text in link_list or []]


def _client(args):
    from .client import DiscoveryClient
    return DiscoveryClient(args.url, timeout=args.timeout)


def cmd_serve(args):
    """Run the discovery server (blocking)."""
    from .config import DiscoveryConfig, load_config
    from .server import build_server, configure_logging

    config = load_config(args.config) if args.config else DiscoveryConfig()
    config = config.merged(
        host=args.host,
        port=args.port,
        storage_backend=args.storage_backend,
        storage_path=args.storage_path,
        log_level="DEBUG" if args.verbose else None,
    )
    configure_logging(config.log_level)
    build_server(config).start()


def cmd_register(args):
    stored = _client(args).register(args.aas_id, parse_links(args.link))
    print(f"Registered {args.aas_id} ({len(stored)} links)")
    for pair in stored:
        print(f"  {pair.name}={pair.value}")


def cmd_fetch(args):
    pairs = _client(args).fetch(args.aas_id)
    if args.json:
        print(json.dumps([p.to_dict() for p in pairs], indent=2))
        return
    for pair in pairs:
        print(f"{pair.name}={pair.value}")


def cmd_delete(args):
    _client(args).delete(args.aas_id)
    print(f"Deleted {args.aas_id}")


def cmd_search(args):
    client = _client(args)
    pairs = parse_links(args.link)

    if args.all:
        ids = client.search_all(pairs, page_size=args.limit or 100)
        cursor = None
    else:
        page = client.search(pairs, limit=args.limit, cursor=args.cursor)
        ids, cursor = page.result, page.cursor

    if args.json:
        print(json.dumps({"result": ids, "cursor": cursor}, indent=2))
        return
    for aas_id in ids:
        print(aas_id)
    if cursor:
        print(f"\nNext cursor: {cursor}")


def main(argv: List[str] = None):
    parser = argparse.ArgumentParser(
        prog="aasdiscovery",
        description="AAS discovery - find shells by asset links",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the discovery server")
    serve_parser.add_argument("--config", help="YAML configuration file")
    serve_parser.add_argument("--host", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, help="Port to bind to")
    serve_parser.add_argument("--storage-backend", choices=["memory", "file", "sqlite"],
                              help="Storage backend")
    serve_parser.add_argument("--storage-path", help="Storage directory")
    serve_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    # client commands share the server location
    client_args = argparse.ArgumentParser(add_help=False)
    client_args.add_argument("--url", default="http://localhost:8080", help="Server URL")
    client_args.add_argument("--timeout", type=float, default=30, help="Request timeout (s)")
    client_args.add_argument("--json", action="store_true", help="Print JSON output")

    register_parser = subparsers.add_parser("register", parents=[client_args],
                                            help="Create or replace asset links")
    register_parser.add_argument("aas_id", help="AAS identifier")
    register_parser.add_argument("-l", "--link", action="append", default=[],
                                 help="Asset link: name=value")

    fetch_parser = subparsers.add_parser("fetch", parents=[client_args],
                                         help="Show asset links of an AAS")
    fetch_parser.add_argument("aas_id", help="AAS identifier")

    delete_parser = subparsers.add_parser("delete", parents=[client_args],
                                          help="Remove an AAS")
    delete_parser.add_argument("aas_id", help="AAS identifier")

    search_parser = subparsers.add_parser("search", parents=[client_args],
                                          help="Find AAS ids by asset links")
    search_parser.add_argument("-l", "--link", action="append", required=True,
                               help="Asset link: name=value")
    search_parser.add_argument("--limit", type=int, help="Page size")
    search_parser.add_argument("--cursor", help="Cursor from a previous page")
    search_parser.add_argument("--all", action="store_true", help="Follow cursors to the end")

    args = parser.parse_args(argv)

    commands = {
        "serve": cmd_serve,
        "register": cmd_register,
        "fetch": cmd_fetch,
        "delete": cmd_delete,
        "search": cmd_search,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    try:
        command(args)
    except NotFoundError as e:
        print(f"Not found: {e.aas_id}", file=sys.stderr)
        sys.exit(2)
    except (DiscoveryError, ConnectionError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
