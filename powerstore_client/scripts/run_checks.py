#!/usr/bin/env python3
"""
Lifecycle Check CLI for PowerStore arrays.

This script creates, clones and deletes a throwaway volume and snapshot on
a live array and reports which steps behaved as expected.

Usage:
    python -m powerstore_client.scripts.run_checks
    python -m powerstore_client.scripts.run_checks --config powerstore.yaml
    python -m powerstore_client.scripts.run_checks --endpoint https://10.0.0.1 --username admin --password ...
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Dict

from powerstore_client.checks import DEFAULT_VOLUME_SIZE, run_lifecycle_checks
from powerstore_client.client import PowerStoreClient
from powerstore_client.config import (
    ClientConfig,
    load_config_from_env,
    load_config_from_file,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def print_results_text(results: Dict[str, Any], verbose: bool = False):
    """Print check results in human-readable format."""
    print("\n" + "=" * 60)
    print("POWERSTORE LIFECYCLE CHECK RESULTS")
    print("=" * 60)
    print(f"Endpoint: {results.get('endpoint')}")
    if results.get("trace_id"):
        print(f"Trace ID: {results['trace_id']}")
    print("-" * 40)

    checks = results.get("checks", {})
    for check_name, check_result in checks.items():
        if check_name.endswith("_error"):
            continue
        status = "✅" if check_result else "❌"
        print(f"  {status} {check_name}")
        if verbose and f"{check_name}_error" in checks:
            print(f"     Error: {checks[f'{check_name}_error']}")

    for error in results.get("cleanup_errors", []):
        print(f"  ⚠️  cleanup: {error}")

    print("\n" + "=" * 60)
    if results.get("success"):
        print("🎉 ALL CHECKS PASSED")
    else:
        print("⚠️  SOME CHECKS FAILED")
    print("=" * 60)


def build_config(args: argparse.Namespace) -> ClientConfig:
    """Merge the config file or environment with command-line overrides."""
    if args.config:
        config = load_config_from_file(args.config)
    elif os.environ.get("POWERSTORE_CLIENT_CONFIG") or os.environ.get("POWERSTORE_ENDPOINT"):
        config = load_config_from_env()
    else:
        config = ClientConfig(endpoint="")

    if args.endpoint:
        config.endpoint = args.endpoint
    if args.username:
        config.username = args.username
    if args.password:
        config.password = args.password
    if args.insecure:
        config.insecure = True
    return config


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run volume/snapshot lifecycle checks against a PowerStore array",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment Variables:
  POWERSTORE_ENDPOINT        Management endpoint (e.g. https://10.0.0.1/api/rest)
  POWERSTORE_USERNAME        API user
  POWERSTORE_PASSWORD        API password
  POWERSTORE_INSECURE        Skip TLS verification (true/false, default: false)
  POWERSTORE_CLIENT_CONFIG   Full JSON configuration
        """,
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to configuration file (YAML or JSON)",
    )
    parser.add_argument(
        "--endpoint",
        "-e",
        help="Management API endpoint",
    )
    parser.add_argument(
        "--username",
        "-u",
        help="API user",
    )
    parser.add_argument(
        "--password",
        "-p",
        help="API password",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip TLS certificate verification",
    )
    parser.add_argument(
        "--size",
        type=int,
        default=DEFAULT_VOLUME_SIZE,
        help=f"Size in bytes of the test volume (default: {DEFAULT_VOLUME_SIZE})",
    )
    parser.add_argument(
        "--trace-id",
        help="Trace id sent with every request",
    )
    parser.add_argument(
        "--output",
        "-o",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = build_config(args)
    if not config.endpoint:
        print("Error: Endpoint is required. Set POWERSTORE_ENDPOINT or use --endpoint")
        sys.exit(1)

    client = PowerStoreClient.from_config(config)
    results = run_lifecycle_checks(client, size=args.size, trace_id=args.trace_id)

    if args.output == "json":
        print(json.dumps(results, indent=2, default=str))
    else:
        print_results_text(results, args.verbose)

    sys.exit(0 if results.get("success") else 1)


if __name__ == "__main__":
    main()
