#!/usr/bin/env python3
"""
Example: Page Through Snapshots

Queries every snapshot below a portfolio item, one page at a time, and
prints a summary. Transient transport failures are retried by this script;
the client itself never retries.

Usage:
    python paged_snapshot_query.py --workspace 41529001 --item 5103028089 \\
        --username me@example.com --password secret
"""

import argparse
import logging
import sys
import time

from lookback_client import LookbackApi, LookbackError, ErrorHandler


def execute_with_retry(query, attempts=3, delay=1.0):
    """Execute a query, retrying failures the error handler marks retryable."""
    for attempt in range(1, attempts + 1):
        try:
            return query.execute()
        except LookbackError as e:
            if attempt == attempts or not ErrorHandler.is_retryable(e):
                raise
            print(f"  attempt {attempt} failed ({e.message}), retrying in {delay:.1f}s")
            time.sleep(delay)


def main():
    parser = argparse.ArgumentParser(description="Page through Lookback snapshots")
    parser.add_argument("--server", default="https://rally1.rallydev.com", help="Rally server")
    parser.add_argument("--workspace", required=True, help="Workspace OID")
    parser.add_argument("--username", required=True, help="Rally username")
    parser.add_argument("--password", required=True, help="Rally password")
    parser.add_argument("--item", type=int, required=True, help="Item OID for _ItemHierarchy")
    parser.add_argument("--pagesize", type=int, default=200, help="Snapshots per page")
    parser.add_argument("--debug", action="store_true", help="Log requests")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.WARNING)

    with LookbackApi() as api:
        api.set_server(args.server).set_credentials(args.username, args.password).set_workspace(args.workspace)

        query = (api.new_query()
                 .add_find_clause("_TypeHierarchy", "HierarchicalRequirement")
                 .add_find_clause("Children", None)
                 .add_find_clause("_ItemHierarchy", args.item)
                 .require_fields("ObjectID", "Name", "ScheduleState", "_ValidFrom")
                 .hydrate_fields("ScheduleState")
                 .sort_by("_ValidFrom", -1)
                 .set_page_size(args.pagesize))

        try:
            result = execute_with_retry(query)
            total = result.total_result_count
            received = len(result.records)
            pages = 1

            while result.has_more_pages():
                result = execute_with_retry(api.continuation_query(result))
                received += len(result.records)
                pages += 1
        except LookbackError as e:
            print(f"Query failed: {e}")
            return 1

    print(f"TotalResultCount: {total}")
    print(f"Accumulated Results: {received}")
    print(f"Queries Made: {pages}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
