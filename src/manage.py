"""Marketplace management CLI.

Works against a JSON snapshot file holding the whole marketplace state.

Usage:
    python src/manage.py seed                  # Load the sample catalogue
    python src/manage.py stats --days 7        # Print dashboard figures
    python src/manage.py export -o backup.json # Copy the current state
"""

import argparse
import json
import sys

import structlog

DEFAULT_DATA_FILE = "marketplace.json"


def _open(data_file):
    from marketplace.persistence import JsonSnapshotFile
    from marketplace.store import open_store

    return open_store(JsonSnapshotFile(data_file))


def seed(data_file):
    """Seed the sample catalogue into the data file if it holds no merchants."""
    store = _open(data_file)
    if store.seed_sample_data():
        print(f"Seeded sample data into {data_file}.")
    else:
        print(f"{data_file} already has merchants, nothing to do.")


def stats(data_file, days=None):
    """Print the admin dashboard figures for the trailing window."""
    store = _open(data_file)
    dashboard = store.get_admin_dashboard_stats(days)

    print(f"GMV:              ${dashboard.gmv:.2f}")
    print(f"Delivery fees:    ${dashboard.fees:.2f}")
    print(f"Net sales:        ${dashboard.net_sales:.2f}")
    print(f"Paid orders:      {dashboard.order_count}")
    print(f"Active merchants: {dashboard.active_merchants}")
    if dashboard.top_merchants:
        print("Top merchants:")
        for stat in dashboard.top_merchants:
            print(f"  {stat.name}: ${stat.revenue:.2f} ({stat.orders} orders)")
    if dashboard.top_items:
        print("Top items:")
        for stat in dashboard.top_items:
            print(f"  {stat.name} ({stat.merchant_name}): {stat.units_sold} sold")


def export(data_file, output=None):
    """Write the current state as JSON to `output`, or to stdout."""
    store = _open(data_file)
    snapshot = json.dumps(store.export_snapshot(), indent=2, sort_keys=True, default=str)
    if output:
        with open(output, "w", encoding="utf-8") as handle:
            handle.write(snapshot)
        print(f"Exported snapshot to {output}.")
    else:
        print(snapshot)


def main():
    parser = argparse.ArgumentParser(description="Marketplace management")
    parser.add_argument(
        "--data-file",
        default=DEFAULT_DATA_FILE,
        help=f"JSON snapshot file holding the marketplace state (default: {DEFAULT_DATA_FILE})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("seed", help="Load the sample merchants, items and discounts")

    stats_parser = subparsers.add_parser("stats", help="Print admin dashboard figures")
    stats_parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Trailing window in days (default: ANALYTICS_WINDOW_DAYS)",
    )

    export_parser = subparsers.add_parser("export", help="Export the full state as JSON")
    export_parser.add_argument("-o", "--output", help="Output file (default: stdout)")

    args = parser.parse_args()

    # Keep stdout for command output
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(sys.stderr))

    if args.command == "seed":
        seed(args.data_file)
    elif args.command == "stats":
        stats(args.data_file, args.days)
    elif args.command == "export":
        export(args.data_file, args.output)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
