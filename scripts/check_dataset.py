"""
Dataset integrity check for Safety Advisor.

Loads the seven dataset resources from a base URL, prints the size of each
table and lists relationship rows whose foreign keys do not resolve.
"""
import sys
import asyncio
import argparse

from safety_advisor.services.config import SAFETY_DATA_BASE_URL
from safety_advisor.services.data_loader import DatasetLoader, load_safety_data
from safety_advisor.services.errors import LoadError


def parse_args():
    parser = argparse.ArgumentParser(description="Check the safety dataset for load errors and dangling relationship rows")
    parser.add_argument("--base-url", default=SAFETY_DATA_BASE_URL, help=f"Dataset base URL (default: {SAFETY_DATA_BASE_URL})")
    parser.add_argument("--show", type=int, default=20, help="Number of dangling rows to print (default: 20)")
    return parser.parse_args()


async def check(base_url: str, show: int) -> int:
    loader = DatasetLoader(base_url=base_url)
    try:
        data = await load_safety_data(loader)
    except LoadError as e:
        print(f"ERROR: dataset failed to load: {e}")
        return 1

    for name, count in data.summary().items():
        print(f"{name:>16}: {count}")

    dangling = data.dangling_rows()
    if not dangling:
        print("All relationship rows resolve.")
        return 0

    print(f"{len(dangling)} relationship rows have dangling foreign keys:")
    for row, columns in dangling[:show]:
        print(f"  row_id={row.row_id}: {', '.join(columns)}")
    return 2


if __name__ == "__main__":
    args = parse_args()
    sys.exit(asyncio.run(check(args.base_url, args.show)))
