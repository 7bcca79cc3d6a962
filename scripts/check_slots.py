#!/usr/bin/env python3
"""
Print free booking slots for one or more dates from a running API.

Usage:
    python scripts/check_slots.py 2026-11-02
    python scripts/check_slots.py 2026-11-02 --days 5

Environment Variables:
    API_URL: Base API URL (default: http://localhost:8000)
"""

import argparse
import os
import sys
from datetime import date, timedelta

import dotenv
import requests

dotenv.load_dotenv()


def fetch_slots(day: date) -> list[str]:
    """Fetch free slots for a date."""
    api_url = os.getenv("API_URL", "http://localhost:8000")
    url = f"{api_url}/api/v1/appointments/slots"

    try:
        response = requests.get(url, params={"date": day.isoformat()}, timeout=30)
        response.raise_for_status()
        return response.json()["slots"]
    except requests.exceptions.HTTPError as e:
        print(f"HTTP Error: {e}", file=sys.stderr)
        print(f"Response: {e.response.text}", file=sys.stderr)
        sys.exit(1)
    except requests.exceptions.RequestException as e:
        print(f"Request Error: {e}", file=sys.stderr)
        sys.exit(1)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Show free appointment slots")
    parser.add_argument("start", type=date.fromisoformat, help="First date (YYYY-MM-DD)")
    parser.add_argument("--days", type=int, default=1, help="Number of days to show (default: 1)")
    args = parser.parse_args()

    for offset in range(args.days):
        day = args.start + timedelta(days=offset)
        slots = fetch_slots(day)
        print(f"{day.isoformat()}: {', '.join(slots) if slots else 'fully booked'}")


if __name__ == "__main__":
    main()
