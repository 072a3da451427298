"""
Run a competitor watch pass from the CLI.
"""

from __future__ import annotations

import argparse
import json

from app.scraping.config import get_competitor_watch_settings
from app.scraping.storage import SQLAlchemySnapshotStorage
from app.services.competitor_watch_service import CHECK_TYPES, CompetitorWatchService
from app.services.llm_provider import get_llm_adapter
from db.session import SessionLocal


def main() -> int:
    parser = argparse.ArgumentParser(description="Check competitor pages for changes.")
    parser.add_argument(
        "--competitor",
        dest="competitors",
        action="append",
        default=None,
        help="Competitor URL to check. Repeat for several; defaults to the configured list.",
    )
    parser.add_argument(
        "--check-type",
        dest="check_type",
        choices=CHECK_TYPES,
        default="quick",
        help="'full' passes page excerpts to the summary prompt.",
    )
    args = parser.parse_args()

    with SessionLocal() as db:
        service = CompetitorWatchService(
            storage=SQLAlchemySnapshotStorage(session=db),
            adapter=get_llm_adapter(),
            settings=get_competitor_watch_settings(),
        )
        result = service.run(competitors=args.competitors, check_type=args.check_type)

    print(json.dumps(result, indent=2))
    return 0 if not result["actionRequired"] else 2


if __name__ == "__main__":
    raise SystemExit(main())
