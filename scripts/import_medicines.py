import argparse
import sys
from pathlib import Path

# Ensure repo root is on sys.path when running this script directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import SQLAlchemyError

from medpos.core.logging import setup_logging
from medpos.database import Base, engine
from medpos.models import import_all_models
from medpos.services.import_service import import_workbook, summarize_results


def parse_args():
    parser = argparse.ArgumentParser(
        description="Import or update the medicine catalog from an Excel workbook."
    )
    parser.add_argument("--path", required=True, help="Path to .xlsx workbook.")
    parser.add_argument("--sheet", default=None, help="Sheet name. Default: first sheet.")
    parser.add_argument("--dry-run", action="store_true", help="Validate without saving.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level.")
    return parser.parse_args()


def main():
    args = parse_args()
    setup_logging("DEBUG" if args.verbose else None)

    import_all_models()
    Base.metadata.create_all(bind=engine)
    try:
        counts = import_workbook(args.path, sheet=args.sheet, dry_run=args.dry_run)
    except (OSError, ValueError, SQLAlchemyError, InvalidFileException) as exc:
        raise SystemExit(f"Import failed: {exc}") from exc

    print(summarize_results(counts))
    for error in counts["errors"]:
        print(f"  {error}")

    if args.dry_run:
        print("Dry run complete, no changes committed.")
    else:
        print("Import complete.")


if __name__ == "__main__":
    main()
