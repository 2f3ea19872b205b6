#!/usr/bin/env python3
"""
Recalculate stored leads.

Engagement score, dormancy and reminders depend on how much time has passed,
so a lead nobody has touched drifts out of date. This script re-runs the
recalculation engine over stored leads and writes back the ones whose derived
fields changed. updated_at is preserved.

Typical use: a daily cron job.

Examples:
  # Refresh every lead
  python scripts/recalculate_leads.py

  # Only one user's leads, report without writing
  python scripts/recalculate_leads.py --user-id USER_ID --dry-run
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Tuple

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from domain.lead import Lead  # noqa: E402
from repositories import lead_repository  # noqa: E402
from services.lead_service import refresh_lead  # noqa: E402


@dataclass
class RefreshResult:
    scanned: int = 0
    changed: int = 0
    newly_dormant: int = 0
    reminders_added: int = 0
    errors: List[str] = field(default_factory=list)


def _derived_state(lead: Lead) -> tuple:
    return (
        lead.engagement.engagement_score,
        lead.priority,
        lead.is_high_value,
        lead.is_dormant,
        tuple(r.reminder_id for r in lead.reminders),
        lead.completed_reminder_ids,
    )


def refresh_all(user_id: Optional[str], dry_run: bool, now: datetime) -> RefreshResult:
    if user_id is not None:
        owned: List[Tuple[str, Lead]] = [(user_id, lead) for lead in lead_repository.list_leads(user_id)]
    else:
        owned = lead_repository.list_all_leads()

    result = RefreshResult()
    for owner, lead in owned:
        result.scanned += 1
        try:
            refreshed = refresh_lead(owner, lead, now=now, persist=False)
            if _derived_state(refreshed) == _derived_state(lead):
                continue

            result.changed += 1
            if refreshed.is_dormant and not lead.is_dormant:
                result.newly_dormant += 1
            result.reminders_added += max(0, len(refreshed.open_reminders) - len(lead.open_reminders))

            if not dry_run:
                lead_repository.update_lead(owner, refreshed)
        except Exception as e:
            result.errors.append(f"{lead.lead_id}: {e}")

    return result


def print_summary(result: RefreshResult, dry_run: bool) -> None:
    print("=" * 60)
    print("LEAD RECALCULATION SUMMARY" + (" (DRY RUN)" if dry_run else ""))
    print("=" * 60)
    print(f"Leads scanned:        {result.scanned}")
    print(f"Leads changed:        {result.changed}")
    print(f"Newly dormant:        {result.newly_dormant}")
    print(f"Reminders added:      {result.reminders_added}")

    if result.errors:
        print()
        print(f"Errors:               {len(result.errors)}")
        for error in result.errors[:5]:
            print(f"  - {error}")
        if len(result.errors) > 5:
            print(f"  ... and {len(result.errors) - 5} more")

    print("=" * 60)


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Recalculate derived fields for stored leads",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--user-id",
        default=None,
        help="Only refresh leads owned by this user (default: all users)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute changes without writing them"
    )
    args = parser.parse_args()

    try:
        result = refresh_all(args.user_id, args.dry_run, datetime.now(timezone.utc))
        print_summary(result, args.dry_run)
        return 1 if result.errors else 0

    except KeyboardInterrupt:
        print("\n\nRecalculation interrupted by user")
        return 130

    except Exception as e:
        print(f"\nFATAL ERROR: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
