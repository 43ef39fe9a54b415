#!/usr/bin/env python3
"""
Check commissions for an order.

Displays the referral records and ledger entries written for an order.

Usage:
    python scripts/check_commissions.py --order-id ORD-1001
    python scripts/check_commissions.py --last  # Check most recent order
"""

import sys
import os
import argparse
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.bootstrap import initialize
from core.db import get_session
from models import AffiliateAccount, AffiliateLedger, Referral


def print_order_commissions(session, order_id: str) -> bool:
    """Print referral breakdown and ledger entries. Returns False if nothing found."""
    referrals = session.query(Referral).filter_by(
        orderID=order_id
    ).order_by(Referral.level).all()

    if not referrals:
        print(f"\n❌ No commissions found for order {order_id}")
        return False

    print("\n" + "=" * 80)
    print("COMMISSION CHECK")
    print("=" * 80)
    print(f"\nOrder: {order_id}")
    print(f"Order amount: ${referrals[0].orderAmount}")
    print(f"Date: {referrals[0].createdAt}")

    print(f"\n{len(referrals)} referral(s) found:")
    print("-" * 80)

    total = Decimal("0")
    for referral in referrals:
        affiliate = session.query(AffiliateAccount).filter_by(
            affiliateID=referral.affiliateID
        ).first()
        label = affiliate.name or affiliate.email if affiliate else referral.affiliateID

        kind = f"Level {referral.level:2}" if referral.isMlmReward else "Direct  "
        flag_marker = " [FLAGGED]" if referral.isFlagged else ""

        print(
            f"{kind}: {label:25} "
            f"{referral.commissionType:10} {referral.commissionRate:>7} "
            f"= ${float(referral.commissionAmount):8.2f} "
            f"({referral.status:7}) {referral.source or ''}{flag_marker}"
        )
        total += referral.commissionAmount

    breakdown = (referrals[0].details or {}).get("itemsBreakdown") if referrals[0].level == 0 else None
    if breakdown:
        print("\nOrder lines:")
        for line in breakdown:
            if line.get("status") == "EXCLUDED":
                print(f"  {line['productId']:20} EXCLUDED ({line['source']})")
            else:
                print(
                    f"  {line['productId']:20} {line['type']:10} {line['rate']:>7} "
                    f"x{line['quantity']:<3} on ${line['basePrice']} = ${line['commission']} ({line['source']})"
                )

    print("-" * 80)
    print(f"\nTotal distributed: ${float(total):.2f}")

    entries = session.query(AffiliateLedger).filter_by(
        referenceID=order_id
    ).order_by(AffiliateLedger.entryID).all()

    print("\n" + "=" * 80)
    print("LEDGER ENTRIES")
    print("=" * 80)

    for entry in entries:
        print(
            f"#{entry.entryID:5} {entry.affiliateID:32} {entry.type:16} "
            f"{entry.amount:>10} {entry.balanceBefore:>10} → {entry.balanceAfter:>10}"
        )

    ledger_total = sum((e.amount for e in entries), Decimal("0"))
    if ledger_total == total:
        print("\n✅ Ledger matches referral records")
    else:
        print(f"\n⚠️  WARNING: ledger total ${ledger_total} != referrals ${total}")

    print("\n" + "=" * 80 + "\n")
    return True


def main():
    """Check commissions."""
    parser = argparse.ArgumentParser(description='Check commissions for an order')
    parser.add_argument('--order-id', help='Order ID to check')
    parser.add_argument('--last', action='store_true', help='Check most recent order')
    args = parser.parse_args()

    initialize(log_level="WARNING")
    session = get_session()

    try:
        if args.last:
            latest = session.query(Referral).order_by(Referral.createdAt.desc()).first()
            order_id = latest.orderID if latest else None
        else:
            order_id = args.order_id

        if not order_id:
            print("❌ Specify --order-id or --last")
            return 1

        return 0 if print_order_commissions(session, order_id) else 1

    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
