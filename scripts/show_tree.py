#!/usr/bin/env python3
"""
Display the affiliate sponsor tree.

Usage:
    python scripts/show_tree.py [--root-id AFFILIATE_ID] [--max-depth DEPTH]
"""

import sys
import os
import argparse

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.bootstrap import initialize
from core.db import get_session
from models import AffiliateAccount
from affiliate_system.services.network_service import NetworkService

import logging

logger = logging.getLogger(__name__)


def print_tree(session, root: AffiliateAccount, max_depth=None):
    """Print ASCII tree below root."""
    network = NetworkService(session)
    seen = set()

    def print_affiliate(account, prefix="", is_last=True, depth=0):
        if max_depth is not None and depth > max_depth:
            return

        connector = "└─ " if is_last else "├─ "
        active_marker = "✅" if account.isActive else "❌"
        balance_display = f"${account.balance}" if account.balance else ""

        if account.affiliateID in seen:
            print(f"{prefix}{connector}⚠️  {account.affiliateID} (cycle)")
            logger.error(f"Sponsor cycle reached {account.affiliateID} again below {root.affiliateID}")
            return
        seen.add(account.affiliateID)

        print(
            f"{prefix}{connector}{account.name or account.email} "
            f"(ID:{account.affiliateID}) {active_marker} {balance_display}"
        )

        children = network.get_downline(account.affiliateID)
        for i, child in enumerate(children):
            new_prefix = prefix + ("    " if is_last else "│   ")
            print_affiliate(child, new_prefix, i == len(children) - 1, depth + 1)

    print("\n" + "=" * 80)
    print("AFFILIATE NETWORK TREE")
    print("=" * 80)
    print("\nLegend:")
    print("  ✅ = Active affiliate")
    print("  ❌ = Inactive / suspended")
    print("  $amount = Ledger balance")
    print("\n" + "=" * 80 + "\n")
    print_affiliate(root)
    print("\n" + "=" * 80 + "\n")


def main():
    parser = argparse.ArgumentParser(description='Show affiliate sponsor tree')
    parser.add_argument('--root-id', help='Affiliate ID to start from (default: all roots)')
    parser.add_argument('--max-depth', type=int, default=None, help='Maximum depth to display')
    args = parser.parse_args()

    initialize(log_level="WARNING")
    session = get_session()

    try:
        if args.root_id:
            roots = session.query(AffiliateAccount).filter_by(affiliateID=args.root_id).all()
        else:
            roots = session.query(AffiliateAccount).filter(
                AffiliateAccount.sponsorID.is_(None)
            ).all()

        if not roots:
            print("❌ No affiliates found")
            return 1

        for root in roots:
            print_tree(session, root, args.max_depth)
        return 0

    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
