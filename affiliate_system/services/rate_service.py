# affiliate_system/services/rate_service.py
"""
Rate service - where an affiliate's direct commission rate comes from.

Precedence, first hit wins:
    1. product override for the affiliate
    2. product override for the affiliate's group
    3. matched commission rule
    4. group default rate (percentage)
    5. tier default rate (tier's own type)
    6. program default (Config.DEFAULT_COMMISSION_RATE, percentage)

A disabled product override (1 or 2) excludes the product from commission.
Also holds the admin writes for overrides, groups, tiers and plan assignment.
"""
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from config import Config
from models.affiliate import AffiliateAccount
from models.affiliate_group import AffiliateGroup, AffiliateTier
from models.product_rate import AffiliateProductRate
from affiliate_system.config.constants import (
    MAX_RATE_VALUE,
    SOURCE_GLOBAL_DEFAULT,
    SOURCE_GROUP_DEFAULT,
    SOURCE_PRODUCT_GROUP_OVERRIDE,
    SOURCE_PRODUCT_USER_OVERRIDE,
    SOURCE_RULE_PREFIX,
    SOURCE_TIER_DEFAULT,
    ActionType,
)
from affiliate_system.errors import ConditionError, RateValidationError
from affiliate_system.rules.types import RuleAction, RuleDefinition
from affiliate_system.utils.money import to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateChoice:
    """Resolved rate for one order line."""
    action: RuleAction
    source: str
    rule: Optional[RuleDefinition] = None
    excluded: bool = False


class RateService:
    """Rate precedence and plan administration."""

    def __init__(self, session: Session):
        self.session = session

    # =========================================
    # RESOLUTION
    # =========================================

    def resolve(
            self,
            affiliate: AffiliateAccount,
            rule: Optional[RuleDefinition] = None,
            product_id: Optional[str] = None
    ) -> RateChoice:
        """
        Pick the rate for one order line.

        Args:
            affiliate: Credited affiliate (group and tier are read from it)
            rule: Winning commission rule for the line, if any
            product_id: Product of the line; None skips product overrides

        Returns:
            RateChoice; excluded=True when a disabled override applies
        """
        if product_id is not None:
            override = self._find_override(product_id, affiliate_id=affiliate.affiliateID)
            source = SOURCE_PRODUCT_USER_OVERRIDE
            if override is None and affiliate.groupID:
                override = self._find_override(product_id, group_id=affiliate.groupID)
                source = SOURCE_PRODUCT_GROUP_OVERRIDE

            if override is not None:
                choice = self._override_choice(override, source)
                if choice is not None:
                    return choice

        if rule is not None:
            return RateChoice(action=rule.action, source=f"{SOURCE_RULE_PREFIX}{rule.name}", rule=rule)

        group = affiliate.group
        if group is not None and group.commissionRate:
            return RateChoice(
                action=RuleAction(ActionType.PERCENTAGE, Decimal(group.commissionRate)),
                source=SOURCE_GROUP_DEFAULT,
            )

        tier = affiliate.tier
        if tier is not None and tier.commissionRate:
            try:
                action = RuleAction.from_json({"type": tier.commissionType, "value": tier.commissionRate})
                return RateChoice(action=action, source=SOURCE_TIER_DEFAULT)
            except ConditionError as e:
                logger.warning(f"Tier {tier.tierID} ('{tier.name}') has an unusable rate, skipped: {e}")

        return RateChoice(
            action=RuleAction(ActionType.PERCENTAGE, to_decimal(Config.get(Config.DEFAULT_COMMISSION_RATE))),
            source=SOURCE_GLOBAL_DEFAULT,
        )

    def _find_override(
            self,
            product_id: str,
            affiliate_id: Optional[str] = None,
            group_id: Optional[str] = None
    ) -> Optional[AffiliateProductRate]:
        return self.session.query(AffiliateProductRate).filter_by(
            productID=str(product_id),
            affiliateID=affiliate_id,
            groupID=group_id,
        ).first()

    @staticmethod
    def _override_choice(override: AffiliateProductRate, source: str) -> Optional[RateChoice]:
        try:
            action = RuleAction.from_json({"type": override.type, "value": override.rate})
        except ConditionError as e:
            if not override.isDisabled:
                logger.warning(f"Product override {override.rateID} is malformed, skipped: {e}")
                return None
            action = RuleAction(ActionType.PERCENTAGE, Decimal("0"))

        if override.isDisabled:
            logger.debug(f"Product {override.productID} excluded by {source} {override.rateID}")
        return RateChoice(action=action, source=source, excluded=bool(override.isDisabled))

    # =========================================
    # PRODUCT OVERRIDES (Admin)
    # =========================================

    def list_product_rates(
            self,
            affiliate_id: Optional[str] = None,
            group_id: Optional[str] = None
    ) -> List[AffiliateProductRate]:
        """Overrides, newest first, optionally narrowed to one target."""
        query = self.session.query(AffiliateProductRate)
        if affiliate_id is not None:
            query = query.filter(AffiliateProductRate.affiliateID == affiliate_id)
        if group_id is not None:
            query = query.filter(AffiliateProductRate.groupID == group_id)
        return query.order_by(AffiliateProductRate.createdAt.desc()).all()

    def upsert_product_rate(self, data: Dict[str, Any]) -> AffiliateProductRate:
        """
        Create or update a product override.

        Without an id, an existing override for the same product and
        target is updated in place.

        Args:
            data: {"id"?, "productId", "rate", "type", "isDisabled"?,
                   "affiliateId" | "groupId"}

        Raises:
            RateValidationError: invalid input, unknown target or unknown id
        """
        errors: Dict[str, List[str]] = {}

        product_id = str(data.get("productId") or "").strip()
        if not product_id:
            errors.setdefault("productId", []).append("Product is required.")

        affiliate_id = data.get("affiliateId") or None
        group_id = data.get("groupId") or None
        if affiliate_id and group_id:
            errors.setdefault("target", []).append("An override targets an affiliate or a group, not both.")
        elif not affiliate_id and not group_id:
            errors.setdefault("target", []).append("An override needs an affiliate or a group.")
        elif affiliate_id and not self.session.query(AffiliateAccount).filter_by(affiliateID=affiliate_id).first():
            errors.setdefault("affiliateId", []).append(f"Unknown affiliate {affiliate_id}.")
        elif group_id and not self.session.query(AffiliateGroup).filter_by(groupID=group_id).first():
            errors.setdefault("groupId", []).append(f"Unknown group {group_id}.")

        action_type, rate = self._validate_rate(data.get("type", "PERCENTAGE"), data.get("rate"), errors)

        if errors:
            raise RateValidationError("Validation Error", errors)

        rate_id = data.get("id")
        if rate_id:
            override = self.session.query(AffiliateProductRate).filter_by(rateID=rate_id).first()
            if not override:
                raise RateValidationError(f"Product override {rate_id} not found")
        else:
            override = self._find_override(product_id, affiliate_id=affiliate_id, group_id=group_id)
            if not override:
                override = AffiliateProductRate()
                self.session.add(override)

        override.productID = product_id
        override.affiliateID = affiliate_id
        override.groupID = group_id
        override.rate = rate
        override.type = action_type.value
        override.isDisabled = bool(data.get("isDisabled", False))

        self.session.flush()
        logger.info(
            f"Product override saved: {override.rateID} product={product_id} "
            f"{'affiliate=' + affiliate_id if affiliate_id else 'group=' + group_id} "
            f"{rate} {action_type.value}{' (disabled)' if override.isDisabled else ''}"
        )
        return override

    def delete_product_rate(self, rate_id: str) -> bool:
        override = self.session.query(AffiliateProductRate).filter_by(rateID=rate_id).first()
        if not override:
            return False
        self.session.delete(override)
        self.session.flush()
        logger.info(f"Product override deleted: {rate_id}")
        return True

    # =========================================
    # GROUPS, TIERS, PLAN ASSIGNMENT (Admin)
    # =========================================

    def upsert_group(self, data: Dict[str, Any]) -> AffiliateGroup:
        """
        Create or update a group. commissionRate is optional; empty means no group default.

        Raises:
            RateValidationError: invalid input, duplicate name or unknown id
        """
        errors: Dict[str, List[str]] = {}

        name = (data.get("name") or "").strip()
        if len(name) < 2:
            errors.setdefault("name", []).append("Group name must be at least 2 characters.")

        rate = None
        if data.get("commissionRate") not in (None, ""):
            _, rate = self._validate_rate(ActionType.PERCENTAGE.value, data.get("commissionRate"), errors,
                                          key="commissionRate")

        group = self._load_for_update(AffiliateGroup.groupID, data.get("id"), "Group")
        duplicate = self.session.query(AffiliateGroup).filter(AffiliateGroup.name == name).first()
        if duplicate is not None and duplicate is not group:
            errors.setdefault("name", []).append("A group with this name already exists.")

        if errors:
            raise RateValidationError("Validation Error", errors)

        if group is None:
            group = AffiliateGroup()
            self.session.add(group)

        group.name = name
        group.description = data.get("description")
        group.commissionRate = rate

        self.session.flush()
        logger.info(f"Affiliate group saved: {group.groupID} '{name}' rate={rate}")
        return group

    def upsert_tier(self, data: Dict[str, Any]) -> AffiliateTier:
        """
        Create or update a tier.

        Raises:
            RateValidationError: invalid input, duplicate name or unknown id
        """
        errors: Dict[str, List[str]] = {}

        name = (data.get("name") or "").strip()
        if len(name) < 2:
            errors.setdefault("name", []).append("Name must be at least 2 characters.")

        action_type, rate = self._validate_rate(
            data.get("commissionType", "PERCENTAGE"), data.get("commissionRate"), errors,
            key="commissionRate"
        )

        tier = self._load_for_update(AffiliateTier.tierID, data.get("id"), "Tier")
        duplicate = self.session.query(AffiliateTier).filter(AffiliateTier.name == name).first()
        if duplicate is not None and duplicate is not tier:
            errors.setdefault("name", []).append("Tier name already exists.")

        if errors:
            raise RateValidationError("Validation Error", errors)

        if tier is None:
            tier = AffiliateTier()
            self.session.add(tier)

        tier.name = name
        tier.commissionRate = rate
        tier.commissionType = action_type.value

        self.session.flush()
        logger.info(f"Affiliate tier saved: {tier.tierID} '{name}' {rate} {action_type.value}")
        return tier

    def delete_group(self, group_id: str) -> bool:
        """Raises RateValidationError while affiliates are still in the group."""
        return self._delete_plan(AffiliateGroup.groupID, group_id, AffiliateAccount.groupID, "group")

    def delete_tier(self, tier_id: str) -> bool:
        """Raises RateValidationError while affiliates are still on the tier."""
        return self._delete_plan(AffiliateTier.tierID, tier_id, AffiliateAccount.tierID, "tier")

    def set_affiliate_plan(
            self,
            affiliate_id: str,
            group_id: Optional[str] = None,
            tier_id: Optional[str] = None
    ) -> AffiliateAccount:
        """
        Assign (or clear, with None) an affiliate's group and tier.

        Raises:
            RateValidationError: unknown affiliate, group or tier
        """
        account = self.session.query(AffiliateAccount).filter_by(affiliateID=affiliate_id).first()
        if not account:
            raise RateValidationError(f"Affiliate {affiliate_id} not found")
        if group_id and not self.session.query(AffiliateGroup).filter_by(groupID=group_id).first():
            raise RateValidationError(f"Group {group_id} not found")
        if tier_id and not self.session.query(AffiliateTier).filter_by(tierID=tier_id).first():
            raise RateValidationError(f"Tier {tier_id} not found")

        account.groupID = group_id or None
        account.tierID = tier_id or None
        self.session.flush()
        # Relationships are read by resolve()
        self.session.expire(account, ['group', 'tier'])

        logger.info(f"Affiliate {affiliate_id} plan: group={account.groupID} tier={account.tierID}")
        return account

    # =========================================
    # HELPERS
    # =========================================

    @staticmethod
    def _validate_rate(raw_type: Any, raw_rate: Any, errors: Dict[str, List[str]], key: str = "rate"):
        try:
            action_type = ActionType(str(raw_type).upper())
        except ValueError:
            errors.setdefault("type", []).append(f"Unknown commission type {raw_type!r}.")
            action_type = ActionType.PERCENTAGE

        try:
            rate = to_decimal(raw_rate)
        except InvalidOperation:
            errors.setdefault(key, []).append(f"Rate must be numeric, got {raw_rate!r}.")
            return action_type, Decimal("0")

        if not rate.is_finite() or rate < 0:
            errors.setdefault(key, []).append("Rate cannot be negative.")
        elif rate > MAX_RATE_VALUE:
            errors.setdefault(key, []).append(f"Rate must not exceed {MAX_RATE_VALUE}.")
        return action_type, rate

    def _load_for_update(self, id_column, row_id: Optional[str], label: str):
        if not row_id:
            return None
        row = self.session.query(id_column.class_).filter(id_column == row_id).first()
        if row is None:
            raise RateValidationError(f"{label} {row_id} not found")
        return row

    def _delete_plan(self, id_column, row_id: str, member_column, label: str) -> bool:
        row = self.session.query(id_column.class_).filter(id_column == row_id).first()
        if not row:
            return False

        members = self.session.query(AffiliateAccount).filter(member_column == row_id).count()
        if members:
            raise RateValidationError(f"Cannot delete: {members} affiliates are in this {label}.")

        self.session.delete(row)
        self.session.flush()
        logger.info(f"Affiliate {label} deleted: {row_id}")
        return True
