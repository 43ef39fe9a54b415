# affiliate_system/services/commission_service.py
"""
Commission calculation service - runs once per completed order.

Flow:
    order completed → program/affiliate/fraud gates → rule store
    → per line: select_rule → rate precedence (RateService) → compute_commission
    → direct referral + ledger credit
    → distribute_upline (if network enabled) → MLM referrals + ledger credits
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from config import Config
from models.affiliate import AffiliateAccount
from models.referral import Referral
from affiliate_system.config.constants import (
    ActionType,
    CommissionBasis,
    CustomerType,
    LedgerType,
    ReferralStatus,
    SOURCE_MIXED,
)
from affiliate_system.mlm.payout_walker import UplineDistribution, distribute_upline
from affiliate_system.rules.resolver import compute_commission
from affiliate_system.rules.selector import select_rule
from affiliate_system.rules.types import OrderContext, RuleDefinition, as_utc
from affiliate_system.services.fraud_service import FraudService
from affiliate_system.services.ledger_service import LedgerService
from affiliate_system.services.mlm_config_service import MlmConfigService
from affiliate_system.services.network_service import NetworkService
from affiliate_system.services.rate_service import RateChoice, RateService
from affiliate_system.services.rule_service import RuleService
from affiliate_system.utils.money import to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderItem:
    """One order line. total is the line amount percentages apply to."""
    product_id: str
    total: Decimal
    quantity: int = 1
    category_id: Optional[str] = None

    @classmethod
    def from_event(cls, data: Mapping[str, Any]) -> "OrderItem":
        """
        Raises:
            ValueError: missing productId, non-numeric total or quantity below 1
        """
        if not isinstance(data, Mapping) or not data.get("productId"):
            raise ValueError(f"order item needs a productId, got {data!r}")

        raw_quantity = data.get("quantity", 1)
        try:
            quantity = int(raw_quantity)
        except (TypeError, ValueError):
            raise ValueError(f"item quantity must be an integer, got {raw_quantity!r}")
        if quantity < 1:
            raise ValueError(f"item quantity must be at least 1, got {raw_quantity!r}")

        category_id = data.get("categoryId")
        return cls(
            product_id=str(data["productId"]),
            total=to_decimal(data.get("total", 0)),
            quantity=quantity,
            category_id=str(category_id) if category_id is not None else None,
        )


@dataclass(frozen=True)
class OrderCompletion:
    """Order facts supplied by the order workflow."""
    order_id: str
    affiliate_id: Optional[str]
    order_total: Decimal
    subtotal: Optional[Decimal] = None
    profit_amount: Optional[Decimal] = None  # price - cost, required for PROFIT basis
    customer_type: CustomerType = CustomerType.NEW
    category_ids: FrozenSet[str] = field(default_factory=frozenset)
    buyer_email: Optional[str] = None
    program_id: Optional[str] = None
    items: Tuple[OrderItem, ...] = ()

    def __post_init__(self):
        if self.customer_type is CustomerType.ALL:
            raise ValueError("an order is either NEW or RETURNING")

    @property
    def base_amount(self) -> Decimal:
        """Net amount commission percentages apply to."""
        return self.subtotal if self.subtotal is not None else self.order_total

    @classmethod
    def from_event(cls, data: Mapping[str, Any]) -> "OrderCompletion":
        """
        Build from an ORDER_COMPLETED event payload (camelCase keys).

        Raises:
            ValueError: missing orderId, non-numeric amounts, customerType
                other than NEW/RETURNING, or a malformed item
        """
        if not data.get("orderId"):
            raise ValueError("orderId is required")

        def optional_amount(key):
            value = data.get(key)
            return to_decimal(value) if value is not None else None

        customer_type = CustomerType(str(data.get("customerType", "NEW")).upper())
        if customer_type is CustomerType.ALL:
            raise ValueError("customerType must be NEW or RETURNING")

        raw_items = data.get("items") or []
        if not isinstance(raw_items, list):
            raise ValueError("items must be a list")

        return cls(
            order_id=str(data["orderId"]),
            affiliate_id=data.get("affiliateId"),
            order_total=to_decimal(data.get("orderTotal", 0)),
            subtotal=optional_amount("subtotal"),
            profit_amount=optional_amount("profitAmount"),
            customer_type=customer_type,
            category_ids=frozenset(str(c) for c in data.get("categoryIds") or []),
            buyer_email=data.get("buyerEmail"),
            program_id=data.get("programId"),
            items=tuple(OrderItem.from_event(item) for item in raw_items),
        )


@dataclass
class _PricedLine:
    product_id: Optional[str]
    base: Decimal
    quantity: int
    choice: RateChoice
    commission: Decimal

    def to_record(self) -> Dict:
        if self.choice.excluded:
            return {"productId": self.product_id, "source": self.choice.source, "status": "EXCLUDED"}
        return {
            "productId": self.product_id,
            "source": self.choice.source,
            "type": self.choice.action.type.value,
            "rate": str(self.choice.action.value),
            "quantity": self.quantity,
            "basePrice": str(self.base),
            "commission": str(self.commission),
        }


class CommissionService:
    """Service for calculating and recording affiliate commissions."""

    def __init__(self, session: Session):
        self.session = session
        self.rules = RuleService(session)
        self.rates = RateService(session)
        self.mlm_config = MlmConfigService(session)
        self.network = NetworkService(session)
        self.ledger = LedgerService(session)
        self.fraud = FraudService(session)

    def process_order(self, order: OrderCompletion, now: Optional[datetime] = None) -> Dict:
        """
        Process all commissions for a completed order.

        Rows are flushed, not committed; the caller owns the transaction.

        Returns:
            {"success": False, "error": CODE} when the order is skipped, else
            {"success": True, "order", "commission", "ruleId", "source",
             "items", "payouts", "anomaly", "totalDistributed"}

        Raises:
            RuleStoreError: rule store unreadable
        """
        now = as_utc(now) or datetime.now(timezone.utc)

        # 1. At-most-once per order
        already = self.session.query(Referral.referralID).filter_by(
            orderID=order.order_id
        ).first()
        if already:
            logger.info(f"Order {order.order_id} already processed, skipping")
            return {"success": False, "error": "ALREADY_PROCESSED"}

        # 2. Affiliate
        if not order.affiliate_id:
            return {"success": False, "error": "NO_AFFILIATE"}

        affiliate = self.session.query(AffiliateAccount).filter_by(
            affiliateID=order.affiliate_id
        ).first()
        if not affiliate or not affiliate.isActive:
            logger.info(f"Affiliate {order.affiliate_id} missing or inactive for order {order.order_id}")
            return {"success": False, "error": "AFFILIATE_INACTIVE"}

        # 3. Program switch
        if not Config.get(Config.PROGRAM_ENABLED):
            logger.info(f"Affiliate program disabled, order {order.order_id} not commissioned")
            return {"success": False, "error": "PROGRAM_DISABLED"}

        # 4. Fraud checks
        is_self = self.fraud.is_self_referral(affiliate.affiliateID, order.buyer_email)
        if is_self and not Config.get(Config.ALLOW_SELF_REFERRAL):
            logger.warning(f"Commission blocked for order {order.order_id}: SELF_REFERRAL")
            return {"success": False, "error": "SELF_REFERRAL_BLOCKED"}

        if self.fraud.check_velocity(affiliate.affiliateID, now):
            logger.warning(f"Commission blocked for order {order.order_id}: VELOCITY_LIMIT")
            return {"success": False, "error": "VELOCITY_BLOCKED"}

        # 5. Rate per line
        rules = self.rules.list_active_rules(order.program_id)
        lines = self._price_lines(order, affiliate, rules, now)
        priced = [line for line in lines if not line.choice.excluded]

        commission = sum((line.commission for line in priced), Decimal("0.00"))
        sources = {line.choice.source for line in lines}
        source = sources.pop() if len(sources) == 1 else SOURCE_MIXED
        rule_ids = {line.choice.rule.id for line in priced if line.choice.rule is not None}
        rule_id = rule_ids.pop() if len(rule_ids) == 1 else None

        if commission == 0 and not Config.get(Config.ZERO_VALUE_REFERRALS):
            logger.info(f"Order {order.order_id}: zero commission ignored ({source})")
            return {"success": True, "message": "ZERO_COMMISSION_IGNORED", "commission": commission}

        # 6. Direct referral + ledger credit
        available_at = now + timedelta(days=int(Config.get(Config.HOLDING_PERIOD_DAYS)))

        actions = {line.choice.action for line in priced}
        if len(actions) > 1:
            commission_type, commission_rate = SOURCE_MIXED, Decimal("0")
        elif actions:
            action = actions.pop()
            commission_type, commission_rate = action.type.value, action.value
        else:
            commission_type, commission_rate = ActionType.PERCENTAGE.value, Decimal("0")

        details = {"customerType": order.customer_type.value, "programId": order.program_id}
        if order.items:
            details["itemsBreakdown"] = [line.to_record() for line in lines]

        direct = Referral(
            affiliateID=affiliate.affiliateID,
            orderID=order.order_id,
            level=0,
            isMlmReward=False,
            orderAmount=order.order_total,
            baseAmount=sum((line.base for line in priced), Decimal("0")) if order.items else order.base_amount,
            basis=CommissionBasis.SALES_AMOUNT.value,
            commissionType=commission_type,
            commissionRate=commission_rate,
            commissionAmount=commission,
            ruleID=rule_id,
            source=source,
            status=ReferralStatus.PENDING.value,
            availableAt=available_at,
            details=details,
            createdAt=now,
        )
        self.session.add(direct)
        self.session.flush()

        if commission > 0:
            self.ledger.append_entry(
                affiliate.affiliateID,
                LedgerType.COMMISSION,
                commission,
                description=f"Commission for order {order.order_id} ({source})",
                reference_id=order.order_id,
            )

        # 7. Network payouts
        distribution = self._distribute_network(order, affiliate.affiliateID, available_at, now)

        if distribution.anomaly:
            direct.isFlagged = True
            direct.details = dict(
                direct.details or {},
                anomaly=distribution.anomaly,
                anomalyAffiliateId=distribution.anomaly_affiliate_id,
            )
            self.session.flush()

        total = commission + distribution.total

        logger.info(
            f"Processed order {order.order_id}: commission {commission} to "
            f"{affiliate.affiliateID} ({source}), {len(distribution)} network payouts, "
            f"total {total}"
        )

        return {
            "success": True,
            "order": order.order_id,
            "commission": commission,
            "ruleId": rule_id,
            "source": source,
            "items": [line.to_record() for line in lines] if order.items else [],
            "payouts": [p.to_record(order.order_id) for p in distribution],
            "anomaly": distribution.anomaly,
            "totalDistributed": total,
        }

    def _price_lines(
            self,
            order: OrderCompletion,
            affiliate: AffiliateAccount,
            rules: List[RuleDefinition],
            now: datetime
    ) -> List[_PricedLine]:
        """
        Resolve rate and commission per order line.

        An order without items is a single line over its base amount.
        Rule conditions see the order amount and the line's category
        (the order's categories when the line has none).
        """
        if not order.items:
            context = self._context(order, affiliate, order.category_ids)
            choice = self.rates.resolve(affiliate, select_rule(rules, context, now))
            return [_PricedLine(
                product_id=None,
                base=order.base_amount,
                quantity=1,
                choice=choice,
                commission=compute_commission(choice.action, order.base_amount),
            )]

        lines = []
        for item in order.items:
            categories = frozenset({item.category_id}) if item.category_id else order.category_ids
            context = self._context(order, affiliate, categories)
            choice = self.rates.resolve(affiliate, select_rule(rules, context, now), item.product_id)

            if choice.excluded:
                logger.info(f"Order {order.order_id}: product {item.product_id} excluded ({choice.source})")
                amount = Decimal("0.00")
            else:
                amount = compute_commission(choice.action, item.total, item.quantity)

            lines.append(_PricedLine(
                product_id=item.product_id,
                base=item.total,
                quantity=item.quantity,
                choice=choice,
                commission=amount,
            ))
        return lines

    @staticmethod
    def _context(order: OrderCompletion, affiliate: AffiliateAccount, categories: FrozenSet[str]) -> OrderContext:
        return OrderContext(
            order_amount=order.order_total,
            customer_type=order.customer_type,
            category_ids=categories,
            affiliate_id=affiliate.affiliateID,
            order_id=order.order_id,
        )

    def _distribute_network(
            self,
            order: OrderCompletion,
            seller_id: str,
            available_at: datetime,
            now: datetime
    ) -> UplineDistribution:
        """Compute and persist MLM payouts for the seller's upline."""
        settings = self.mlm_config.get_mlm_config()
        if not settings.is_enabled:
            return UplineDistribution()

        if settings.commission_basis is CommissionBasis.PROFIT:
            if order.profit_amount is None:
                logger.warning(
                    f"MLM basis is PROFIT but order {order.order_id} has no profit amount, "
                    f"network payouts skipped"
                )
                return UplineDistribution()
            base = order.profit_amount
        else:
            base = order.base_amount

        distribution = distribute_upline(
            seller_id,
            base,
            settings,
            self.network.get_sponsor,
            self.network.is_active,
        )

        for payout in distribution:
            self.session.add(Referral(
                affiliateID=payout.affiliate_id,
                orderID=order.order_id,
                level=payout.level,
                isMlmReward=True,
                fromDownlineID=seller_id,
                orderAmount=order.order_total,
                baseAmount=base,
                basis=payout.basis.value,
                commissionType=ActionType.PERCENTAGE.value,
                commissionRate=payout.rate,
                commissionAmount=payout.amount,
                source=f"MLM_LEVEL_{payout.level}",
                status=ReferralStatus.PENDING.value,
                availableAt=available_at,
                details={"sourceAffiliate": seller_id},
                createdAt=now,
            ))
            self.session.flush()

            self.ledger.append_entry(
                payout.affiliate_id,
                LedgerType.COMMISSION,
                payout.amount,
                description=f"Level {payout.level} network commission for order {order.order_id}",
                reference_id=order.order_id,
            )

        return distribution
