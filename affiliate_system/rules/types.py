# affiliate_system/rules/types.py
"""
Typed views over stored commission rules.

CommissionRule rows keep conditions/action as free-form JSON; everything
the engine evaluates goes through the parsers here first, so a bad row is
rejected at the boundary instead of failing half-way through evaluation.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, FrozenSet, Iterable, Mapping, Optional

from affiliate_system.config.constants import ActionType, CustomerType
from affiliate_system.errors import ConditionError
from affiliate_system.utils.money import to_decimal

KNOWN_CONDITION_KEYS = frozenset({
    "minOrderAmount", "maxOrderAmount", "customerType", "categoryIds",
})


def _amount(raw: Any, key: str) -> Decimal:
    try:
        value = to_decimal(raw)
    except InvalidOperation:
        raise ConditionError(f"{key} must be numeric, got {raw!r}")
    if not value.is_finite() or value < 0:
        raise ConditionError(f"{key} must be a finite non-negative number, got {raw!r}")
    return value


def _id_set(raw: Any, key: str) -> FrozenSet[str]:
    if isinstance(raw, (str, bytes)) or not isinstance(raw, Iterable):
        raise ConditionError(f"{key} must be a list of ids, got {raw!r}")
    return frozenset(str(item) for item in raw)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize to an aware UTC datetime.

    Naive values (as returned by most drivers for DateTime columns) are
    taken to be UTC already; aware values are converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class RuleConditions:
    """AND-combined predicates. No field set means the rule always matches."""
    min_order_amount: Optional[Decimal] = None
    max_order_amount: Optional[Decimal] = None
    customer_type: Optional[CustomerType] = None
    category_ids: Optional[FrozenSet[str]] = None

    @property
    def is_empty(self) -> bool:
        return (
            self.min_order_amount is None
            and self.max_order_amount is None
            and self.customer_type is None
            and not self.category_ids
        )

    @classmethod
    def from_json(cls, raw: Optional[Mapping[str, Any]]) -> "RuleConditions":
        """
        Parse stored conditions JSON.

        None/{} and null-valued keys are treated as absent; an empty
        categoryIds list is absent too. Unknown keys are ignored.

        Raises:
            ConditionError: on non-mapping input or malformed values
        """
        if raw is None:
            return cls()
        if not isinstance(raw, Mapping):
            raise ConditionError(f"conditions must be an object, got {type(raw).__name__}")

        min_amount = raw.get("minOrderAmount")
        max_amount = raw.get("maxOrderAmount")
        customer_type = raw.get("customerType")
        category_ids = raw.get("categoryIds")

        parsed_type = None
        if customer_type is not None:
            try:
                parsed_type = CustomerType(str(customer_type).upper())
            except ValueError:
                raise ConditionError(f"unknown customerType {customer_type!r}")

        parsed_categories = None
        if category_ids is not None:
            parsed_categories = _id_set(category_ids, "categoryIds") or None

        return cls(
            min_order_amount=_amount(min_amount, "minOrderAmount") if min_amount is not None else None,
            max_order_amount=_amount(max_amount, "maxOrderAmount") if max_amount is not None else None,
            customer_type=parsed_type,
            category_ids=parsed_categories,
        )

    def to_json(self) -> dict:
        data = {}
        if self.min_order_amount is not None:
            data["minOrderAmount"] = str(self.min_order_amount)
        if self.max_order_amount is not None:
            data["maxOrderAmount"] = str(self.max_order_amount)
        if self.customer_type is not None:
            data["customerType"] = self.customer_type.value
        if self.category_ids:
            data["categoryIds"] = sorted(self.category_ids)
        return data


@dataclass(frozen=True)
class RuleAction:
    type: ActionType
    value: Decimal

    @classmethod
    def from_json(cls, raw: Optional[Mapping[str, Any]]) -> "RuleAction":
        """
        Parse stored action JSON: {"type": "PERCENTAGE"|"FIXED", "value": n}.

        Negative values are accepted here and clamped by the resolver;
        the admin write path rejects them.

        Raises:
            ConditionError: on missing/unknown type or non-numeric value
        """
        if not isinstance(raw, Mapping):
            raise ConditionError(f"action must be an object, got {type(raw).__name__}")
        try:
            action_type = ActionType(str(raw.get("type", "")).upper())
        except ValueError:
            raise ConditionError(f"unknown action type {raw.get('type')!r}")
        try:
            value = to_decimal(raw.get("value"))
        except InvalidOperation:
            raise ConditionError(f"action value must be numeric, got {raw.get('value')!r}")
        return cls(type=action_type, value=value)

    def to_json(self) -> dict:
        return {"type": self.type.value, "value": str(self.value)}


@dataclass(frozen=True)
class OrderContext:
    """What the evaluator knows about a completed order."""
    order_amount: Decimal
    customer_type: CustomerType
    category_ids: FrozenSet[str] = frozenset()
    affiliate_id: Optional[str] = None
    order_id: Optional[str] = None

    def __post_init__(self):
        if self.customer_type is CustomerType.ALL:
            raise ValueError("an order is either NEW or RETURNING")


@dataclass(frozen=True)
class RuleDefinition:
    """Validated, read-only view of a CommissionRule row."""
    id: str
    name: str
    action: RuleAction
    conditions: RuleConditions = field(default_factory=RuleConditions)
    is_active: bool = True
    priority: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    affiliate_ids: FrozenSet[str] = frozenset()

    @classmethod
    def from_model(cls, rule) -> "RuleDefinition":
        """
        Build from a CommissionRule model.

        Raises:
            ConditionError: stored JSON is malformed
        """
        try:
            priority = int(rule.priority or 0)
        except (TypeError, ValueError):
            raise ConditionError(f"priority must be an integer, got {rule.priority!r}")

        return cls(
            id=rule.ruleID,
            name=rule.name,
            action=RuleAction.from_json(rule.action),
            conditions=RuleConditions.from_json(rule.conditions),
            is_active=bool(rule.isActive),
            priority=priority,
            start_date=as_utc(rule.startDate),
            end_date=as_utc(rule.endDate),
            created_at=as_utc(rule.createdAt),
            affiliate_ids=_id_set(rule.affiliateSpecificIds or [], "affiliateSpecificIds"),
        )

    def is_live(self, now: datetime) -> bool:
        """Active flag plus inclusive [start_date, end_date] window; open bounds allowed."""
        if not self.is_active:
            return False
        now = as_utc(now)
        if self.start_date is not None and now < self.start_date:
            return False
        if self.end_date is not None and now > self.end_date:
            return False
        return True

    def applies_to(self, affiliate_id: Optional[str]) -> bool:
        if not self.affiliate_ids:
            return True
        return affiliate_id is not None and affiliate_id in self.affiliate_ids
