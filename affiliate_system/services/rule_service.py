# affiliate_system/services/rule_service.py
"""
Rule store - read path for the engine, write path for the admin back-office.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models.commission_rule import CommissionRule
from affiliate_system.config.constants import MAX_MONEY, MAX_RATE_VALUE, ActionType
from affiliate_system.errors import ConditionError, RuleStoreError, RuleValidationError
from affiliate_system.rules.types import RuleAction, RuleConditions, RuleDefinition, as_utc

logger = logging.getLogger(__name__)


def _action_ceiling(action_type: ActionType):
    """Largest value the rate and amount columns can carry for this action type."""
    return MAX_RATE_VALUE if action_type is ActionType.PERCENTAGE else MAX_MONEY


class RuleService:
    """Service for loading and maintaining commission rules."""

    def __init__(self, session: Session):
        self.session = session

    # =========================================
    # READ OPERATIONS
    # =========================================

    def list_active_rules(self, program_id: Optional[str] = None) -> List[RuleDefinition]:
        """
        Load active rules for a program (plus global rules) in evaluation order.

        Malformed rows are logged and skipped. Date windows are NOT applied
        here; select_rule does that against the evaluation time.

        Raises:
            RuleStoreError: database unreadable
        """
        try:
            query = self.session.query(CommissionRule).filter(
                CommissionRule.isActive.is_(True)
            )
            if program_id is not None:
                query = query.filter(or_(
                    CommissionRule.programID == program_id,
                    CommissionRule.programID.is_(None)
                ))
            else:
                query = query.filter(CommissionRule.programID.is_(None))

            rows = query.order_by(
                CommissionRule.priority.desc(),
                CommissionRule.createdAt.asc()
            ).all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to read commission rules (program={program_id}): {e}")
            raise RuleStoreError(f"Commission rules unavailable: {e}") from e

        rules = []
        for row in rows:
            try:
                rules.append(RuleDefinition.from_model(row))
            except ConditionError as e:
                logger.warning(f"Skipping malformed commission rule {row.ruleID} ('{row.name}'): {e}")

        logger.debug(f"Loaded {len(rules)}/{len(rows)} active rules for program {program_id}")
        return rules

    def get_rules(self) -> List[CommissionRule]:
        """All rules for the admin list: active first, then by priority."""
        return self.session.query(CommissionRule).order_by(
            CommissionRule.isActive.desc(),
            CommissionRule.priority.desc()
        ).all()

    # =========================================
    # WRITE OPERATIONS (Admin)
    # =========================================

    def upsert_rule(self, data: Dict[str, Any]) -> CommissionRule:
        """
        Create or update a rule from admin input.

        Args:
            data: {"id"?, "name", "isActive"?, "priority"?, "programId"?,
                   "conditions", "action", "startDate"?, "endDate"?,
                   "affiliateSpecificIds"?}

        Returns:
            The saved CommissionRule (flushed, not committed)

        Raises:
            RuleValidationError: invalid input or unknown rule id
        """
        errors: Dict[str, List[str]] = {}

        name = (data.get("name") or "").strip()
        if len(name) < 3:
            errors.setdefault("name", []).append("Rule name is required.")

        conditions = None
        try:
            conditions = RuleConditions.from_json(data.get("conditions") or {})
            for bound in (conditions.min_order_amount, conditions.max_order_amount):
                if bound is not None and bound > MAX_MONEY:
                    errors.setdefault("conditions", []).append(
                        f"Order amount bounds must not exceed {MAX_MONEY}."
                    )
                    break
        except ConditionError as e:
            errors.setdefault("conditions", []).append(str(e))

        action = None
        try:
            action = RuleAction.from_json(data.get("action"))
            if not action.value.is_finite() or action.value < 0:
                errors.setdefault("action", []).append("Action value must be 0 or greater.")
            elif action.value > _action_ceiling(action.type):
                errors.setdefault("action", []).append(
                    f"Action value must not exceed {_action_ceiling(action.type)}."
                )
        except ConditionError as e:
            errors.setdefault("action", []).append(str(e))

        start_date = self._parse_date(data.get("startDate"), "startDate", errors)
        end_date = self._parse_date(data.get("endDate"), "endDate", errors)
        if start_date and end_date and end_date < start_date:
            errors.setdefault("endDate", []).append("End date must be after start date.")

        try:
            priority = int(data.get("priority") or 0)
        except (TypeError, ValueError):
            errors.setdefault("priority", []).append("Priority must be an integer.")
            priority = 0

        affiliate_ids = data.get("affiliateSpecificIds") or []
        if not isinstance(affiliate_ids, list):
            errors.setdefault("affiliateSpecificIds", []).append("Must be a list of ids.")

        if errors:
            raise RuleValidationError("Validation Error", errors)

        # Auto-assign priority if missing
        if not priority:
            max_priority = self.session.query(func.max(CommissionRule.priority)).scalar()
            priority = (max_priority or 0) + 1

        rule_id = data.get("id")
        if rule_id:
            rule = self.session.query(CommissionRule).filter_by(ruleID=rule_id).first()
            if not rule:
                raise RuleValidationError(f"Rule {rule_id} not found")
        else:
            rule = CommissionRule()
            self.session.add(rule)

        rule.name = name
        rule.programID = data.get("programId")
        rule.isActive = bool(data.get("isActive", True))
        rule.priority = priority
        rule.conditions = conditions.to_json()
        rule.action = action.to_json()
        # Stored naive, in UTC
        rule.startDate = start_date.replace(tzinfo=None) if start_date else None
        rule.endDate = end_date.replace(tzinfo=None) if end_date else None
        rule.affiliateSpecificIds = [str(a) for a in affiliate_ids]

        self.session.flush()
        logger.info(f"Commission rule saved: {rule.ruleID} '{rule.name}' priority={rule.priority}")
        return rule

    def reorder_rules(self, items: List[Dict[str, Any]]) -> int:
        """
        Apply new priorities: [{"id": ..., "priority": n}, ...].

        Returns:
            Number of rules updated
        """
        updated = 0
        for item in items:
            rule = self.session.query(CommissionRule).filter_by(ruleID=item["id"]).first()
            if not rule:
                logger.warning(f"Reorder: rule {item['id']} not found")
                continue
            rule.priority = int(item["priority"])
            updated += 1

        self.session.flush()
        logger.info(f"Reordered {updated} commission rules")
        return updated

    def delete_rule(self, rule_id: str) -> bool:
        rule = self.session.query(CommissionRule).filter_by(ruleID=rule_id).first()
        if not rule:
            return False
        self.session.delete(rule)
        self.session.flush()
        logger.info(f"Commission rule deleted: {rule_id}")
        return True

    @staticmethod
    def _parse_date(value: Any, key: str, errors: Dict[str, List[str]]) -> Optional[datetime]:
        if value in (None, ""):
            return None
        if isinstance(value, datetime):
            return as_utc(value)
        try:
            return as_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
        except ValueError:
            errors.setdefault(key, []).append(f"Invalid date: {value!r}")
            return None
