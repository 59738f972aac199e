"""Debt ledger.

Debt is never stored. Every change is an appended ``DebtAdjustment`` row and
the balance is folded from those rows on each read:

    debt(user, currency) = max(0, -sum(adjustment_amount))

Negative amounts add debt (a pending order), positive amounts pay it down
(a manual reduction, or items taken off an order).
"""
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from poscrm.core.logging_config import get_logger
from poscrm.domain.models import DebtAdjustment, EUR, MKD, CURRENCIES

logger = get_logger(__name__)

ZERO = Decimal("0")

ORDER_CREATED = "order_created"
ITEMS_REMOVED = "items_removed"
ITEMS_ADDED = "items_added"
MANUAL_REDUCTION = "manual_reduction"


@dataclass(frozen=True)
class DebtBalance:
    eur_debt: Decimal = ZERO
    mkd_debt: Decimal = ZERO

    @property
    def total_debt(self) -> Decimal:
        # EUR + MKD without conversion; display only
        return self.eur_debt + self.mkd_debt

    def to_dict(self) -> dict:
        return {
            "eurDebt": float(self.eur_debt),
            "mkdDebt": float(self.mkd_debt),
            "totalDebt": float(self.total_debt),
        }


def clamp_debt(ledger_sum: Decimal) -> Decimal:
    """Turn a ledger sum into a debt figure: negate, never below zero."""
    debt = -Decimal(ledger_sum)
    return debt if debt > ZERO else ZERO


def fold_balance(sums_by_currency: dict) -> DebtBalance:
    return DebtBalance(
        eur_debt=clamp_debt(sums_by_currency.get(EUR, ZERO)),
        mkd_debt=clamp_debt(sums_by_currency.get(MKD, ZERO)),
    )


def totals_by_currency(lines: Iterable[tuple[str, Decimal]]) -> dict[str, Decimal]:
    """Sum ``(currency, amount)`` pairs, keeping only currencies with a non-zero total."""
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for currency, amount in lines:
        totals[currency] += Decimal(amount)
    return {c: totals[c] for c in CURRENCIES if totals.get(c, ZERO) != ZERO}


class DebtLedger:
    def __init__(self, db: Session):
        self.db = db

    def balances(self, user_id: int) -> DebtBalance:
        rows = self.db.execute(
            select(DebtAdjustment.currency, func.coalesce(func.sum(DebtAdjustment.adjustment_amount), 0))
            .where(DebtAdjustment.user_id == user_id)
            .group_by(DebtAdjustment.currency)
        ).all()
        return fold_balance({currency: Decimal(total) for currency, total in rows})

    def entries(self, user_id: int) -> list[DebtAdjustment]:
        return list(self.db.scalars(
            select(DebtAdjustment)
            .where(DebtAdjustment.user_id == user_id)
            .order_by(DebtAdjustment.created_at, DebtAdjustment.id)
        ))

    def append(
        self,
        user_id: int,
        amount: Decimal,
        currency: str,
        adjustment_type: str,
        created_by: int,
        notes: Optional[str] = None,
    ) -> DebtAdjustment:
        entry = DebtAdjustment(
            user_id=user_id,
            adjustment_amount=amount,
            currency=currency,
            adjustment_type=adjustment_type,
            notes=notes,
            created_by=created_by,
        )
        self.db.add(entry)
        self.db.flush()
        logger.info(
            "Debt adjustment recorded",
            extra={'extra_fields': {
                'user_id': user_id,
                'amount': str(amount),
                'currency': currency,
                'adjustment_type': adjustment_type,
            }}
        )
        return entry

    def append_best_effort(self, **entry) -> Optional[DebtAdjustment]:
        """Append inside a SAVEPOINT; a failure is logged and the outer transaction goes on."""
        try:
            with self.db.begin_nested():
                return self.append(**entry)
        except SQLAlchemyError:
            logger.error(
                "Debt adjustment could not be recorded",
                exc_info=True,
                extra={'extra_fields': {k: str(v) for k, v in entry.items()}}
            )
            return None

    def append_per_currency(
        self,
        user_id: int,
        totals: dict[str, Decimal],
        sign: int,
        adjustment_type: str,
        created_by: int,
        notes: str,
        required: bool = True,
    ) -> list[DebtAdjustment]:
        """Write one entry per currency total, multiplied by ``sign`` (-1 adds debt, +1 removes it)."""
        written = []
        for currency, total in totals.items():
            entry = dict(
                user_id=user_id,
                amount=total * sign,
                currency=currency,
                adjustment_type=adjustment_type,
                created_by=created_by,
                notes=notes,
            )
            if required:
                written.append(self.append(**entry))
            else:
                result = self.append_best_effort(**entry)
                if result is not None:
                    written.append(result)
        return written
