"""Status state machines for quotes, orders and invoices.

Each document kind has one table mapping every status to the set of statuses
a caller may request from it. Side-effect transitions (conversion, invoicing,
the rollbacks triggered by deletes) are not in these tables; the managers
perform them directly.
"""

from __future__ import annotations

from enum import Enum

from salesops.errors import BusinessRuleError


class QuoteStatus(str, Enum):
    DRAFT = "DRAFT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CONVERTED_TO_ORDER = "CONVERTED_TO_ORDER"


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROCESS = "IN_PROCESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    INVOICED = "INVOICED"


class InvoiceStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"


QUOTE_TRANSITIONS: dict[QuoteStatus, frozenset[QuoteStatus]] = {
    QuoteStatus.DRAFT: frozenset({QuoteStatus.DRAFT, QuoteStatus.ACCEPTED, QuoteStatus.REJECTED}),
    QuoteStatus.ACCEPTED: frozenset({QuoteStatus.ACCEPTED, QuoteStatus.REJECTED}),
    QuoteStatus.REJECTED: frozenset({QuoteStatus.REJECTED}),
    QuoteStatus.CONVERTED_TO_ORDER: frozenset({QuoteStatus.CONVERTED_TO_ORDER}),
}

# statuses a quote may be converted from
QUOTE_CONVERTIBLE = frozenset({QuoteStatus.DRAFT, QuoteStatus.ACCEPTED})

ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PENDING, OrderStatus.IN_PROCESS, OrderStatus.CANCELLED}),
    OrderStatus.IN_PROCESS: frozenset({OrderStatus.IN_PROCESS, OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.CANCELLED: frozenset({OrderStatus.CANCELLED}),
    OrderStatus.INVOICED: frozenset({OrderStatus.INVOICED}),
}

# an order in one of these statuses can no longer be edited
ORDER_LOCKED = frozenset({OrderStatus.INVOICED, OrderStatus.COMPLETED})

INVOICE_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.PENDING: frozenset({InvoiceStatus.PENDING, InvoiceStatus.PAID, InvoiceStatus.OVERDUE}),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.OVERDUE, InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset({InvoiceStatus.PAID}),
}


def _assert_exhaustive(enum_cls: type[Enum], table: dict) -> None:
    missing = set(enum_cls) - set(table)
    if missing:
        names = ", ".join(sorted(m.name for m in missing))
        raise RuntimeError(f"{enum_cls.__name__} transition table is missing: {names}")


_assert_exhaustive(QuoteStatus, QUOTE_TRANSITIONS)
_assert_exhaustive(OrderStatus, ORDER_TRANSITIONS)
_assert_exhaustive(InvoiceStatus, INVOICE_TRANSITIONS)


def _check(kind: str, table: dict, current, target) -> None:
    if target not in table[current]:
        raise BusinessRuleError(
            f"Invalid {kind} status transition from {current.value} to {target.value}"
        )


def check_quote_transition(current: QuoteStatus, target: QuoteStatus) -> None:
    _check("quote", QUOTE_TRANSITIONS, QuoteStatus(current), QuoteStatus(target))


def check_order_transition(current: OrderStatus, target: OrderStatus) -> None:
    _check("order", ORDER_TRANSITIONS, OrderStatus(current), OrderStatus(target))


def check_invoice_transition(current: InvoiceStatus, target: InvoiceStatus) -> None:
    _check("invoice", INVOICE_TRANSITIONS, InvoiceStatus(current), InvoiceStatus(target))
