"""
Pure domain layer.

Value objects, DTOs, cadence arithmetic and split computation with NO
dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the Clock abstraction itself)
"""

from household_kernel.domain.cadence import (
    StandingOrderFrequency,
    initial_next_execution,
    next_bi_weekly,
    next_monthly,
    next_occurrence,
    next_weekly,
    rescheduled_from_today,
    resolve_monthly_date,
)
from household_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from household_kernel.domain.directory import (
    HouseholdInfo,
    InMemoryMemberDirectory,
    MemberDirectory,
    MemberInfo,
)
from household_kernel.domain.dtos import (
    BalanceInfo,
    SplitInfo,
    StandingOrderInfo,
    TransactionInfo,
)
from household_kernel.domain.splits import SplitLine, build_split_lines
from household_kernel.domain.values import (
    DebtorShare,
    decode_debtor_shares,
    encode_debtor_shares,
    equal_shares,
    shares_from_percentages,
)

__all__ = [
    "StandingOrderFrequency",
    "initial_next_execution",
    "next_bi_weekly",
    "next_monthly",
    "next_occurrence",
    "next_weekly",
    "rescheduled_from_today",
    "resolve_monthly_date",
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "HouseholdInfo",
    "InMemoryMemberDirectory",
    "MemberDirectory",
    "MemberInfo",
    "BalanceInfo",
    "SplitInfo",
    "StandingOrderInfo",
    "TransactionInfo",
    "SplitLine",
    "build_split_lines",
    "DebtorShare",
    "decode_debtor_shares",
    "encode_debtor_shares",
    "equal_shares",
    "shares_from_percentages",
]
