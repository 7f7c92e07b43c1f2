"""
Module: resale_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines. This is the canonical import surface for
    resale_services and scripts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import resale_kernel (and sibling engine modules).
    MUST NOT import resale_services, resale_config or an HTTP client.

Invariants enforced:
    - Purity: engines never read the clock or the environment. Periods
      and anchors are passed in by callers.
    - Decimal-only arithmetic for every money and rate value.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - InvalidInputError subclasses for negative costs, bad rates and bad
      page sizes. Malformed money read from backend rows is coerced to
      zero, never raised.

Every public engine invocation is traced via ``@traced_engine`` (see
``resale_engines.tracer``), emitting RESALE_ENGINE_TRACE log records.

Usage:
    from resale_engines import allocate, would_exceed, summarize, view
"""

from resale_engines.bill_ledger import (
    BillSummary,
    BillTotals,
    ReconciliationCheck,
    ReconciliationDirection,
    classify,
    difference,
    summarize,
    totals,
)
from resale_engines.listing import (
    ListFilter,
    ListView,
    PageInfo,
    PageRequest,
    SortDirection,
    SortSpec,
    sort_records,
    view,
)
from resale_engines.rate_allocation import (
    AllocationResult,
    ConsumptionCheck,
    ContractRates,
    ContractTotals,
    allocate,
    check_consumption,
    default_rates,
    reportable_contracts,
    summarize_contracts,
    used_budget,
    would_exceed,
)
from resale_engines.reporting import (
    BILLS,
    BUDGETS,
    CONTRACTS,
    CountEntry,
    CustomerOverview,
    DashboardSummary,
    GroupedSummary,
    GroupTotal,
    ReportSource,
    SupplierOverview,
    aggregate,
    build_dashboard,
    customer_overview,
    in_period,
    supplier_overview,
)
from resale_engines.tracer import traced_engine

__all__ = [
    # rate_allocation
    "AllocationResult",
    "ConsumptionCheck",
    "ContractRates",
    "ContractTotals",
    "allocate",
    "check_consumption",
    "default_rates",
    "reportable_contracts",
    "summarize_contracts",
    "used_budget",
    "would_exceed",
    # bill_ledger
    "BillSummary",
    "BillTotals",
    "ReconciliationCheck",
    "ReconciliationDirection",
    "classify",
    "difference",
    "summarize",
    "totals",
    # reporting
    "BILLS",
    "BUDGETS",
    "CONTRACTS",
    "CountEntry",
    "CustomerOverview",
    "DashboardSummary",
    "GroupTotal",
    "GroupedSummary",
    "ReportSource",
    "SupplierOverview",
    "aggregate",
    "build_dashboard",
    "customer_overview",
    "in_period",
    "supplier_overview",
    # listing
    "ListFilter",
    "ListView",
    "PageInfo",
    "PageRequest",
    "SortDirection",
    "SortSpec",
    "sort_records",
    "view",
    # tracer
    "traced_engine",
]
