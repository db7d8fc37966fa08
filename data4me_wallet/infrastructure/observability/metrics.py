"""Prometheus metrics for monitoring ledger activity, funding throughput, and OTP delivery"""

from prometheus_client import Counter, Histogram

# Ledger metrics
ledger_entry_counter = Counter(
    "data4me_ledger_entries_total",
    "Balance mutations applied",
    ["type"],  # funding | data_purchase | airtime_purchase | referral_bonus
)

insufficient_funds_counter = Counter(
    "data4me_insufficient_funds_total",
    "Debits rejected because they would overdraw the balance",
    ["type"],
)

version_conflict_counter = Counter(
    "data4me_version_conflicts_total",
    "Units of work retried after a concurrent update to the same row",
)

# Funding metrics
funding_transition_counter = Counter(
    "data4me_funding_transitions_total",
    "Funding request state changes",
    ["status"],  # pending | confirmed | rejected
)

# Reconciliation
reconciliation_findings_counter = Counter(
    "data4me_reconciliation_findings_total",
    "Ledger inconsistencies detected",
    ["kind"],
)

# One-time code delivery
otp_delivery_counter = Counter(
    "data4me_otp_deliveries_total",
    "One-time codes sent over Telegram",
    ["outcome"],  # sent | failed
)

telegram_latency_histogram = Histogram(
    "telegram_latency_seconds",
    "Telegram Bot API response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_ledger_entry(transaction_type: str) -> None:
    ledger_entry_counter.labels(type=transaction_type).inc()


def record_insufficient_funds(transaction_type: str) -> None:
    insufficient_funds_counter.labels(type=transaction_type).inc()


def record_funding_transition(status: str) -> None:
    funding_transition_counter.labels(status=status).inc()


def record_reconciliation_finding(kind: str) -> None:
    reconciliation_findings_counter.labels(kind=kind).inc()
