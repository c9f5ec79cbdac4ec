"""Prometheus metrics for repayment progress, PIN attempts, and store health"""

from prometheus_client import Counter, Histogram

# Transition metrics
transition_counter = Counter(
    "loan_payment_transitions_total",
    "Pay/unpay requests evaluated by the sequencer",
    ["direction", "outcome"],  # pay | unpay ; accepted | not_found | no_op | out_of_order | conflict
)

payoff_counter = Counter(
    "loan_payoff_total",
    "Transitions that completed the loan",
)

# Auth metrics
pin_attempt_counter = Counter(
    "loan_pin_attempts_total",
    "PIN submissions by outcome",
    ["outcome"],  # authenticated | rejected | unavailable | busy
)

# Store metrics
store_failure_counter = Counter(
    "loan_store_failures_total",
    "Failed installment store operations",
    ["operation"],  # list | set_paid
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_transition(paid: bool, outcome: str, is_final_payoff: bool = False) -> None:
    """Record a sequencer verdict and whether it paid off the loan"""
    direction = "pay" if paid else "unpay"
    transition_counter.labels(direction=direction, outcome=outcome).inc()

    if is_final_payoff:
        payoff_counter.inc()


def record_pin_attempt(outcome: str) -> None:
    """Record PIN outcomes that reached (or were refused) the verifier"""
    pin_attempt_counter.labels(outcome=outcome).inc()
