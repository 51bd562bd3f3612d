"""
Prometheus metrics for form submissions.
"""

from prometheus_client import Counter

SUBMISSIONS = Counter(
    "intake_submissions_total",
    "Form submissions by form and outcome (sent, rejected, failed)",
    ["form", "outcome"],
)


def record_submission(form: str, outcome: str) -> None:
    SUBMISSIONS.labels(form=form, outcome=outcome).inc()
