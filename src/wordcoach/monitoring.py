"""Monitoring configuration for wordcoach."""
from prometheus_client import Counter, Histogram, start_http_server

# Word management metrics
words_added = Counter(
    "wordcoach_words_added_total",
    "Total number of words added to the library",
)

duplicate_words = Counter(
    "wordcoach_duplicate_words_total",
    "Total number of word additions rejected as duplicates",
)

generation_errors = Counter(
    "wordcoach_generation_errors_total",
    "Total number of failed word content generations",
    ["provider"],
)

# Learning metrics
study_sessions = Counter(
    "wordcoach_study_sessions_total",
    "Total number of study sessions started",
    ["mode"],
)

answers_submitted = Counter(
    "wordcoach_answers_total",
    "Total number of answers submitted during study sessions",
    ["mode", "correct"],
)

session_duration = Histogram(
    "wordcoach_session_duration_seconds",
    "Duration of study sessions in seconds",
    ["mode"],
    buckets=[60, 300, 600, 1800, 3600],  # 1min, 5min, 10min, 30min, 1hour
)

# Database metrics
db_errors = Counter(
    "wordcoach_db_errors_total",
    "Total number of word store errors",
    ["operation_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
