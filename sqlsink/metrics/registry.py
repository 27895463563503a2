from prometheus_client import Counter, Histogram


DB_WRITE_TOTAL = Counter(
    "sqlsink_db_write_total",
    "Templated writes executed, by outcome",
    ["table", "op_type", "status"],
)

DB_WRITE_LATENCY_SECONDS = Histogram(
    "sqlsink_db_write_latency_seconds",
    "Latency of templated writes in seconds",
    ["table", "op_type"],
)

GENERATED_KEYS_TOTAL = Counter(
    "sqlsink_generated_keys_total",
    "Generated-key rows returned by templated writes",
    ["table"],
)
