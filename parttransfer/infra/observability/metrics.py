from prometheus_client import Counter

# direction: upload | copy | download; outcome: ok | error | cancelled
PARTS = Counter(
    "transfer_parts_total",
    "Parts or ranges transferred",
    ["direction", "outcome"],
)

BYTES = Counter(
    "transfer_bytes_total",
    "Bytes moved by successful part transfers",
    ["direction"],
)

# outcome: completed | aborted | abort_failed
SESSIONS = Counter(
    "transfer_sessions_total",
    "Multipart sessions by terminal state",
    ["outcome"],
)
