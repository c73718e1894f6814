"""Constants for dnsdog."""

# --- Log and Debug ---
# Short aliases for module names to keep CLI/env concise
LOG_ALIAS_MAP = {
    "watcher": "dnsdog.watcher",
    "watch": "dnsdog.watcher",
    "traffic": "dnsdog.traffic",
    "capture": "dnsdog.traffic",
    "packet": "dnsdog.packet",
    "cache": "dnsdog.cache",
    "metrics": "dnsdog.metrics",
    "statsd": "dnsdog.metrics",
    "config": "dnsdog.config",
    "conf": "dnsdog.config",
    "cli": "dnsdog.cli",
    "utils": "dnsdog.utils",
}

# Top-level modules within dnsdog for auto-prefixing
KNOWN_TOP_MODULES = {
    "watcher",
    "traffic",
    "packet",
    "cache",
    "metrics",
    "config",
    "codes",
    "utils",
    "cli",
}

LOG_LEVELS_ENV = "DNSDOG_LOG_LEVELS"

# --- Capture ---
DEFAULT_INTERFACE = "eth0"
DEFAULT_DNS_PORT = 53
DEFAULT_BPF_FILTER = "udp port 53"
DEFAULT_SNAPLEN = 1600
DEFAULT_CAPTURE_TIMEOUT = 100  # milliseconds

# --- Correlation cache ---
DEFAULT_CACHE_TTL = 1.0  # seconds
DEFAULT_CLEANUP_INTERVAL = 1.0  # seconds
SKIP_LOG_INTERVAL = 10.0  # seconds between INFO-level skip reports

# --- Statsd ---
DEFAULT_STATSD_HOST = "127.0.0.1"
DEFAULT_STATSD_PORT = 8125
DEFAULT_STATSD_ADDRESS = f"{DEFAULT_STATSD_HOST}:{DEFAULT_STATSD_PORT}"
DEFAULT_SAMPLE_RATE = 1

# --- Metric names ---
METRIC_QUERY = "dns.query"
METRIC_QUESTION = "dns.question"
METRIC_REPLY = "dns.reply"
METRIC_REPLY_TIME = "dns.reply.time"
METRIC_REPLY_QUESTION = "dns.reply.question"
METRIC_ANSWER = "dns.answer"

# --- Link types (pcap DLT values) ---
DLT_NULL = 0
DLT_EN10MB = 1
DLT_RAW = 12
DLT_LOOP = 108
LINKTYPE_RAW = 101
DLT_LINUX_SLL = 113

# --- Log Levels ---
LOG_LEVELS = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
    "CRITICAL": 50,
}
