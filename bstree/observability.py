import logging
import json


class Counter:
    """Minimal Prometheus-style counter."""

    def __init__(self, name: str, documentation: str):
        self.name = name
        self.documentation = documentation
        self.value = 0.0

    def inc(self, amount: float = 1.0) -> None:
        self.value += amount

    def render(self) -> str:
        return (
            f"# HELP {self.name} {self.documentation}\n"
            f"# TYPE {self.name} counter\n"
            f"{self.name} {self.value}\n"
        )


_RESERVED = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
}


class JSONFormatter(logging.Formatter):
    """Simple JSON log formatter including ``extra`` fields."""

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting
        data = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED:
                data[key] = value
        return json.dumps(data, default=repr)


handler = logging.StreamHandler()
handler.setFormatter(JSONFormatter())

# Each tree filters by its own level through TreeLogAdapter; the logger itself
# lets everything through unless the host raises its level.
logger = logging.getLogger("bstree")
logger.addHandler(handler)
logger.setLevel(logging.DEBUG)
logger.propagate = False


class TreeLogAdapter(logging.LoggerAdapter):
    """View of the ``bstree`` logger gated by one tree's ``log_level``."""

    def __init__(self, logger: logging.Logger, level: str):
        super().__init__(logger, {})
        self.tree_level = logging.getLevelName(level)

    def isEnabledFor(self, level: int) -> bool:
        return level >= self.tree_level and self.logger.isEnabledFor(level)

    def process(self, msg, kwargs):
        return msg, kwargs


# Counters
NODES_CREATED_COUNTER = Counter(
    "bstree_nodes_created_total", "Number of nodes allocated by inserts"
)
DUPLICATES_COUNTER = Counter(
    "bstree_duplicates_total", "Number of inserts counted on an existing node"
)
REMOVALS_COUNTER = Counter(
    "bstree_removals_total", "Number of removals that changed the tree"
)
NODES_DISCARDED_COUNTER = Counter(
    "bstree_nodes_discarded_total", "Number of descendant nodes dropped together with a removed node"
)
REMOVAL_MISSES_COUNTER = Counter(
    "bstree_removal_misses_total", "Number of removals of values not in the tree"
)

COUNTERS = [
    NODES_CREATED_COUNTER,
    DUPLICATES_COUNTER,
    REMOVALS_COUNTER,
    NODES_DISCARDED_COUNTER,
    REMOVAL_MISSES_COUNTER,
]


def check_depth(level: int, threshold: int, log=logger) -> None:
    """Warn when an insert lands at or below ``threshold`` levels."""
    if threshold and level >= threshold:
        log.warning(
            f"tree depth threshold {threshold} reached",
            extra={"level_reached": level},
        )


def inc_node_created() -> None:
    NODES_CREATED_COUNTER.inc()


def inc_duplicate() -> None:
    DUPLICATES_COUNTER.inc()


def inc_removal() -> None:
    REMOVALS_COUNTER.inc()


def inc_discarded(amount: int) -> None:
    NODES_DISCARDED_COUNTER.inc(amount)


def inc_removal_miss() -> None:
    REMOVAL_MISSES_COUNTER.inc()


def generate_metrics() -> bytes:
    return "".join(counter.render() for counter in COUNTERS).encode()


__all__ = [
    "TreeLogAdapter",
    "check_depth",
    "inc_node_created",
    "inc_duplicate",
    "inc_removal",
    "inc_discarded",
    "inc_removal_miss",
    "generate_metrics",
    "logger",
]
