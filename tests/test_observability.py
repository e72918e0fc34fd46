import sys, pathlib, json
sys.path.append(str(pathlib.Path(__file__).resolve().parent.parent))

import logging

import pytest

from bstree import observability
from bstree.config import TreeSettings
from bstree.tree import BSTree


def test_counters_track_tree_operations():
    created = observability.NODES_CREATED_COUNTER.value
    duplicates = observability.DUPLICATES_COUNTER.value
    removals = observability.REMOVALS_COUNTER.value
    discarded = observability.NODES_DISCARDED_COUNTER.value
    misses = observability.REMOVAL_MISSES_COUNTER.value

    tree = BSTree(5, TreeSettings())
    tree.insert_multiple([2, 1, 3, 8, 8])
    tree.remove(2)
    tree.remove(99)

    assert observability.NODES_CREATED_COUNTER.value == created + 4
    assert observability.DUPLICATES_COUNTER.value == duplicates + 1
    assert observability.REMOVALS_COUNTER.value == removals + 1
    assert observability.NODES_DISCARDED_COUNTER.value == discarded + 2
    assert observability.REMOVAL_MISSES_COUNTER.value == misses + 1


def test_generate_metrics_exposition_format():
    body = observability.generate_metrics().decode()
    assert "# TYPE bstree_nodes_created_total counter" in body
    assert "# HELP bstree_removal_misses_total" in body


@pytest.fixture
def bstree_logs(caplog):
    # bstree records do not propagate to the root logger caplog listens on
    observability.logger.addHandler(caplog.handler)
    yield caplog
    observability.logger.removeHandler(caplog.handler)


def test_depth_alert_logs_warning(bstree_logs):
    tree = BSTree(0, TreeSettings(depth_alert_threshold=3))
    tree.insert(1)
    assert not bstree_logs.records
    tree.insert(2)
    assert len(bstree_logs.records) == 1
    record = bstree_logs.records[0]
    assert record.levelname == "WARNING"
    assert record.level_reached == 3


def test_depth_alert_disabled_by_default(bstree_logs):
    tree = BSTree(0, TreeSettings())
    tree.insert_multiple(range(1, 50))
    assert not bstree_logs.records


def test_depth_alert_silenced_by_tree_level(bstree_logs):
    tree = BSTree(0, TreeSettings(depth_alert_threshold=2, log_level="ERROR"))
    tree.insert_multiple([1, 2, 3])
    assert not bstree_logs.records


def test_debug_events_logged_as_json(bstree_logs):
    tree = BSTree(5, TreeSettings(log_level="DEBUG"))
    tree.insert(3)
    tree.remove(3)
    messages = [r.getMessage() for r in bstree_logs.records]
    assert "node created" in messages
    assert "value removed" in messages

    removed = next(r for r in bstree_logs.records if r.getMessage() == "value removed")
    data = json.loads(observability.JSONFormatter().format(removed))
    assert data["level"] == "DEBUG"
    assert data["logger"] == "bstree"
    assert data["value"] == 3
    assert data["outcome"] == "dropped"


def test_tree_log_level_is_per_tree(bstree_logs):
    debug_tree = BSTree(5, TreeSettings(log_level="DEBUG"))
    quiet_tree = BSTree(1, TreeSettings())
    debug_tree.insert(3)
    quiet_tree.insert(2)
    created = [r.value for r in bstree_logs.records if r.getMessage() == "node created"]
    assert created == [3]


def test_host_level_on_logger_is_kept(bstree_logs):
    observability.logger.setLevel(logging.WARNING)
    try:
        BSTree(5, TreeSettings())
        debug_tree = BSTree(5, TreeSettings(log_level="DEBUG"))
        assert observability.logger.level == logging.WARNING
        debug_tree.insert(3)
        assert not bstree_logs.records
    finally:
        observability.logger.setLevel(logging.DEBUG)


def test_records_do_not_reach_root_logger(caplog):
    tree = BSTree(5, TreeSettings(log_level="DEBUG"))
    tree.insert(3)
    assert observability.logger.propagate is False
    assert not caplog.records
