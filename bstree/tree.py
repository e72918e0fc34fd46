"""An unbalanced binary search tree that counts duplicate values.

Each distinct value lives in exactly one node; inserting an equal value again
bumps that node's ``data_count`` instead of growing the tree.  Nodes own their
two children (``less`` and ``more``) and are never shared, so detaching a child
releases the whole subtree below it.

Removal looks one level ahead: a node checks whether the child on the value's
side holds the value and decides there, because a node cannot unlink itself
from its parent.  What happens to the children of a removed node depends on
:class:`~bstree.config.RemovalPolicy`.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Iterable, Optional, Tuple, TypeVar

from .config import RemovalPolicy, TreeSettings
from . import observability
from .observability import logger

T = TypeVar("T")


class TreeInvariantError(AssertionError):
    """Raised when the tree's internal bookkeeping would be violated."""


class RootRemovalError(TreeInvariantError):
    """Raised when a removal would leave the tree without a root."""


class RemovalOutcome(str, Enum):
    NOT_FOUND = "not_found"
    DECREMENTED = "decremented"
    DROPPED = "dropped"
    SPLICED = "spliced"


@dataclass
class BSTNode(Generic[T]):
    data: T
    data_count: int = 1
    less: Optional["BSTNode[T]"] = None
    more: Optional["BSTNode[T]"] = None

    def insert(self, data: T, level: int = 1, log=logger) -> int:
        """Insert ``data`` below this node.

        Returns the level (this node being ``level``) of the node that was
        created or whose count was incremented.
        """
        if data < self.data:
            if self.less is None:
                self.less = BSTNode(data)
                _log_created(data, level + 1, log)
                return level + 1
            return self.less.insert(data, level + 1, log)
        if data > self.data:
            if self.more is None:
                self.more = BSTNode(data)
                _log_created(data, level + 1, log)
                return level + 1
            return self.more.insert(data, level + 1, log)
        self.data_count += 1
        observability.inc_duplicate()
        log.debug("duplicate counted", extra={"value": data, "count": self.data_count})
        return level

    def remove(self, data: T, policy: RemovalPolicy, log=logger) -> RemovalOutcome:
        if data < self.data:
            side = "less"
        elif data > self.data:
            side = "more"
        else:
            log.error("removal reached its own node", extra={"value": data})
            raise TreeInvariantError(
                f"{data!r} should have been removed by the parent of its node"
            )

        child = getattr(self, side)
        if child is None:
            return RemovalOutcome.NOT_FOUND
        if child.data != data:
            return child.remove(data, policy, log)

        if child.data_count > 1:
            child.data_count -= 1
            return RemovalOutcome.DECREMENTED
        if policy is RemovalPolicy.SUBTREE:
            setattr(self, side, None)
            discarded = child.size() - 1
            if discarded:
                observability.inc_discarded(discarded)
                log.debug(
                    "descendants dropped with removed node",
                    extra={"value": data, "discarded": discarded},
                )
            return RemovalOutcome.DROPPED
        setattr(self, side, child.detach())
        return RemovalOutcome.SPLICED

    def detach(self) -> Optional["BSTNode[T]"]:
        """Return the subtree that replaces this node once it is removed.

        A node with two children is replaced by its in-order successor.
        """
        if self.less is None:
            return self.more
        if self.more is None:
            return self.less
        successor, rest = self.more.pop_min()
        successor.less = self.less
        successor.more = rest
        self.less = self.more = None
        return successor

    def pop_min(self) -> Tuple["BSTNode[T]", Optional["BSTNode[T]"]]:
        """Unlink the smallest node of this subtree.

        Returns that node and what remains of the subtree.
        """
        if self.less is None:
            rest, self.more = self.more, None
            return self, rest
        smallest, self.less = self.less.pop_min()
        return smallest, self

    def find(self, data: T) -> Optional["BSTNode[T]"]:
        if data < self.data:
            return self.less.find(data) if self.less is not None else None
        if data > self.data:
            return self.more.find(data) if self.more is not None else None
        return self

    def size(self) -> int:
        """Number of nodes in this subtree (duplicates not included)."""
        return (
            1
            + (self.less.size() if self.less is not None else 0)
            + (self.more.size() if self.more is not None else 0)
        )

    def depth(self) -> int:
        return 1 + max(
            self.less.depth() if self.less is not None else 0,
            self.more.depth() if self.more is not None else 0,
        )


def _log_created(data, level: int, log) -> None:
    observability.inc_node_created()
    log.debug("node created", extra={"value": data, "level_reached": level})


class BSTree(Generic[T]):
    """A binary search tree that always holds at least its seed value."""

    def __init__(self, seed: T, settings: TreeSettings | None = None) -> None:
        self.settings = settings if settings is not None else TreeSettings.from_env()
        self.log = observability.TreeLogAdapter(logger, self.settings.log_level)
        self.root: BSTNode[T] = BSTNode(seed)

    def insert(self, data: T) -> None:
        level = self.root.insert(data, log=self.log)
        observability.check_depth(level, self.settings.depth_alert_threshold, self.log)

    def insert_multiple(self, collection: Iterable[T]) -> None:
        """Insert every element of ``collection`` in iteration order."""
        for data in collection:
            self.insert(data)

    def remove(self, data: T) -> RemovalOutcome:
        """Remove one occurrence of ``data``.

        Removing a value that is not in the tree does nothing.  Raises
        :class:`RootRemovalError` if the removal would empty the tree.
        """
        policy = self.settings.removal_policy
        if data == self.root.data:
            outcome = self._remove_root(policy)
        else:
            outcome = self.root.remove(data, policy, self.log)

        if outcome is RemovalOutcome.NOT_FOUND:
            observability.inc_removal_miss()
            self.log.debug("removal missed", extra={"value": data})
        else:
            observability.inc_removal()
            self.log.debug("value removed", extra={"value": data, "outcome": outcome.value})
        return outcome

    def _remove_root(self, policy: RemovalPolicy) -> RemovalOutcome:
        if self.root.data_count > 1:
            self.root.data_count -= 1
            return RemovalOutcome.DECREMENTED
        if policy is RemovalPolicy.SPLICE:
            replacement = self.root.detach()
            if replacement is not None:
                self.root = replacement
                return RemovalOutcome.SPLICED
        self.log.error("refusing to remove the root", extra={"value": self.root.data})
        raise RootRemovalError(f"removing {self.root.data!r} would leave the tree empty")

    def depth(self) -> int:
        return self.root.depth()

    def count(self, data: T) -> int:
        node = self.root.find(data)
        return node.data_count if node is not None else 0

    def __contains__(self, data: T) -> bool:
        return self.root.find(data) is not None

    def __repr__(self) -> str:
        return f"BSTree(root={self.root!r})"


__all__ = [
    "BSTNode",
    "BSTree",
    "RemovalOutcome",
    "RootRemovalError",
    "TreeInvariantError",
]
