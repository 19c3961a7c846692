# cython: language_level=3
"""
Binary search tree ordered map with duplicate keys.

Nodes live in an arena of parallel numpy arrays: a node is a slot index,
child links own their subtrees and the parent link is a plain index used
only to walk upwards during removal. Released slots go onto a free list and
are reused before the arena grows.

The module is written in Cython pure-Python mode. ``setup.py`` compiles it;
uncompiled it runs as ordinary Python.
"""
from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, TypeVar

import cython
import numpy as np

from bstmap.tree.bst.config import BSTConfig
from bstmap.tree.bst.errors import KeyNotFoundError, StructuralIntegrityError

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

NIL = -1

_ARENA_FIELDS = (
    "_keys",
    "_values",
    "_left",
    "_right",
    "_parent",
    "_live",
    "_free",
    "_root",
    "_size",
)


def format_entry(key: Any, value: Any) -> str:
    """Render one entry the way ``print_inorder`` writes it."""
    return f'Key: "{key}", Value: "{value}"'


def _to_object_array(items: list) -> np.ndarray:
    # filled element by element so tuples and lists stay single entries
    result = np.empty(len(items), dtype=object)
    for i, item in enumerate(items):
        result[i] = item
    return result


class BinarySearchTree(Generic[K, V]):
    """
    Unbalanced binary search tree mapping keys to values.

    Duplicate keys are allowed. An equal key is inserted into the right
    subtree, so duplicates form a right-leaning chain in insertion order.

    ``insert`` always adds a node. ``tree[key] = value`` instead overwrites
    the value of the first node found for ``key`` and only inserts when the
    key is absent.

    Parameters
    ----------
    source : BinarySearchTree, optional
        Tree to copy. The new tree is a deep, structurally independent copy.
    config : BSTConfig, optional
        Arena settings. Defaults to the source's config when copying, else
        to ``BSTConfig()``.
    """

    __slots__ = ("_config",) + _ARENA_FIELDS

    def __init__(
        self,
        source: Optional[BinarySearchTree[K, V]] = None,
        config: Optional[BSTConfig] = None
    ) -> None:
        if config is None:
            config = source._config if source is not None else BSTConfig()
        self._config = config
        if source is None:
            self._reset_arena(config.initial_capacity)
        else:
            self._reset_arena(max(config.initial_capacity, len(source)))
            source._clone(copy.deepcopy, self)

    # ------------------------------------------------------------------
    # Arena management
    # ------------------------------------------------------------------
    def _reset_arena(self, capacity: int) -> None:
        self._keys = np.empty(capacity, dtype=object)
        self._values = np.empty(capacity, dtype=object)
        self._left = np.full(capacity, NIL, dtype=np.intp)
        self._right = np.full(capacity, NIL, dtype=np.intp)
        self._parent = np.full(capacity, NIL, dtype=np.intp)
        self._live = np.zeros(capacity, dtype=bool)
        # popped from the end, so slot 0 is handed out first
        self._free = list(range(capacity - 1, -1, -1))
        self._root = NIL
        self._size = 0

    def _grow(self) -> None:
        old_capacity = len(self._keys)
        new_capacity = old_capacity * self._config.growth_factor
        extra = new_capacity - old_capacity

        self._keys = np.concatenate((self._keys, np.empty(extra, dtype=object)))
        self._values = np.concatenate(
            (self._values, np.empty(extra, dtype=object))
        )
        self._left = np.concatenate(
            (self._left, np.full(extra, NIL, dtype=np.intp))
        )
        self._right = np.concatenate(
            (self._right, np.full(extra, NIL, dtype=np.intp))
        )
        self._parent = np.concatenate(
            (self._parent, np.full(extra, NIL, dtype=np.intp))
        )
        self._live = np.concatenate((self._live, np.zeros(extra, dtype=bool)))
        self._free.extend(range(new_capacity - 1, old_capacity - 1, -1))
        logger.debug("Grew arena from %d to %d slots", old_capacity, new_capacity)

    def _allocate(self, key: K, value: V) -> int:
        """Take a free slot, growing the arena if needed, and fill it as a leaf."""
        if not self._free:
            self._grow()
        slot = self._free.pop()
        self._keys[slot] = key
        self._values[slot] = value
        self._left[slot] = NIL
        self._right[slot] = NIL
        self._parent[slot] = NIL
        self._live[slot] = True
        self._size += 1
        return slot

    def _release(self, slot: int) -> None:
        if not self._live[slot]:
            raise StructuralIntegrityError(f"Slot {slot} is already released")
        self._keys[slot] = None
        self._values[slot] = None
        self._left[slot] = NIL
        self._right[slot] = NIL
        self._parent[slot] = NIL
        self._live[slot] = False
        self._free.append(slot)
        self._size -= 1

    def _swap_arena(self, other: BinarySearchTree[K, V]) -> None:
        """Exchange node storage with ``other``. Cannot fail part way."""
        for name in _ARENA_FIELDS:
            mine = getattr(self, name)
            setattr(self, name, getattr(other, name))
            setattr(other, name, mine)

    @property
    def capacity(self) -> int:
        """Number of node slots currently allocated in the arena."""
        return len(self._keys)

    @property
    def config(self) -> BSTConfig:
        return self._config

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------
    @cython.locals(cur=cython.Py_ssize_t)
    def _find(self, key: K) -> int:
        """Return the first slot on the descent path carrying ``key``, or NIL."""
        keys = self._keys
        left = self._left
        right = self._right
        cur = self._root
        while cur != NIL:
            node_key = keys[cur]
            if key == node_key:
                return cur
            if key < node_key:
                cur = int(left[cur])
            else:
                cur = int(right[cur])
        return NIL

    def search(self, key: K) -> V:
        """
        Return the value stored under ``key``.

        When duplicates exist, the match closest to the root is returned.

        Parameters
        ----------
        key : K
            The key to look up.

        Returns
        -------
        V
            The value of the first node found carrying ``key``.

        Raises
        ------
        KeyNotFoundError
            If no node carries ``key``.
        """
        slot = self._find(key)
        if slot == NIL:
            raise KeyNotFoundError(key)
        return self._values[slot]

    def get(self, key: K) -> V:
        return self.search(key)

    def contains(self, key: K) -> bool:
        return self._find(key) != NIL

    def get_multiple(self, keys: Iterable[K], default: Any = None) -> np.ndarray:
        """
        Look up several keys at once.

        Parameters
        ----------
        keys : Iterable[K]
            Keys to look up.
        default : Any
            Value placed in the result for keys that are absent, by default
            None.

        Returns
        -------
        np.ndarray
            Object array with one value per requested key.
        """
        keys = list(keys)
        results = np.empty(len(keys), dtype=object)
        for i, key in enumerate(keys):
            slot = self._find(key)
            results[i] = default if slot == NIL else self._values[slot]
        return results

    def contains_multiple(self, keys: Iterable[K]) -> np.ndarray:
        return np.array([self._find(key) != NIL for key in keys], dtype=bool)

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------
    @cython.locals(cur=cython.Py_ssize_t, slot=cython.Py_ssize_t)
    def insert(self, key: K, value: V) -> None:
        """
        Insert ``key`` with ``value`` as a new leaf.

        Always succeeds; an equal key goes to the right of existing ones.
        The insertion point is located before a slot is taken, so a key
        that cannot be compared leaves the tree untouched.
        """
        if self._root == NIL:
            self._root = self._allocate(key, value)
            return

        keys = self._keys
        left = self._left
        right = self._right
        cur = self._root
        go_left = False
        while True:
            if key < keys[cur]:
                if left[cur] == NIL:
                    go_left = True
                    break
                cur = int(left[cur])
            else:
                if right[cur] == NIL:
                    break
                cur = int(right[cur])

        # _allocate may grow the arena and replace the arrays
        slot = self._allocate(key, value)
        if go_left:
            self._left[cur] = slot
        else:
            self._right[cur] = slot
        self._parent[slot] = cur

    def build_tree(self, keys: Iterable[K], values: Iterable[V]) -> None:
        """
        Insert every ``(key, value)`` pair in order.

        Parameters
        ----------
        keys : Iterable[K]
            Keys to insert.
        values : Iterable[V]
            Values matching ``keys`` position by position.

        Raises
        ------
        ValueError
            If ``keys`` and ``values`` differ in length.
        """
        keys = list(keys)
        values = list(values)
        if len(keys) != len(values):
            raise ValueError("Keys and values must have same length")
        for key, value in zip(keys, values):
            self.insert(key, value)

    # ------------------------------------------------------------------
    # Remove
    # ------------------------------------------------------------------
    def remove(self, key: K) -> None:
        """Remove one node carrying ``key``. A missing key is a no-op."""
        slot = self._find(key)
        if slot == NIL:
            logger.debug("remove(%r): key not present, nothing removed", key)
            return
        self._remove_node(slot)

    def delete(self, key: K) -> bool:
        """Remove one node carrying ``key`` and report whether one existed."""
        slot = self._find(key)
        if slot == NIL:
            return False
        self._remove_node(slot)
        return True

    def delete_multiple(self, keys: Iterable[K]) -> int:
        return sum(1 for key in keys if self.delete(key))

    @cython.locals(node=cython.Py_ssize_t, succ=cython.Py_ssize_t)
    def _remove_node(self, node) -> None:
        left = self._left
        right = self._right

        # Two children: pull the successor's entry up, then drop the
        # successor, which has no left child.
        if left[node] != NIL and right[node] != NIL:
            succ = int(right[node])
            while left[succ] != NIL:
                succ = int(left[succ])
            self._keys[node] = self._keys[succ]
            self._values[node] = self._values[succ]
            self._remove_node(succ)
            return

        if node == self._root:
            self._root = int(left[node] if left[node] != NIL else right[node])
            if self._root != NIL:
                self._parent[self._root] = NIL
        elif left[node] != NIL:
            self._replace_child(int(self._parent[node]), node, int(left[node]))
        else:
            self._replace_child(int(self._parent[node]), node, int(right[node]))

        self._release(node)

    def _replace_child(self, parent: int, current: int, new_child: int) -> None:
        """Put ``new_child`` into the slot of ``parent`` that holds ``current``."""
        if parent == NIL:
            raise StructuralIntegrityError(
                f"Slot {current} is not the root but has no parent"
            )
        if self._left[parent] == current:
            self._left[parent] = new_child
        elif self._right[parent] == current:
            self._right[parent] = new_child
        else:
            raise StructuralIntegrityError(
                f"Slot {current} is not a child of slot {parent}"
            )
        if new_child != NIL:
            self._parent[new_child] = parent

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------
    def _inorder_slots(self) -> list[int]:
        slots = []
        stack = []
        cur = self._root
        while stack or cur != NIL:
            while cur != NIL:
                stack.append(cur)
                cur = int(self._left[cur])
            cur = stack.pop()
            slots.append(cur)
            cur = int(self._right[cur])
        return slots

    def _preorder_slots(self) -> list[int]:
        slots = []
        stack = [self._root] if self._root != NIL else []
        while stack:
            cur = stack.pop()
            slots.append(cur)
            if self._right[cur] != NIL:
                stack.append(int(self._right[cur]))
            if self._left[cur] != NIL:
                stack.append(int(self._left[cur]))
        return slots

    def _postorder_slots(self) -> list[int]:
        # node-right-left preorder, reversed, is left-right-node
        slots = []
        stack = [self._root] if self._root != NIL else []
        while stack:
            cur = stack.pop()
            slots.append(cur)
            if self._left[cur] != NIL:
                stack.append(int(self._left[cur]))
            if self._right[cur] != NIL:
                stack.append(int(self._right[cur]))
        slots.reverse()
        return slots

    def iter_inorder(self) -> Iterator[tuple[K, V]]:
        """
        Lazily yield ``(key, value)`` pairs in ascending key order.

        Each call starts a fresh traversal of the current tree state. The
        tree must not be modified while the iterator is being consumed.
        """
        stack = []
        cur = self._root
        while stack or cur != NIL:
            while cur != NIL:
                stack.append(cur)
                cur = int(self._left[cur])
            cur = stack.pop()
            yield self._keys[cur], self._values[cur]
            cur = int(self._right[cur])

    def inorder(self) -> np.ndarray:
        return self._keys_of(self._inorder_slots())

    def preorder(self) -> np.ndarray:
        return self._keys_of(self._preorder_slots())

    def postorder(self) -> np.ndarray:
        return self._keys_of(self._postorder_slots())

    def inorder_items(self) -> list[tuple[K, V]]:
        return self._items_of(self._inorder_slots())

    def preorder_items(self) -> list[tuple[K, V]]:
        return self._items_of(self._preorder_slots())

    def postorder_items(self) -> list[tuple[K, V]]:
        return self._items_of(self._postorder_slots())

    def keys(self) -> np.ndarray:
        return self.inorder()

    def values(self) -> np.ndarray:
        return _to_object_array(
            [self._values[slot] for slot in self._inorder_slots()]
        )

    def items(self) -> list[tuple[K, V]]:
        return self.inorder_items()

    def _keys_of(self, slots: list) -> np.ndarray:
        return _to_object_array([self._keys[slot] for slot in slots])

    def _items_of(self, slots: list) -> list[tuple[K, V]]:
        return [(self._keys[slot], self._values[slot]) for slot in slots]

    def print_inorder(self, file: Any = None) -> None:
        """Write one ``Key: "<key>", Value: "<value>"`` line per entry, in order."""
        for key, value in self.iter_inorder():
            print(format_entry(key, value), file=file)

    # ------------------------------------------------------------------
    # Height
    # ------------------------------------------------------------------
    def height(self) -> int:
        """
        Return the number of edges on the longest root-to-leaf path.

        An empty tree has height -1 and a single node has height 0.
        """
        if self._root == NIL:
            return -1
        best = 0
        stack = [(self._root, 0)]
        while stack:
            cur, depth = stack.pop()
            if depth > best:
                best = depth
            if self._left[cur] != NIL:
                stack.append((int(self._left[cur]), depth + 1))
            if self._right[cur] != NIL:
                stack.append((int(self._right[cur]), depth + 1))
        return best

    # ------------------------------------------------------------------
    # Copy and clear
    # ------------------------------------------------------------------
    def _clone(
        self,
        copy_item: Callable[[Any], Any],
        clone: Optional[BinarySearchTree[K, V]] = None
    ) -> BinarySearchTree[K, V]:
        """Mirror this tree into ``clone`` (a new empty tree by default),
        passing each key and value through ``copy_item``."""
        if clone is None:
            clone = type(self)(config=self._config)
        if self._root == NIL:
            return clone
        if clone.capacity < self._size:
            clone._reset_arena(self._size)

        clone._root = clone._allocate(
            copy_item(self._keys[self._root]),
            copy_item(self._values[self._root])
        )
        stack = [(self._root, clone._root)]
        while stack:
            src, dst = stack.pop()
            src_left = int(self._left[src])
            src_right = int(self._right[src])
            if src_left != NIL:
                dst_left = clone._allocate(
                    copy_item(self._keys[src_left]),
                    copy_item(self._values[src_left])
                )
                clone._left[dst] = dst_left
                clone._parent[dst_left] = dst
                stack.append((src_left, dst_left))
            if src_right != NIL:
                dst_right = clone._allocate(
                    copy_item(self._keys[src_right]),
                    copy_item(self._values[src_right])
                )
                clone._right[dst] = dst_right
                clone._parent[dst_right] = dst
                stack.append((src_right, dst_right))

        logger.debug("Copied tree of %d nodes", self._size)
        return clone

    def copy(self) -> BinarySearchTree[K, V]:
        """Return a deep copy; keys and values are copied with ``copy.deepcopy``."""
        return self._clone(copy.deepcopy)

    def __copy__(self) -> BinarySearchTree[K, V]:
        # new nodes, shared key/value objects
        return self._clone(lambda item: item)

    def __deepcopy__(self, memo: dict) -> BinarySearchTree[K, V]:
        # registered before any item is copied so self references resolve
        clone = type(self)(config=self._config)
        memo[id(self)] = clone
        return self._clone(lambda item: copy.deepcopy(item, memo), clone)

    def assign(self, other: BinarySearchTree[K, V]) -> BinarySearchTree[K, V]:
        """
        Replace this tree's contents with a deep copy of ``other``.

        The copy is built completely before anything in this tree changes,
        so if copying raises, this tree is left as it was.

        Returns
        -------
        BinarySearchTree
            ``self``, to allow chaining.
        """
        replacement = other.copy()
        self._swap_arena(replacement)
        self._config = other._config
        logger.debug("Assigned tree of %d nodes", self._size)
        return self

    def clear(self) -> None:
        """Release every node, children before parents, leaving the tree empty."""
        released = self._size
        for slot in self._postorder_slots():
            self._release(slot)
        self._root = NIL
        logger.debug("Cleared tree, released %d nodes", released)

    # ------------------------------------------------------------------
    # Invariant checking
    # ------------------------------------------------------------------
    def _validate(self) -> bool:
        """Check ordering, parent links and slot bookkeeping."""
        if self._root != NIL and self._parent[self._root] != NIL:
            return False

        reachable = 0
        # (slot, lower bound inclusive, upper bound exclusive); None is unbounded
        stack = [(self._root, None, None)] if self._root != NIL else []
        while stack:
            cur, low, high = stack.pop()
            reachable += 1
            if not self._live[cur]:
                return False
            key = self._keys[cur]
            if low is not None and key < low:
                return False
            if high is not None and not key < high:
                return False
            left_child = int(self._left[cur])
            right_child = int(self._right[cur])
            if left_child != NIL:
                if self._parent[left_child] != cur:
                    return False
                stack.append((left_child, low, key))
            if right_child != NIL:
                if self._parent[right_child] != cur:
                    return False
                stack.append((right_child, key, high))

        if reachable != self._size or int(self._live.sum()) != self._size:
            return False
        return len(self._free) + self._size == len(self._keys)

    # ------------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------------
    def is_empty(self) -> bool:
        return self._root == NIL

    def __len__(self) -> int:
        return self._size

    def __bool__(self) -> bool:
        return self._root != NIL

    def __contains__(self, key: K) -> bool:
        return self.contains(key)

    def __getitem__(self, key: K) -> V:
        return self.search(key)

    def __setitem__(self, key: K, value: V) -> None:
        """Overwrite the first node found for ``key``, or insert a new one."""
        slot = self._find(key)
        if slot == NIL:
            self.insert(key, value)
        else:
            self._values[slot] = value

    def __delitem__(self, key: K) -> None:
        if not self.delete(key):
            raise KeyNotFoundError(key)

    def __iter__(self) -> Iterator[K]:
        for key, _ in self.iter_inorder():
            yield key

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(size={self._size}, "
            f"height={self.height()}, capacity={self.capacity})"
        )
