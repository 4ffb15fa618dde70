"""Ordered user -> seat index backed by a red-black tree."""

from typing import Iterator, List, Optional, Tuple


class _Node:
    __slots__ = ('user_id', 'seat_id', 'red', 'left', 'right', 'parent')

    def __init__(self, user_id: int, seat_id: int, red: bool, nil: Optional['_Node'] = None):
        self.user_id = user_id
        self.seat_id = seat_id
        self.red = red
        self.left = nil
        self.right = nil
        self.parent = nil


class ReservationIndex:
    """
    Red-black tree keyed by user id, holding the seat each user reserved.

    Every absent child points at a single black sentinel owned by the tree,
    which keeps the rotation and deletion repairs free of None checks. The
    sentinel's parent link is scratch space used while a deletion is being
    repaired and means nothing between operations.

    Lookup, insertion and deletion are O(log n). In-order traversal yields
    entries by ascending user id.
    """

    def __init__(self):
        self._nil = _Node(0, 0, red=False)
        self._nil.left = self._nil.right = self._nil.parent = self._nil
        self._root = self._nil
        self._size = 0

    # -- rotations -----------------------------------------------------

    def _rotate_left(self, x: _Node) -> None:
        y = x.right
        x.right = y.left
        if y.left is not self._nil:
            y.left.parent = x
        y.parent = x.parent
        if x.parent is self._nil:
            self._root = y
        elif x is x.parent.left:
            x.parent.left = y
        else:
            x.parent.right = y
        y.left = x
        x.parent = y

    def _rotate_right(self, y: _Node) -> None:
        x = y.left
        y.left = x.right
        if x.right is not self._nil:
            x.right.parent = y
        x.parent = y.parent
        if y.parent is self._nil:
            self._root = x
        elif y is y.parent.right:
            y.parent.right = x
        else:
            y.parent.left = x
        x.right = y
        y.parent = x

    # -- lookup --------------------------------------------------------

    def _find(self, user_id: int) -> _Node:
        node = self._root
        while node is not self._nil and node.user_id != user_id:
            node = node.left if user_id < node.user_id else node.right
        return node

    def search(self, user_id: int) -> Optional[int]:
        """Return the seat held by ``user_id`` or None when the user holds nothing."""
        node = self._find(user_id)
        return None if node is self._nil else node.seat_id

    def __contains__(self, user_id: int) -> bool:
        return self._find(user_id) is not self._nil

    def __len__(self) -> int:
        return self._size

    def size(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    # -- insertion -----------------------------------------------------

    def insert(self, user_id: int, seat_id: int) -> None:
        """Add a reservation. The caller guarantees ``user_id`` is not present yet."""
        node = _Node(user_id, seat_id, red=True, nil=self._nil)
        parent = self._nil
        cursor = self._root
        while cursor is not self._nil:
            parent = cursor
            cursor = cursor.left if user_id < cursor.user_id else cursor.right

        node.parent = parent
        if parent is self._nil:
            self._root = node
        elif user_id < parent.user_id:
            parent.left = node
        else:
            parent.right = node

        self._size += 1
        self._insert_fixup(node)

    def _insert_fixup(self, z: _Node) -> None:
        while z.parent.red:
            grandparent = z.parent.parent
            if z.parent is grandparent.left:
                uncle = grandparent.right
                if uncle.red:
                    z.parent.red = False
                    uncle.red = False
                    grandparent.red = True
                    z = grandparent
                else:
                    if z is z.parent.right:
                        z = z.parent
                        self._rotate_left(z)
                    z.parent.red = False
                    z.parent.parent.red = True
                    self._rotate_right(z.parent.parent)
            else:
                uncle = grandparent.left
                if uncle.red:
                    z.parent.red = False
                    uncle.red = False
                    grandparent.red = True
                    z = grandparent
                else:
                    if z is z.parent.left:
                        z = z.parent
                        self._rotate_right(z)
                    z.parent.red = False
                    z.parent.parent.red = True
                    self._rotate_left(z.parent.parent)
        self._root.red = False

    # -- deletion ------------------------------------------------------

    def _transplant(self, u: _Node, v: _Node) -> None:
        if u.parent is self._nil:
            self._root = v
        elif u is u.parent.left:
            u.parent.left = v
        else:
            u.parent.right = v
        v.parent = u.parent

    def _minimum(self, node: _Node) -> _Node:
        while node.left is not self._nil:
            node = node.left
        return node

    def delete(self, user_id: int) -> Optional[int]:
        """
        Remove ``user_id`` and return the seat it held, or None if absent.

        A node with two children is replaced by its in-order successor, and
        the colour repair starts from where the successor was unlinked.
        """
        z = self._find(user_id)
        if z is self._nil:
            return None
        seat_id = z.seat_id

        y = z
        removed_red = y.red
        if z.left is self._nil:
            x = z.right
            self._transplant(z, z.right)
        elif z.right is self._nil:
            x = z.left
            self._transplant(z, z.left)
        else:
            y = self._minimum(z.right)
            removed_red = y.red
            x = y.right
            if y.parent is z:
                x.parent = y
            else:
                self._transplant(y, y.right)
                y.right = z.right
                y.right.parent = y
            self._transplant(z, y)
            y.left = z.left
            y.left.parent = y
            y.red = z.red

        self._size -= 1
        if not removed_red:
            self._delete_fixup(x)
        self._nil.parent = self._nil
        return seat_id

    def _delete_fixup(self, x: _Node) -> None:
        while x is not self._root and not x.red:
            if x is x.parent.left:
                sibling = x.parent.right
                if sibling.red:
                    sibling.red = False
                    x.parent.red = True
                    self._rotate_left(x.parent)
                    sibling = x.parent.right
                if not sibling.left.red and not sibling.right.red:
                    sibling.red = True
                    x = x.parent
                else:
                    if not sibling.right.red:
                        sibling.left.red = False
                        sibling.red = True
                        self._rotate_right(sibling)
                        sibling = x.parent.right
                    sibling.red = x.parent.red
                    x.parent.red = False
                    sibling.right.red = False
                    self._rotate_left(x.parent)
                    x = self._root
            else:
                sibling = x.parent.left
                if sibling.red:
                    sibling.red = False
                    x.parent.red = True
                    self._rotate_right(x.parent)
                    sibling = x.parent.left
                if not sibling.right.red and not sibling.left.red:
                    sibling.red = True
                    x = x.parent
                else:
                    if not sibling.left.red:
                        sibling.right.red = False
                        sibling.red = True
                        self._rotate_left(sibling)
                        sibling = x.parent.left
                    sibling.red = x.parent.red
                    x.parent.red = False
                    sibling.left.red = False
                    self._rotate_right(x.parent)
                    x = self._root
        x.red = False

    # -- traversal -----------------------------------------------------

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        stack: List[_Node] = []
        node = self._root
        while stack or node is not self._nil:
            while node is not self._nil:
                stack.append(node)
                node = node.left
            node = stack.pop()
            yield node.user_id, node.seat_id
            node = node.right

    def all_entries(self) -> List[Tuple[int, int]]:
        """All (user_id, seat_id) pairs ordered by user id."""
        return list(self)

    def entries_in_range(self, lo: int, hi: int) -> List[Tuple[int, int]]:
        """(user_id, seat_id) pairs with ``lo <= user_id <= hi``, by user id."""
        result: List[Tuple[int, int]] = []
        stack: List[_Node] = []
        node = self._root
        while stack or node is not self._nil:
            while node is not self._nil:
                if node.user_id < lo:
                    node = node.right
                    continue
                stack.append(node)
                node = node.left
            if not stack:
                break
            node = stack.pop()
            if node.user_id > hi:
                break
            result.append((node.user_id, node.seat_id))
            node = node.right
        return result

    # -- diagnostics ---------------------------------------------------

    def validate(self) -> List[str]:
        """Check ordering, parent links and the red-black rules; return violations."""
        problems: List[str] = []
        if self._root.red:
            problems.append("root is red")
        if self._root is not self._nil and self._root.parent is not self._nil:
            problems.append("root has a parent")

        count = 0

        def walk(node: _Node, lo: Optional[int], hi: Optional[int]) -> int:
            nonlocal count
            if node is self._nil:
                return 1
            count += 1
            if (lo is not None and node.user_id <= lo) or (hi is not None and node.user_id >= hi):
                problems.append(f"user {node.user_id} out of order")
            for child in (node.left, node.right):
                if child is not self._nil:
                    if child.parent is not node:
                        problems.append(f"user {child.user_id} has a stale parent link")
                    if node.red and child.red:
                        problems.append(f"red user {child.user_id} has a red parent")
            left_height = walk(node.left, lo, node.user_id)
            right_height = walk(node.right, node.user_id, hi)
            if left_height != right_height:
                problems.append(f"black height differs below user {node.user_id}")
            return left_height + (0 if node.red else 1)

        walk(self._root, None, None)
        if count != self._size:
            problems.append(f"size {self._size} does not match {count} nodes")
        return problems
