"""
crossscan — Disjoint Set
"""


class DisjointSet:
    """Union-find over 0..n-1 with path halving and union by size.

    Ties in size keep the smaller index as root, so the same sequence of
    unions always yields the same roots.
    """

    def __init__(self, size: int):
        self._parent = list(range(size))
        self._size = [1] * size

    def __len__(self) -> int:
        return len(self._parent)

    def find(self, item: int) -> int:
        parent = self._parent
        while parent[item] != item:
            parent[item] = parent[parent[item]]
            item = parent[item]
        return item

    def union(self, a: int, b: int) -> int:
        """Merge the sets of a and b; returns the surviving root."""
        root_a, root_b = self.find(a), self.find(b)
        if root_a == root_b:
            return root_a
        if (self._size[root_a], -root_a) < (self._size[root_b], -root_b):
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._size[root_a] += self._size[root_b]
        return root_a

    def connected(self, a: int, b: int) -> bool:
        return self.find(a) == self.find(b)

    def sets(self) -> list[list[int]]:
        """All sets, members ascending, ordered by their smallest member."""
        grouped: dict[int, list[int]] = {}
        for item in range(len(self._parent)):
            grouped.setdefault(self.find(item), []).append(item)
        return sorted(grouped.values(), key=lambda members: members[0])
