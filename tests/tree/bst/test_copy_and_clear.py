import copy

import numpy as np
import pytest

from bstmap.tree.bst.binary_search_tree import BinarySearchTree
from bstmap.tree.bst.errors import KeyNotFoundError


STUDENT_GRADES = [
    ("Ricardo", 2.5),
    ("Ellen", 3.5),
    ("Chen", 2.5),
    ("Kevin", 3.25),
    ("Kumar", 3.05),
]


@pytest.fixture
def grades():
    tree = BinarySearchTree()
    for name, grade in STUDENT_GRADES:
        tree.insert(name, grade)
    return tree


class Uncopyable:
    def __deepcopy__(self, memo):
        raise RuntimeError("cannot copy")


class TestStudentGrades:

    def test_search(self, grades):
        assert grades.search("Ellen") == 3.5

    def test_inorder_keys(self, grades):
        np.testing.assert_array_equal(
            grades.keys(),
            np.array(
                ["Chen", "Ellen", "Kevin", "Kumar", "Ricardo"],
                dtype=object
            )
        )

    def test_heights_of_copy(self, grades):
        grade_book = BinarySearchTree()
        grade_book.assign(grades)

        assert grade_book.height() == 3
        grade_book.remove("Ellen")
        assert grade_book.height() == 2
        assert grade_book._validate()

        # the original keeps its shape
        assert grades.height() == 3
        assert "Ellen" in grades

    def test_print_inorder(self, grades, capsys):
        grades.print_inorder()

        assert capsys.readouterr().out.splitlines() == [
            'Key: "Chen", Value: "2.5"',
            'Key: "Ellen", Value: "3.5"',
            'Key: "Kevin", Value: "3.25"',
            'Key: "Kumar", Value: "3.05"',
            'Key: "Ricardo", Value: "2.5"',
        ]

    def test_print_inorder_empty(self, capsys):
        BinarySearchTree().print_inorder()
        assert capsys.readouterr().out == ""


class TestCopy:

    def test_copy_is_independent(self, grades):
        clone = grades.copy()
        assert clone.items() == grades.items()
        assert clone.preorder_items() == grades.preorder_items()
        assert clone._validate()

        grades.insert("Zoe", 4.0)
        grades.remove("Chen")
        assert "Zoe" not in clone
        assert "Chen" in clone

        clone.remove("Kevin")
        assert "Kevin" in grades

    def test_copy_constructor(self, grades):
        clone = BinarySearchTree(grades)
        assert clone.items() == grades.items()
        assert clone.height() == grades.height()
        assert clone.config == grades.config

        clone.clear()
        assert len(grades) == len(STUDENT_GRADES)

    def test_copy_of_empty_tree(self):
        clone = BinarySearchTree().copy()
        assert clone.is_empty()
        assert clone.height() == -1

    def test_copy_after_removals_is_compact(self):
        tree = BinarySearchTree()
        tree.build_tree(range(100), range(100))
        for key in range(90):
            tree.remove(key)

        clone = tree.copy()
        assert clone.items() == tree.items()
        assert clone.capacity == clone.config.initial_capacity
        assert clone._validate()

    def test_deepcopy_copies_values(self):
        tree = BinarySearchTree()
        tree.insert("a", [1, 2])

        deep = copy.deepcopy(tree)
        tree["a"].append(3)
        assert deep["a"] == [1, 2]

        method_copy = tree.copy()
        tree["a"].append(4)
        assert method_copy["a"] == [1, 2, 3]

    def test_shallow_copy_shares_values_not_structure(self):
        tree = BinarySearchTree()
        tree.insert("a", [1, 2])

        shallow = copy.copy(tree)
        assert shallow["a"] is tree["a"]

        shallow.insert("b", [])
        assert "b" not in tree

    def test_deepcopy_of_self_referencing_tree(self):
        tree = BinarySearchTree()
        tree.insert("me", tree)
        tree.insert("box", [tree])

        clone = copy.deepcopy(tree)
        assert clone is not tree
        assert clone["me"] is clone
        assert clone["box"][0] is clone
        assert clone._validate()

    def test_deepcopy_reuses_memo_entry(self):
        tree = BinarySearchTree()
        tree.insert(1, "one")

        pair = copy.deepcopy([tree, tree])
        assert pair[0] is pair[1]
        assert pair[0] is not tree

    def test_copy_constructor_sizes_arena_to_source(self):
        tree = BinarySearchTree()
        tree.build_tree(range(100), range(100))

        clone = BinarySearchTree(tree)
        assert clone.capacity == 100
        assert clone.items() == tree.items()
        assert clone._validate()

        assert BinarySearchTree(BinarySearchTree()).capacity == 64


class TestAssign:

    def test_assign_replaces_contents(self, grades):
        target = BinarySearchTree()
        target.build_tree([1, 2, 3], ["x", "y", "z"])

        assert target.assign(grades) is target
        assert target.items() == grades.items()
        assert target._validate()

        target.remove("Ricardo")
        assert "Ricardo" in grades

    def test_self_assign(self, grades):
        items_before = grades.items()
        grades.assign(grades)
        assert grades.items() == items_before
        assert grades._validate()

    def test_failed_copy_leaves_target_unchanged(self):
        source = BinarySearchTree()
        source.insert("bad", Uncopyable())

        target = BinarySearchTree()
        target.build_tree([2, 1, 3], ["b", "a", "c"])
        items_before = target.items()

        with pytest.raises(RuntimeError, match="cannot copy"):
            target.assign(source)

        assert target.items() == items_before
        assert target._validate()


class TestClear:

    def test_clear(self, grades):
        capacity = grades.capacity
        grades.clear()

        assert grades.height() == -1
        assert len(grades) == 0
        assert grades.is_empty()
        assert grades.capacity == capacity
        assert grades._validate()
        for name, _ in STUDENT_GRADES:
            with pytest.raises(KeyNotFoundError):
                grades.search(name)

    def test_reuse_after_clear(self, grades):
        grades.clear()
        grades.insert("Ann", 3.9)
        assert grades.items() == [("Ann", 3.9)]
        assert grades.height() == 0

    def test_clear_empty_tree(self):
        tree = BinarySearchTree()
        tree.clear()
        assert tree.is_empty()
