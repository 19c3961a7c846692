from bstmap.tree.bst.binary_search_tree import BinarySearchTree, format_entry
from bstmap.tree.bst.config import BSTConfig
from bstmap.tree.bst.errors import (
    KeyNotFoundError,
    StructuralIntegrityError,
    TreeError,
)
