# python setup.py build_ext -i clean
import os
import sys

from Cython.Build import cythonize
from setuptools import Extension, find_packages, setup

COMPILER_DIRECTIVES = {
    "language_level": 3,
    "boundscheck": False,
    "wraparound": False,
    "initializedcheck": False,
    "nonecheck": False,
    "cdivision": True,
    "profile": False,
}

# Pure-Python-mode modules: importable as plain Python, compiled when built.
source_files = [
    (
        "bstmap.tree.bst.binary_search_tree",
        "bstmap/tree/bst/binary_search_tree.py"
    ),
]


def create_extensions(source_files: list[tuple]) -> list[Extension]:
    """
    Create Cython extensions for all available source files.

    Parameters
    ----------
    source_files : list[tuple]
        A list of tuples. The first element of the tuple is the module in
        `package.module` format. The second element is the `path` to the file.

    Returns
    -------
    list[Extension]
        A list of Cython extensions
    """
    extensions = []
    for module_name, source_path in source_files:
        extra_compile_args = []
        if sys.platform != "win32":
            extra_compile_args.append("-O3")

        extension = Extension(
            name=module_name,
            sources=[source_path],
            extra_compile_args=extra_compile_args,
            language="c"
        )
        extensions.append(extension)
    return extensions


def main() -> None:
    """Main setup function for compiling"""
    # Filter out non-existing files
    files = [
        (name, path)
        for name, path in source_files
        if os.path.exists(path)
    ]

    if not files:
        raise RuntimeError("No source files found to compile")

    extensions = create_extensions(files)

    setup(
        ext_modules=cythonize(
            extensions,
            compiler_directives=COMPILER_DIRECTIVES,
            language_level=3
        ),
        packages=find_packages(include=["bstmap", "bstmap.*"]),
        zip_safe=False
    )


if __name__ == "__main__":
    main()
