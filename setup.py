"""
Build script for htmlfeatures.

Metadata lives in pyproject.toml. This script only decides whether the
feature builder is compiled with mypyc:

    HTMLFEATURES_USE_MYPYC=1 pip install .[mypyc]
"""

import os
import sys

from setuptools import setup


def mypyc_extensions() -> list:
    if os.environ.get("HTMLFEATURES_USE_MYPYC", "0") != "1":
        return []

    try:
        from mypyc.build import mypycify
    except ImportError:
        print("ERROR: HTMLFEATURES_USE_MYPYC=1 needs mypy: pip install htmlfeatures[mypyc]", file=sys.stderr)
        sys.exit(1)

    return mypycify(
        ["src/htmlfeatures/feature.py"],
        opt_level=os.environ.get("MYPYC_OPT_LEVEL", "3"),
    )


if __name__ == "__main__":
    setup(ext_modules=mypyc_extensions())
