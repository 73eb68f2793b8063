import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import pytest

from mdkb.core.errors import InvalidName
from mdkb.core.filenames import safe_filename, validate_name


def test_basic():
    assert safe_filename("Hello World") == "Hello World"


def test_slashes():
    assert safe_filename("a/b\\c") == "a-b-c"


def test_md_suffix_dropped():
    assert safe_filename("Ideas.md") == "Ideas"


def test_hidden_names_unhidden():
    assert safe_filename(".metadata") == "metadata"


def test_empty():
    assert safe_filename("   ") == ""
    assert safe_filename(None) == ""
    with pytest.raises(InvalidName):
        validate_name(" . ")


def test_reserved_windows():
    assert safe_filename("CON").startswith("_")


def test_unicode_normalization():
    assert safe_filename("ｆｕｌｌ") == "full"
    assert validate_name("笔记") == "笔记"
