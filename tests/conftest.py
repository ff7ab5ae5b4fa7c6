import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rhocore import estree as es


def loc(line, column):
    return es.SourceLocation(start=es.Position(line=line, column=column))


@pytest.fixture
def at():
    """Build a source location from (line, column)."""
    return loc


@pytest.fixture
def ident():
    """Build an Identifier at a given position."""
    def make(name, line=1, column=0):
        return es.Identifier(name=name, loc=loc(line, column))
    return make


@pytest.fixture
def lit():
    """Build a Literal at a given position."""
    def make(value, line=1, column=0):
        return es.Literal(value=value, loc=loc(line, column))
    return make
