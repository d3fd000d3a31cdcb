import sys
import os

import pytest

# Add backend/ to path so tests can import backend modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "backend"))

# Add scripts/ to path so tests can import script modules directly
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "scripts"))

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")


@pytest.fixture
def data_dir():
    return DATA_DIR


@pytest.fixture
def rng():
    from random_source import RandomSource
    return RandomSource(seed=1234)
