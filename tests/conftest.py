import random

import pytest

# A complete 4x4 board used across tests
SOLUTION_4X4 = [
    [1, 2, 3, 4],
    [3, 4, 1, 2],
    [2, 1, 4, 3],
    [4, 3, 2, 1],
]


@pytest.fixture
def rng():
    return random.Random(2024)


@pytest.fixture
def solution_4x4():
    return [row[:] for row in SOLUTION_4X4]
