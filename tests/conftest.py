import random

import pytest

from architecture import Architecture


def assemble(*words):
    """Big endian bytes for a list of 16-bit instruction words."""
    return b"".join(word.to_bytes(2, "big") for word in words)


@pytest.fixture
def cpu():
    return Architecture(rng=random.Random(1234))


@pytest.fixture
def run(cpu):
    """Load the given words as a program and execute each of them once."""
    def _run(*words, steps=None):
        cpu.LOAD_PROGRAM(assemble(*words))
        for _ in range(len(words) if steps is None else steps):
            cpu.EXECUTE()
        return cpu
    return _run


@pytest.fixture
def program():
    return assemble
