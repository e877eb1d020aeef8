import numpy as np
import pytest
from mpi4py import MPI

from Jacobi import ProcessGrid


@pytest.fixture
def grid():
    """1 x 1 grid over COMM_SELF; runs every collective code path in-process."""
    g = ProcessGrid.build(MPI.COMM_SELF)
    yield g
    g.free()


@pytest.fixture
def rng():
    return np.random.default_rng(1234)
