"""Shared fixtures for the PatchMatch stereo tests."""

import matplotlib
matplotlib.use("Agg")

import pytest

from .stereo_samples import make_parameters, make_shifted_pair, make_uniform_pair


@pytest.fixture
def parameters():
    return make_parameters()


@pytest.fixture
def shifted_pair():
    return make_shifted_pair(16, 24, shift=3)


@pytest.fixture
def uniform_pair():
    return make_uniform_pair(4, 4)
