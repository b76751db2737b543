from __future__ import annotations

import numpy as np
import pytest

from emoji_mosaic.colour_convert import to_hcl
from emoji_mosaic.quantize import bucket_centres, reduce, reduce_channels


def test_channel_maxima_land_in_top_bucket():
    assert reduce((360.0, 134.0, 100.0), 16) == (15, 15, 15)
    assert reduce((0.0, 0.0, 0.0), 16) == (0, 0, 0)


def test_out_of_range_values_are_clamped():
    assert reduce((-5.0, 500.0, 101.0), 8) == (0, 7, 7)


def test_vector_matches_scalar():
    rng = np.random.default_rng(3)
    hcl = rng.uniform([0, 0, 0], [360, 134, 100], size=(200, 3))
    vec = reduce_channels(hcl, 12)
    assert [tuple(int(v) for v in row) for row in vec] == [reduce(row, 12) for row in hcl]


@pytest.mark.parametrize("channel,top", [(0, 360.0), (1, 134.0), (2, 100.0)])
def test_monotonic_per_channel(channel, top):
    values = np.linspace(0.0, top, 500)
    hcl = np.zeros((500, 3))
    hcl[:, channel] = values
    buckets = reduce_channels(hcl, 16)[:, channel]
    assert (np.diff(buckets) >= 0).all()
    assert buckets[0] == 0 and buckets[-1] == 15


def test_depth_two_primaries():
    assert reduce(to_hcl((255, 0, 0)), 2) == (0, 1, 1)
    assert reduce(to_hcl((0, 255, 0)), 2) == (0, 1, 1)
    assert reduce(to_hcl((0, 0, 255)), 2) == (1, 1, 0)
    assert reduce(to_hcl((255, 0, 255)), 2) == (1, 1, 1)


def test_bucket_centres_reduce_to_their_own_bucket():
    centres = bucket_centres(10)
    buckets = reduce_channels(centres, 10)
    for ch in range(3):
        assert list(buckets[:, ch]) == list(range(10))
