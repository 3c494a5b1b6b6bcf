from buddhabrot.config import SamplingRegion
from buddhabrot.point_source import PointSource

REGION = SamplingRegion((-2.0, 1.0), (-1.4, 1.4))


def test_same_seed_same_sequence():
    a = PointSource(REGION, 1988)
    b = PointSource(REGION, 1988)
    assert [a.sample() for _ in range(5000)] == [b.sample() for _ in range(5000)]


def test_different_seeds_differ():
    a = PointSource(REGION, 1988)
    b = PointSource(REGION, 1989)
    assert [a.sample() for _ in range(10)] != [b.sample() for _ in range(10)]


def test_points_stay_in_region():
    src = PointSource(REGION, 42, block_size=100)
    points = [src.sample() for _ in range(1000)]
    assert all(REGION.contains(p) for p in points)
    # crude uniformity check: both halves of the real range get hit
    left = sum(p.real < -0.5 for p in points)
    assert 300 < left < 700


def test_worker_seeding():
    src = PointSource.for_worker(REGION, 1988, 3)
    assert src.seed == 1991
    ref = PointSource(REGION, 1991)
    assert src.sample() == ref.sample()
