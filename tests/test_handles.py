import pytest

from contentmap.domain import Handle, Position
from contentmap.services.handles import assign_handles

ORIGIN = Position(0, 0)


@pytest.mark.parametrize(
    "target, expected",
    [
        (Position(300, 50), (Handle.RIGHT, Handle.LEFT)),
        (Position(-300, 50), (Handle.LEFT, Handle.RIGHT)),
        (Position(50, 300), (Handle.BOTTOM, Handle.TOP)),
        (Position(50, -300), (Handle.TOP, Handle.BOTTOM)),
        # ties go to the vertical axis
        (Position(100, 100), (Handle.BOTTOM, Handle.TOP)),
    ],
)
def test_assign_handles_by_dominant_axis(target, expected):
    assert assign_handles(ORIGIN, target) == expected


def test_assign_handles_defaults_without_positions():
    assert assign_handles(None, Position(0, 500)) == (Handle.RIGHT, Handle.LEFT)
    assert assign_handles(ORIGIN, None) == (Handle.RIGHT, Handle.LEFT)
