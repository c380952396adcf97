"""Test configuration and fixtures."""

import pytest

from helpers import make_wav
from instrumentify.models.track import Track


@pytest.fixture
def wav_bytes():
    return make_wav()


@pytest.fixture
def tracks():
    return [
        Track(title="Blue Monday", artist="New Order", position=0),
        Track(title="Stuck", artist="Nobody", position=1),
        Track(title="Hyperballad", artist="Björk", position=2),
        Track(title="Windowlicker", artist="Aphex Twin", position=3),
    ]
