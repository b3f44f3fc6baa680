import pytest

from neotrack.sites import read_obscode_dat
from samples import OCD_SAMPLE


@pytest.fixture
def parallax_map():
    return read_obscode_dat(OCD_SAMPLE)
