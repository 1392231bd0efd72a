import os
import sys
import pytest

# Ensure the project root is on the module search path when the package is not
# installed, so that the lorawan_* modules import during collection.
ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

# frames taken from a network server log.
UP_FRAME = "407710012680140001bd18eb4a325ccfabd70b64ccc350"
DOWN_FRAME = "6004000048aa2e000353000070035300ff000d8e6798"
JOIN_REQUEST = "00dc0000d07ed5b3701e6fedf57ceeaf00c886030af2c9"
JOIN_ACCEPT = ("20813f47f508ffa2670b6e23e01f84b9e25d9c4115f02eea0b3dd3e20b"
               "3eca92da")


@pytest.fixture
def up_frame():
    return bytes.fromhex(UP_FRAME)


@pytest.fixture
def down_frame():
    return bytes.fromhex(DOWN_FRAME)


@pytest.fixture
def join_request():
    return bytes.fromhex(JOIN_REQUEST)


@pytest.fixture
def join_accept():
    return bytes.fromhex(JOIN_ACCEPT)


@pytest.fixture
def warnings_seen():
    return []
