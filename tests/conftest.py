from contextlib import contextmanager

import hypothesis
import pytest

from riggedballot.ballot import RiggedBallot
from riggedballot.env import Env
from riggedballot.exceptions import Reverted
from riggedballot.settings import Settings

############
# PATCHING #
############


# disable hypothesis deadline globally
hypothesis.settings.register_profile(
    "ci",
    deadline=None,
    suppress_health_check=[hypothesis.HealthCheck.function_scoped_fixture],
)
hypothesis.settings.load_profile("ci")


PROPOSAL_NAMES = ["first", "second", "third"]


@pytest.fixture(scope="module")
def settings():
    return Settings(num_accounts=10, seed="riggedballot-tests")


@pytest.fixture(scope="module")
def env(settings) -> Env:
    return Env(settings)


@pytest.fixture(scope="module")
def accounts(env):
    return env.accounts


@pytest.fixture(scope="module")
def chair(env):
    return env.deployer


@pytest.fixture(scope="module")
def ballot(env, chair):
    return env.deploy(RiggedBallot, PROPOSAL_NAMES, sender=chair)


# Isolate tests by reverting the state of the environment after each test
@pytest.fixture(autouse=True)
def isolation(env):
    with env.anchor():
        yield


@pytest.fixture(scope="module")
def get_logs(env):
    return env.get_logs


@pytest.fixture(scope="module")
def tx_failed():
    @contextmanager
    def fn(exception=Reverted, exc_text=None):
        with pytest.raises(exception) as excinfo:
            yield

        if exc_text:
            assert exc_text in str(excinfo.value), (exc_text, excinfo.value)

    return fn
