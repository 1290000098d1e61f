from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _version

__version__: str
try:
    __version__ = _version(__name__)
except PackageNotFoundError:
    from riggedballot.version import version

    __version__ = version

from riggedballot.ballot import MAX_BRIBE, RiggedBallot  # noqa: E402
from riggedballot.env import Env  # noqa: E402
from riggedballot.settings import Settings  # noqa: E402

__all__ = ["Env", "MAX_BRIBE", "RiggedBallot", "Settings", "__version__"]
