__title__ = 'devcom'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .commands import *
from .config import *
from .contexts import *
from .conversion import *
from .convars import *
from .discovery import *
from .engine import *
from .faults import *
from .logs import *
from .tokens import *

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__license__",
    "__version__",
    "version_info"
)

# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the config
__all__ += config.__all__  # type: ignore[attr-defined]
# Load the exposed API of the contexts
__all__ += contexts.__all__  # type: ignore[attr-defined]
# Load the exposed API of the conversion
__all__ += conversion.__all__  # type: ignore[attr-defined]
# Load the exposed API of the convars
__all__ += convars.__all__  # type: ignore[attr-defined]
# Load the exposed API of the discovery
__all__ += discovery.__all__  # type: ignore[attr-defined]
# Load the exposed API of the engine
__all__ += engine.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the logs
__all__ += logs.__all__  # type: ignore[attr-defined]
# Load the exposed API of the tokens
__all__ += tokens.__all__  # type: ignore[attr-defined]
