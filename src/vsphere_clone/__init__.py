"""vSphere Clone - builds vSphere clone requests from declarative options."""

__version__ = "0.1.0"
__description__ = "vSphere clone request builder"

# Import main classes for easy access
from .builder import CloneSpecBuilder, build_clone_request
from .models import (
    BootstrapOptions,
    CloneRequest,
    CustomizationPayload,
    DiskMoveMode,
    RelocationPlan,
)
from .exceptions import (
    VSphereCloneError,
    ConfigurationError,
    ConnectionError,
    NotFoundError,
    ValidationError,
    TaskError,
)
from .validation import OptionValidator, hostname_for

__all__ = [
    "__version__",
    "__description__",
    "CloneSpecBuilder",
    "build_clone_request",
    "BootstrapOptions",
    "CloneRequest",
    "CustomizationPayload",
    "DiskMoveMode",
    "RelocationPlan",
    "VSphereCloneError",
    "ConfigurationError",
    "ConnectionError",
    "NotFoundError",
    "ValidationError",
    "TaskError",
    "OptionValidator",
    "hostname_for",
]
