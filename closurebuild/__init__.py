"""closurebuild: classify web sources and drive the Closure toolchain."""

__version__ = "0.1.0"

from .build_config import ResolvedBuildConfig, resolve_output
from .builder import ClosureBuilder
from .dispatcher import Dispatcher
from .models import BuildDescriptor, BuildResult, BuildType, ClassifiedFileSet

__all__ = [
    "BuildDescriptor",
    "BuildResult",
    "BuildType",
    "ClassifiedFileSet",
    "ClosureBuilder",
    "Dispatcher",
    "ResolvedBuildConfig",
    "__version__",
    "resolve_output",
]
