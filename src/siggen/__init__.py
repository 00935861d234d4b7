"""siggen - type-directed signature generation.

Finds the call sites of a Ruby program whose resolved method declaration
carries a ``%a{siggen: ...}`` template, expands the templates with the
calls' arguments, and merges the results into RBS declarations.
"""

from siggen.client import Siggen
from siggen.core.config import SiggenConfig, get_config
from siggen.core.errors import SiggenError

__version__ = "0.1.0"

__all__ = ["Siggen", "SiggenConfig", "SiggenError", "get_config", "__version__"]
