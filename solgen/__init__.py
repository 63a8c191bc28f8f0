"""
solgen: smart-contract ABI → binding IR compiler
Convenience exports for the most common APIs.
"""

from .version import __version__  # noqa: F401

# Errors
from .errors import (  # noqa: F401
    SolgenError,
    MalformedABI,
    StructDepthExceeded,
    UnsupportedLanguageFeature,
    UnsupportedType,
    DuplicateMember,
    ConfigError,
)

# Compiler
from .bind import (  # noqa: F401
    Contract,
    Customs,
    Lang,
    compile_all,
    load_contract,
    parse_abi,
    parse_contract,
)

# Config
from .config import SolgenConfig  # noqa: F401
