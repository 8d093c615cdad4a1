# Native modules for MicroScript.
# Each module exposes a populate_*_environment() function returning an
# Environment of NativeFunctions and constants keyed by qualified name.
from .console import populate_console_environment
from .io import populate_io_environment
from .math import populate_math_environment

# Modules loaded into every interpreter before the program runs
PRELUDE = [populate_console_environment, populate_io_environment]

# Modules made available by an ``import name;`` statement
IMPORTABLE = {
    'math': populate_math_environment,
}
