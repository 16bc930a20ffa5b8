"""
Entry points an OTP installation provides.

The set is fixed and does not depend on what a given build actually produced;
links for binaries missing from an installation are skipped, not errors.
"""

from typing import Tuple

BINARY_ALIASES: Tuple[str, ...] = (
    "ct_run",
    "dialyzer",
    "epmd",
    "erl",
    "erlc",
    "erl_call",
    "escript",
    "run_erl",
    "run_test",
    "to_erl",
    "typer",
)

MANAGEMENT_COMMAND = "erlup"


def is_binary_alias(name: str) -> bool:
    """Return True if ``name`` is one of the known toolchain entry points."""
    return name in BINARY_ALIASES
