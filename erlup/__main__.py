"""
Entry point for running the erlup CLI as a module.

Usage: python -m erlup [command] [options]
"""

from erlup.cli.parser import run_management

if __name__ == "__main__":
    run_management()
