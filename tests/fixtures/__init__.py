"""Test fixtures for erlup tests.

- directories: config files and cache layouts in tmp_path
- fakes: stand-ins for git, build step execution and process launching

Import fixtures in your tests using:
    from tests.fixtures.directories import user_config
    from tests.fixtures.fakes import FakeGit
"""

__all__ = [
    "directories",
    "fakes",
]
