"""
multigit - Manage many git repositories from one command.

This package keeps a registry of git repositories and runs batch operations
(status, add, commit, push, pull, fetch, arbitrary commands, a git UI) across
a filtered subset of them, collecting a result for each repository.
"""

__version__ = "0.1.2"
