"""dev-shell: an interactive shell with smart commits for git repositories."""

__version__ = "0.1.0"
