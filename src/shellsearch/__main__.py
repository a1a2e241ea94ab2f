"""Allow ``python -m shellsearch``."""

from shellsearch.cli import app

if __name__ == "__main__":
    app()
