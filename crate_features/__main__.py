"""Allow ``python -m crate_features``."""

from .main import run

if __name__ == "__main__":
    run()
