"""Allow ``python -m quilldoc``."""

from quilldoc.cli import app

if __name__ == "__main__":
    app()
