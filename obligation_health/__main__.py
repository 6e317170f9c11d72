"""Entry point for ``python -m obligation_health``."""
from .cli import main

if __name__ == "__main__":
    main()
