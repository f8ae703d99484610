import sys

from .admin import main

if __name__ == "__main__":
    sys.exit(main())
