import sys

from pocket_research.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
