import sys

from ledger_import.cli import main

if __name__ == '__main__':
    sys.exit(main())
