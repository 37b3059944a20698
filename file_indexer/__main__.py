import sys

from file_indexer.cli import main

sys.exit(main())
