import sys

from csv_ingest.cli import main

sys.exit(main())
