import sys

from facility_stock.cli import main

sys.exit(main())
