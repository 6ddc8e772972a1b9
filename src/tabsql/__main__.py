import sys

from tabsql.cli import main

sys.exit(main())
