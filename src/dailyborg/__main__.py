# pyright: standard

"""dailyborg: dailyborg/__main__.py.

Run a borg backup of the configured sources at most once per day, safe to
start from cron and by hand at the same time.
"""

import sys

from .cli.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
