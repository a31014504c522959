"""Allow ``python -m bigdiff``."""

import sys

from bigdiff.main import main


sys.exit(main())
