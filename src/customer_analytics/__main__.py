"""Entry point for ``python -m customer_analytics``."""

import sys

from customer_analytics.pipeline import main

sys.exit(main())
