"""genlog - size-bounded log rotation and retention."""

import logging

__version__ = "0.1.0"

# Silent unless the application configures logging (e.g. `genlog --verbose`)
logging.getLogger(__name__).addHandler(logging.NullHandler())
