import logging

"""
Disable logging for the library by default
Users of the library can configure logging as needed,
for example with libefris.config.setup_logging() from a CLI entrypoint.
"""

log = logging.getLogger(__name__)

log.addHandler(logging.NullHandler())
