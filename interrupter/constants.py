"""Global constants for the interrupter application.

This module contains application-wide constants that are shared between the
interactive selector, the CLI and the cloud providers.
"""

DEFAULT_PROVIDER = "aws"

DEFAULT_INTERRUPT_TIMEOUT_SECONDS = 15.0
"""Upper bound on a single interruption call in seconds.

Once the operator confirms a selection, the session waits at most this long
for the interruption to be accepted before terminating.
"""

DEFAULT_FORCE = True
"""Skip the pre-flight check that every selected instance is a running Spot instance."""

DEFAULT_CLEAN_UP = True
"""Delete the experiment template once the interruption has started."""

DEFAULT_MAX_ATTEMPTS = 3
"""Total attempts botocore makes per API call, including the first one."""

DEFAULT_CONFIG_FILENAME = "interrupter.yaml"

CONFIG_ENV_VAR = "INTERRUPTER_CONFIG"

DEBUG_ENV_VAR = "INTERRUPTER_DEBUG"

QUIT_KEYS = frozenset({"q", "ctrl+c"})
UP_KEYS = frozenset({"up", "k"})
DOWN_KEYS = frozenset({"down", "j"})
TOGGLE_KEYS = frozenset({"space"})
CONFIRM_KEYS = frozenset({"enter"})

EXIT_CODE_SUCCESS = 0
EXIT_CODE_ERROR = 1
EXIT_CODE_CONFIG_ERROR = 2
