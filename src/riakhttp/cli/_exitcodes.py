"""Exit codes used by the riak CLI."""

SUCCESS = 0
NOT_FOUND = 1
USAGE_ERROR = 2
SERVER_ERROR = 3
