from __future__ import annotations

# entries requested per read (and per continue prompt)
DEFAULT_BATCH_SIZE = 15

# first sequence id of every topic
FIRST_SEQ_ID = 1
