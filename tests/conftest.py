from __future__ import annotations

# Import fixtures from testing/ so they are known by pytest
# and can be used with
from testing.client import client
from testing.client import server
