"""
Runtime settings shared by the worker and the client.

The client and the worker must agree on the Temporal address and the task
queue name, otherwise work is never routed. Both read them from here; each
can be overridden through the environment.
"""

import os

# Temporal frontend (default dev server port).
TEMPORAL_ADDRESS = os.environ.get("DISCOUNTS_TEMPORAL_ADDRESS", "localhost:7233")

# Task queue polled by the worker and targeted by the client.
TASK_QUEUE = os.environ.get("DISCOUNTS_TASK_QUEUE", "checkout-orders")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
