"""Relay worker package entry point.

Allows execution of the consumers via: python -m notification_relay.worker
"""

import asyncio

from notification_relay.worker.runner import main

if __name__ == "__main__":
    asyncio.run(main())
