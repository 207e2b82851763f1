"""Run the podplacement service: ``python -m podplacement``.

Equivalent to ``podplacement serve``. Configuration comes from the
PODPLACEMENT_* environment variables.
"""

from __future__ import annotations

import asyncio

from podplacement.app import main

if __name__ == "__main__":
    asyncio.run(main())
