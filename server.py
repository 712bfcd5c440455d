#!/usr/bin/env python3
"""Development server for the Bolt.new web interface.

Serves the single-page chat/editor UI and a stub `/api/chat` endpoint that
answers with a canned message and a few generated files, so the interface can
be exercised without any model behind it. FastAPI is used when it is
installed; otherwise the built-in asyncio server takes over.

Run with:
    python server.py --port 3000
"""

import sys

from bolt_web.cli import main

if __name__ == "__main__":
    sys.exit(main())
