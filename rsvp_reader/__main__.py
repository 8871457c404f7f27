"""Package entry point for ``python -m rsvp_reader``.

WHY: Users run the player as ``python -m rsvp_reader book.epub`` for the
terminal reader, or ``python -m rsvp_reader --serve`` for the HTTP API.

HOW: Checks sys.argv for the ``--serve`` flag. If present, starts the
FastAPI app under uvicorn. Otherwise, delegates to the CLI's main().
"""

import sys

if __name__ == "__main__":
    if "--serve" in sys.argv:
        from rsvp_reader.server.app import run_api
        run_api()
    else:
        from rsvp_reader.cli import main
        main()
