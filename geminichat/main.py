"""Main application entry point.

Runs the relay and the NiceGUI chat page, on one port or as two servers.
Environment variables are loaded from .env file.
"""

import logging
import os
import sys

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

# Configure logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def _port() -> int:
    return int(os.getenv("PORT", "8000"))


def run_integrated() -> None:
    """Run the relay with the NiceGUI chat page on the same server.

    FastAPI handles /api/chat, NiceGUI serves the page at /.
    """
    import uvicorn
    from nicegui import ui

    from geminichat.api.app import create_app
    from geminichat.ui.chat_page import chat_page  # noqa: F401 - Registers the page

    app = create_app()
    ui.run_with(app, title="Gemini Chat")

    logger.info(f"Gemini Chat running on http://localhost:{_port()}")
    logger.info(f"API docs available at http://localhost:{_port()}/docs")

    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),
        port=_port(),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


def run_separate() -> None:
    """Run the relay in a child process and the chat page in this one.

    The relay listens on $PORT, the page on $UI_PORT and reaches the relay
    through $API_BASE_URL. Stopping the page stops the relay.
    """
    import subprocess

    from geminichat.ui import chat_page

    relay = subprocess.Popen(
        [
            sys.executable,
            "-m",
            "uvicorn",
            "geminichat.api.app:app",
            "--host",
            os.getenv("HOST", "0.0.0.0"),
            "--port",
            str(_port()),
            "--log-level",
            os.getenv("LOG_LEVEL", "info").lower(),
        ]
    )
    logger.info(f"Relay started (pid {relay.pid}) on port {_port()}")

    try:
        chat_page.main()
    finally:
        logger.info("Stopping relay...")
        relay.terminate()
        relay.wait()


def main() -> None:
    """Application entry point.

    RUN_MODE=integrated (default) serves the relay and the page on one port,
    RUN_MODE=separate runs them as two servers.
    """
    mode = os.getenv("RUN_MODE", "integrated").lower()

    logger.info(f"Starting Gemini Chat in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
