"""CLI for launching the local grading app."""

import argparse
import logging
import webbrowser
from threading import Timer

from keygrade.libs.config_loader import get_config, load_all_configs
from keygrade.libs.extraction import default_extractors
from keygrade.libs.settings_store import SettingsStore
from keygrade.tools.answer_key_grading.grader import AnswerKeyGrader
from keygrade.tools.answer_key_grading.session import GradingSession
from .app import create_app, run_server

LOG = logging.getLogger(__name__)


def open_browser(url, delay=1.5):
    """Open browser after a delay."""
    def _open():
        webbrowser.open(url)
    Timer(delay, _open).start()


def main():
    """Main CLI entry point for the grading app."""
    parser = argparse.ArgumentParser(
        description='Launch the local answer-key grading app',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
  # Launch the app
  keygrade-app

  # Opens browser to http://127.0.0.1:5000
  # Upload an answer key and submissions, grade them, export CSV
        """
    )

    parser.add_argument(
        '--host',
        default=None,
        help='Host to bind to (default: app.host from config, else 127.0.0.1)'
    )

    parser.add_argument(
        '--port',
        type=int,
        default=None,
        help='Port to bind to (default: app.port from config, else 5000)'
    )

    parser.add_argument(
        '--no-browser',
        action='store_true',
        help='Do not automatically open browser'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Run in debug mode'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args()

    # Set up logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_all_configs()
    except (TypeError, ValueError) as e:
        parser.error(f"Could not load configuration: {e}")

    host = args.host or get_config("app.host", config, default="127.0.0.1")
    port = args.port or get_config("app.port", config, default=5000)

    LOG.info("Initializing grading session...")
    store = SettingsStore.from_configs(config)
    grader = AnswerKeyGrader.from_configs(config, store=store)
    extractors = default_extractors(get_config("extraction.ocr_language", config, default="eng"))
    session = GradingSession(grader, pass_threshold=get_config("grading.pass_threshold", config, default=70),
                             extractors=extractors)

    create_app(session, store)

    url = f"http://{host}:{port}"
    if not args.no_browser:
        LOG.info(f"Opening browser at {url}")
        open_browser(url)
    else:
        LOG.info(f"Server will be available at {url}")

    LOG.info(f"Starting server on {host}:{port}")
    print("\n" + "="*70)
    print("  ANSWER KEY GRADER")
    print("="*70)
    print(f"\n  URL: {url}")
    print(f"  Settings: {store.path}")
    print("\n  Press Ctrl+C to stop the server")
    print("="*70 + "\n")

    try:
        run_server(host=host, port=port, debug=args.debug)
    except KeyboardInterrupt:
        print("\n\nShutting down server...")
        LOG.info("Server stopped")


if __name__ == '__main__':
    main()
