#!/usr/bin/env python3
"""Command-line interface for grading a batch of submissions against an answer key."""

import argparse
import logging
import sys
from pathlib import Path

from tqdm import tqdm

from keygrade.libs.config_loader import get_config, load_all_configs
from keygrade.libs.extraction import default_extractors
from keygrade.libs.settings_store import GRADING_PROMPT_SETTING, SettingsStore
from .grader import AnswerKeyGrader
from .models import GradingStatus
from .session import GradingSession

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
LOG = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Grade student submissions against an answer key using OpenAI',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Grade a ZIP of submissions and write grading_results.csv
  keygrade --key key.docx --submissions submissions.zip

  # Grade a scanned stack of students (split on Student:/Name:/Page N/---- lines)
  keygrade --key key.pdf --submissions scans.pdf --output scans.csv

  # Use a custom grading prompt and remember it for next time
  keygrade --key key.txt --submissions hw.zip --prompt-file prompt.txt --save-prompt
        """
    )

    parser.add_argument(
        '--key', '-k',
        type=Path,
        required=True,
        help='Answer key file (.txt, .docx or .pdf)'
    )
    parser.add_argument(
        '--submissions', '-s',
        type=Path,
        required=True,
        help='Submission file: .txt, .docx, .pdf, image, or a .zip of those'
    )
    parser.add_argument(
        '--output', '-o',
        type=Path,
        default=Path('grading_results.csv'),
        help='Where to write the CSV export (default: grading_results.csv)'
    )
    parser.add_argument(
        '--threshold', '-t',
        type=float,
        default=None,
        help='Pass threshold in percent (overrides config value, default 70)'
    )
    parser.add_argument(
        '--model', '-m',
        type=str,
        default=None,
        help='OpenAI model to use (overrides config value)'
    )
    parser.add_argument(
        '--api-key',
        type=str,
        default=None,
        help='OpenAI API key; saved to the settings store for later runs'
    )
    parser.add_argument(
        '--prompt-file',
        type=Path,
        default=None,
        help='File holding the grading system prompt'
    )
    parser.add_argument(
        '--save-prompt',
        action='store_true',
        help='Remember the --prompt-file prompt in the settings store'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )
    return parser


def print_report(session: GradingSession) -> None:
    print(f"\n{'='*60}")
    print("Grading Complete")
    print(f"{'='*60}")
    print(f"Pass threshold: {session.pass_threshold:.0f}%")

    for record, summary in zip(session.records, session.summaries()):
        if record.status == GradingStatus.ERROR:
            print(f"  {record.identifier}: ERROR - {record.error}")
        elif record.parse_error:
            print(f"  {record.identifier}: could not parse response - {record.parse_error.message}")
        else:
            outcome = "PASS" if summary['passed'] else "FAIL"
            print(f"  {summary['name']}: {summary['total']:g}/{summary['worth']:g} "
                  f"({summary['percentage']:.1f}%) {summary['letter_grade']} {outcome}")


def main():
    """Main entry point for the keygrade command."""
    args = build_parser().parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    for path, label in ((args.key, "Answer key"), (args.submissions, "Submissions")):
        if not path.is_file():
            LOG.error(f"{label} file does not exist: {path}")
            sys.exit(1)

    try:
        config = load_all_configs()
    except Exception as e:
        LOG.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    store = SettingsStore.from_configs(config)
    if args.api_key:
        store.save_api_key(args.api_key)

    grader = AnswerKeyGrader.from_configs(config, store=store, model=args.model)
    if args.prompt_file:
        grader.grading_prompt = args.prompt_file.read_text(encoding='utf-8')
        if args.save_prompt:
            store.set(GRADING_PROMPT_SETTING, grader.grading_prompt)

    threshold = args.threshold
    if threshold is None:
        threshold = get_config("grading.pass_threshold", config, default=70)

    try:
        extractors = default_extractors(get_config("extraction.ocr_language", config, default="eng"))
        session = GradingSession(grader, pass_threshold=threshold, extractors=extractors)
    except ValueError as e:
        LOG.error(str(e))
        sys.exit(1)

    session.load_answer_key(args.key)
    session.upload_submissions(args.submissions)
    LOG.info(f"Grading {len(session.records)} submissions from {args.submissions}")

    with tqdm(total=len(session.records), desc="Grading submissions") as progress:
        def on_update(index, record):
            if record.status in (GradingStatus.DISPLAYED, GradingStatus.ERROR):
                progress.update(1)

        try:
            session.grade_all(on_update)
        except ValueError as e:
            LOG.error(f"Cannot grade: {e}")
            sys.exit(1)

    print_report(session)

    session.export_csv(args.output)
    print(f"\nResults saved to: {args.output}")

    if any(r.status == GradingStatus.ERROR for r in session.records):
        sys.exit(1)


if __name__ == "__main__":
    main()
