"""
sentiscope/cli.py
Command-line interface for Sentiscope.

USAGE:
  sentiscope analyze report.pdf --client "ACME" --channel email
  sentiscope history --client ACME --sentiment negative --limit 10
  sentiscope stats --channel email
  sentiscope export --format csv --output analyses.csv --emotions --metadata
  sentiscope models

The in-memory store does not outlive the process, so history / stats /
export are only useful with the SQLite backend:
  SENTISCOPE_STORE_BACKEND=sqlite sentiscope history
  sentiscope --store sqlite --db ./sentiscope.db history
"""

import argparse
import logging
import sys
import time
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional

from sentiscope import __version__
from sentiscope.config import ensure_config, validate_config
from sentiscope.container import Services, build_services
from sentiscope.errors import SentiscopeError
from sentiscope.exporters.record_exporter import DATE_FORMATS, ExportOptions
from sentiscope.store.query import Pagination, RecordFilter

logger = logging.getLogger(__name__)

# ANSI colors
GREEN  = '\033[92m'
YELLOW = '\033[93m'
RED    = '\033[91m'
CYAN   = '\033[96m'
RESET  = '\033[0m'
BOLD   = '\033[1m'

SENTIMENT_COLORS = {
    'positive': GREEN,
    'neutral':  YELLOW,
    'negative': RED,
}


def _add_filter_args(p: argparse.ArgumentParser) -> None:
    p.add_argument('--client',         dest='client_name', help='Client name contains (case-insensitive)')
    p.add_argument('--sentiment',      help='positive | neutral | negative')
    p.add_argument('--channel',        help='Channel contains (case-insensitive)')
    p.add_argument('--from',           dest='date_from', type=_parse_date, help='Created on/after (ISO date)')
    p.add_argument('--to',             dest='date_to',   type=_parse_end_date, help='Created on/before (ISO date)')
    p.add_argument('--min-confidence', type=float)
    p.add_argument('--max-confidence', type=float)
    p.add_argument('--search',         dest='search_text', help='Text contained in document or id')


def _parse_date(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid ISO date: {value!r}")


def _parse_end_date(value: str) -> datetime:
    """A bare date means the whole day, so it extends to 23:59:59.999999."""
    parsed = _parse_date(value)
    try:
        day = date.fromisoformat(value)
    except ValueError:
        return parsed
    return datetime.combine(day, datetime.max.time())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog        = 'sentiscope',
        description = 'Sentiscope — document sentiment analysis with a queryable history',
        formatter_class = argparse.RawDescriptionHelpFormatter,
        epilog = """
NOTE:
  Classification runs on a local Ollama model; documents do not leave the machine.
  Sentiment labels are probabilistic and should be reviewed before acting on them.
        """
    )
    parser.add_argument('--version', action='version', version=f'sentiscope {__version__}')
    parser.add_argument('--verbose', '-v', action='store_true', help='Enable debug logging')
    parser.add_argument('--store',  choices=('memory', 'sqlite'), help='Override store backend')
    parser.add_argument('--db',     type=Path, help='SQLite database path (implies --store sqlite)')
    parser.add_argument('--model',  '-m', help='Ollama model name')
    parser.add_argument('--ollama-host', help='Ollama host URL')

    sub = parser.add_subparsers(dest='command', required=True)

    p = sub.add_parser('analyze', help='Analyze one document')
    p.add_argument('file', type=Path, help='Document to analyze')
    p.add_argument('--client', dest='client_name', required=True, help='Client name')
    p.add_argument('--channel', required=True, help='Channel (email, chat, letter, ...)')
    p.add_argument('--document-id', help='Document identifier (default: file name)')
    p.add_argument('--text', action='store_true', help='Treat the file as UTF-8 text instead of PDF')

    p = sub.add_parser('history', help='List stored analyses')
    _add_filter_args(p)
    p.add_argument('--page',    type=int, default=1)
    p.add_argument('--limit',   type=int, default=20)
    p.add_argument('--sort-by', default='created_at')
    p.add_argument('--order',   dest='sort_order', default='desc', choices=('asc', 'desc'))

    p = sub.add_parser('stats', help='Aggregate statistics')
    _add_filter_args(p)

    p = sub.add_parser('export', help='Export analyses to CSV or JSON')
    _add_filter_args(p)
    p.add_argument('--format', '-f', dest='fmt', default='csv', choices=('csv', 'json'))
    p.add_argument('--output', '-o', type=Path, help='Output path (default: generated file name)')
    p.add_argument('--emotions', action='store_true', help='Include the six emotion scores')
    p.add_argument('--metadata', action='store_true', help='Include text metrics')
    p.add_argument('--date-format', choices=sorted(DATE_FORMATS), help='Date rendering (default: ISO-8601)')
    p.add_argument('--max-records', type=int)

    sub.add_parser('models', help='List locally available Ollama models')
    return parser


def _filter_from(args) -> RecordFilter:
    return RecordFilter(
        client_name    = args.client_name,
        sentiment      = args.sentiment,
        channel        = args.channel,
        date_from      = args.date_from,
        date_to        = args.date_to,
        min_confidence = args.min_confidence,
        max_confidence = args.max_confidence,
        search_text    = args.search_text,
    )


def _config_from(args) -> dict:
    config = ensure_config()
    if args.store:
        config['store_backend'] = args.store
    if args.db:
        config['store_backend'] = 'sqlite'
        config['db_path'] = str(args.db)
    if args.model:
        config['model'] = args.model
    if args.ollama_host:
        config['ollama_host'] = args.ollama_host
    if getattr(args, 'text', False):
        config['extractor'] = 'text'
    return validate_config(config)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # ── LOGGING SETUP ────────────────────────────────────────
    logging.basicConfig(
        level   = logging.DEBUG if args.verbose else logging.INFO,
        format  = '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        datefmt = '%H:%M:%S',
    )

    try:
        services = build_services(_config_from(args))
    except SentiscopeError as e:
        _print(f"{RED}Configuration error: {e}{RESET}")
        return 2

    handlers = {
        'analyze': _cmd_analyze,
        'history': _cmd_history,
        'stats':   _cmd_stats,
        'export':  _cmd_export,
        'models':  _cmd_models,
    }
    try:
        return handlers[args.command](services, args)
    except SentiscopeError as e:
        _print(f"{RED}Error: {e}{RESET}")
        return 1


# ── COMMANDS ─────────────────────────────────────────────────

def _cmd_analyze(services: Services, args) -> int:
    path: Path = args.file
    if not path.is_file():
        _print(f"{RED}Error: File not found: {path}{RESET}")
        return 1

    _step(f"Analyzing {CYAN}{path.name}{RESET} with {services.config['model']}...")
    t0 = time.time()
    outcome = services.analyze.execute(
        path.read_bytes(),
        client_name = args.client_name,
        document_id = args.document_id or path.name,
        channel     = args.channel,
    )
    r = outcome.record
    _ok(f"Done in {_elapsed(t0)}")

    color = SENTIMENT_COLORS.get(r.sentiment.value, '')
    _print(f"\n{BOLD}Analysis {r.id}{RESET}")
    _print(f"  Sentiment   : {color}{r.sentiment.value}{RESET} (confidence {r.confidence:.2f})")
    _print(f"  Emotion     : {r.dominant_emotion} ({r.emotions.intensity} intensity)")
    _print(f"  Words       : {r.metrics.word_count:,} in {r.metrics.sentence_count:,} sentences")
    _print(f"  Readability : {r.metrics.readability_score:.1f} ({r.metrics.readability_level})")
    _print(f"  Stored in   : {services.config['store_backend']}")
    return 0


def _cmd_history(services: Services, args) -> int:
    result = services.history.execute(
        _filter_from(args),
        Pagination(page=args.page, limit=args.limit, sort_by=args.sort_by, sort_order=args.sort_order),
    )
    page = result.page
    if not page.items:
        _print(f"{YELLOW}No analyses found.{RESET}")
        return 0

    _print(f"\n{BOLD}Analyses — page {page.page}/{page.total_pages} ({page.total} total){RESET}")
    for r in page.items:
        color = SENTIMENT_COLORS.get(r.sentiment.value, '')
        _print(
            f"  {r.created_at:%Y-%m-%d %H:%M}  {color}{r.sentiment.value:<8}{RESET} "
            f"{r.confidence:.2f}  {r.client_name} / {r.document_id} [{r.channel}]"
        )
    return 0


def _cmd_stats(services: Services, args) -> int:
    s = services.store.get_statistics(_filter_from(args))
    _print(f"\n{BOLD}Statistics{RESET}")
    _print(f"  Total       : {s.total:,}")
    _print(f"  {GREEN}Positive{RESET}    : {s.positive_count:,}")
    _print(f"  {YELLOW}Neutral{RESET}     : {s.neutral_count:,}")
    _print(f"  {RED}Negative{RESET}    : {s.negative_count:,}")
    _print(f"  Avg conf.   : {s.average_confidence:.3f}")
    _print(f"  Top channel : {s.most_common_channel or '-'}")
    return 0


def _cmd_export(services: Services, args) -> int:
    options = ExportOptions(
        format                 = args.fmt,
        include_metadata       = args.metadata,
        include_emotion_scores = args.emotions,
        date_format            = args.date_format,
    )
    _step(f"Exporting analyses as {args.fmt.upper()}...")
    t0 = time.time()
    outcome = services.export.execute(_filter_from(args), options, args.max_records)
    output = args.output or Path(outcome.result.filename)
    output.write_bytes(outcome.result.data)
    _ok(
        f"{outcome.exported_count:,} of {outcome.total_available:,} analyses → "
        f"{output} ({outcome.result.size:,} bytes) in {_elapsed(t0)}"
    )
    return 0


def _cmd_models(services: Services, args) -> int:
    list_models = getattr(services.classifier, 'list_available_models', None)
    models = list_models() if list_models else []
    if models:
        _print(f"\n{BOLD}Available Ollama models:{RESET}")
        for m in models:
            _print(f"  • {m}")
    else:
        _print(f"{YELLOW}No models found. Is Ollama running?{RESET}")
    return 0


# ── PRINT HELPERS ────────────────────────────────────────────

def _step(msg):  _print(f"  {CYAN}→{RESET} {msg}")
def _ok(msg):    _print(f"  {GREEN}✓{RESET} {msg}")
def _print(msg): print(msg)

def _elapsed(t0: float) -> str:
    s = time.time() - t0
    return f"{s:.1f}s" if s < 60 else f"{int(s//60)}m {int(s%60)}s"


if __name__ == '__main__':
    sys.exit(main())
