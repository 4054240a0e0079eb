import argparse
import logging
import os
import time
from pathlib import Path
from typing import Optional, Sequence

from dotenv import load_dotenv

from .analysis import SORT_KEYS, STATUS_FILTERS, comparison_frame, filter_rows, sort_rows, summarize_portfolio
from .api import LookupSession
from .config import Config
from .config import load_config as load_runtime_config
from .ingest import load_observed_items, load_reference_items
from .matching import MATCH_FLOOR
from .models import PRICE_POINTS
from .normalize import build_normalizer
from .policy import apply_policy_defaults, resolve_policy_path
from .reporting import make_summary_text

BASE_DIR = Path(__file__).resolve().parents[2]

logger = logging.getLogger(__name__)


def run(runtime_config: Config) -> int:
    cfg = runtime_config
    stage_counter = 0

    def log_stage(message: str) -> None:
        nonlocal stage_counter
        stage_counter += 1
        logger.info("[pipeline:%02d] %s", stage_counter, message)

    def log_detail(message: str) -> None:
        logger.info("           %s", message)

    if cfg.reference_path is None or cfg.observed_path is None:
        logger.error("Both a reference file and an observed file are required (--reference/--observed).")
        return 2

    log_stage("Preparing normalization rules")
    normalizer = build_normalizer(cfg.rules_path)
    log_detail(f"rules={len(normalizer.rules)} | stop_words={len(normalizer.stop_words)}")

    log_stage("Loading reference catalog and market observations")
    reference_items = load_reference_items(cfg.reference_path, normalizer, cfg.default_currency)
    observed_items = load_observed_items(cfg.observed_path, normalizer, cfg.default_currency)
    log_detail(f"reference_items={len(reference_items):,} | observed_items={len(observed_items):,}")

    log_stage("Scoring reference x observed cross product")
    started = time.perf_counter()
    session = LookupSession.run(reference_items, observed_items)
    elapsed = time.perf_counter() - started
    log_detail(
        f"pairs_evaluated={len(reference_items) * len(observed_items):,} | "
        f"edges_above_floor({MATCH_FLOOR:.0f})={len(session.edges):,} | elapsed={elapsed:.2f}s"
    )

    log_stage(f"Aggregating market prices at confidence >= {cfg.confidence_threshold:.0f}% ({cfg.price_point})")
    rows = session.rows(cfg.confidence_threshold, price_point=cfg.price_point)
    summary = summarize_portfolio(rows, len(observed_items), session.active_lookups(cfg.confidence_threshold))

    view = sort_rows(filter_rows(rows, cfg.search, cfg.status), cfg.sort_key, cfg.descending)
    log_detail(f"rows_in_view={len(view):,} | status={cfg.status} | sort={cfg.sort_key}")
    for row in view:
        stats = row.stats
        if stats.has_data:
            logger.debug(
                "[item] %s :: %s :: matches=%d | avg=%.2f | variance_from_avg=%.2f%% | health=%s",
                row.reference.code,
                row.reference.description,
                stats.count,
                stats.avg_price,
                stats.variance_from_avg,
                row.health,
            )
        else:
            logger.debug("[item] %s :: %s :: no market data", row.reference.code, row.reference.description)

    logger.info("\n=== SUMMARY ===\n")
    logger.info("%s", make_summary_text(comparison_frame(view), summary, cfg.confidence_threshold, cfg.top_n))
    logger.info("Inputs used:")
    logger.info(" - Reference file: %s", cfg.reference_path)
    logger.info(" - Observed file: %s", cfg.observed_path)
    if cfg.rules_path:
        logger.info(" - Normalization rules: %s", cfg.rules_path)
    return 0


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Match reference items to market observations and compare prices")
    parser.add_argument("--reference", help="CSV/XLSX with the reference catalog")
    parser.add_argument("--observed", help="CSV/XLSX with market observations")
    parser.add_argument("--threshold", type=float, help="Confidence threshold (0-100) for accepted matches")
    parser.add_argument("--price-point", choices=PRICE_POINTS, help="Observed price column used for statistics")
    parser.add_argument("--rules-file", help="Optional CSV/JSON with extra abbreviation rules")
    parser.add_argument("--search", help="Only report reference items whose code or description contains this text")
    parser.add_argument("--status", choices=STATUS_FILTERS, help="Filter rows by match status")
    parser.add_argument("--sort", choices=SORT_KEYS, help="Sort key for reported rows")
    parser.add_argument("--descending", action="store_true", help="Sort in descending order")
    parser.add_argument("--top", type=int, help="Number of largest deviations listed in the summary")
    parser.add_argument("-v", "--verbose", action="store_true", help="Increase logging verbosity")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(BASE_DIR / ".env")
    apply_policy_defaults(resolve_policy_path(os.environ))
    args = parse_args(argv)
    runtime_cfg = load_runtime_config(os.environ, args)
    log_level = logging.DEBUG if runtime_cfg.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(message)s")
    try:
        return run(runtime_config=runtime_cfg)
    except Exception:
        logger.exception("Fatal error during market lookup")
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
