from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import SimpleNamespace
from typing import Mapping, Optional

from .models import PRICE_POINTS

_BOOLEAN_TRUE = {"1", "true", "yes", "on"}

DEFAULT_CONFIDENCE_THRESHOLD = 70.0
DEFAULT_TOP_N = 5


@dataclass(frozen=True)
class Config:
    """Runtime configuration assembled from environment variables and CLI options."""

    base_dir: Path
    reference_path: Optional[Path]
    observed_path: Optional[Path]
    rules_path: Optional[Path]
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    default_currency: str = "USD"
    price_point: str = "price"
    search: str = ""
    status: str = "all"
    sort_key: str = "description"
    descending: bool = False
    top_n: int = DEFAULT_TOP_N
    verbose: bool = False


def _to_path(value: object | None) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, Path):
        return value.expanduser().resolve()
    text = str(value).strip()
    if not text:
        return None
    return Path(text).expanduser().resolve()


def _to_int(value: object | None) -> Optional[int]:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _to_float(value: object | None) -> Optional[float]:
    if value is None:
        return None
    text = str(value).replace("%", "").strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


def _flag(value: object | None) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _BOOLEAN_TRUE


def _clamp_threshold(value: float) -> float:
    return min(100.0, max(0.0, float(value)))


def _namespace(cli_args: object | None) -> SimpleNamespace:
    if cli_args is None:
        return SimpleNamespace()
    if isinstance(cli_args, SimpleNamespace):
        return cli_args
    if hasattr(cli_args, "__dict__"):
        return SimpleNamespace(**{k: v for k, v in vars(cli_args).items()})
    return SimpleNamespace()


def load_config(env: Mapping[str, str], cli_args: object | None = None) -> Config:
    """Build a runtime :class:`Config` from environment variables and CLI options.

    CLI options win over environment variables.  Thresholds are clamped to
    ``[0, 100]``; an unknown price point falls back to the base price.
    """

    base_dir = Path(__file__).resolve().parents[2]

    reference_path = _to_path(env.get("REFERENCE_FILE"))
    observed_path = _to_path(env.get("OBSERVED_FILE"))
    rules_path = _to_path(env.get("NORMALIZATION_RULES_FILE"))
    threshold = _to_float(env.get("CONFIDENCE_THRESHOLD"))
    if threshold is None:
        threshold = DEFAULT_CONFIDENCE_THRESHOLD
    default_currency = (env.get("DEFAULT_CURRENCY") or "").strip().upper() or "USD"
    price_point = (env.get("PRICE_POINT") or "").strip().lower() or "price"
    top_n = _to_int(env.get("SUMMARY_TOP_N")) or DEFAULT_TOP_N
    verbose = _flag(env.get("LOOKUP_VERBOSE"))
    search = ""
    status = "all"
    sort_key = "description"
    descending = False

    cli_ns = _namespace(cli_args)
    if getattr(cli_ns, "reference", None):
        reference_path = _to_path(cli_ns.reference)
    if getattr(cli_ns, "observed", None):
        observed_path = _to_path(cli_ns.observed)
    if getattr(cli_ns, "rules_file", None):
        rules_path = _to_path(cli_ns.rules_file)
    if getattr(cli_ns, "threshold", None) is not None:
        threshold = float(cli_ns.threshold)
    if getattr(cli_ns, "price_point", None):
        price_point = str(cli_ns.price_point).strip().lower()
    if getattr(cli_ns, "search", None):
        search = str(cli_ns.search)
    if getattr(cli_ns, "status", None):
        status = str(cli_ns.status)
    if getattr(cli_ns, "sort", None):
        sort_key = str(cli_ns.sort)
    if getattr(cli_ns, "descending", False):
        descending = True
    if getattr(cli_ns, "top", None) is not None:
        top_n = max(1, int(cli_ns.top))
    if getattr(cli_ns, "verbose", False):
        verbose = bool(cli_ns.verbose)

    if price_point not in PRICE_POINTS:
        price_point = "price"

    return Config(
        base_dir=base_dir,
        reference_path=reference_path,
        observed_path=observed_path,
        rules_path=rules_path,
        confidence_threshold=_clamp_threshold(threshold),
        default_currency=default_currency,
        price_point=price_point,
        search=search,
        status=status,
        sort_key=sort_key,
        descending=descending,
        top_n=top_n,
        verbose=verbose,
    )


__all__ = ["Config", "load_config"]
