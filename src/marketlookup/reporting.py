import pandas as pd

from .analysis import PortfolioSummary


def make_summary_text(frame: pd.DataFrame, summary: PortfolioSummary, threshold: float, top_n: int = 5) -> str:
    matched = frame.loc[frame["MATCHES"] > 0]
    ranked = matched.assign(ABS_VARIANCE=matched["VARIANCE_FROM_AVG"].abs())
    top = ranked.sort_values("ABS_VARIANCE", ascending=False, na_position="last").head(top_n)[
        ["CODE", "DESCRIPTION", "PRICE", "MATCHES", "MARKET_AVG", "VARIANCE_FROM_AVG"]
    ]
    top_text = top.to_string(index=False, float_format=lambda v: f"{v:,.2f}") if not top.empty else "(none)"
    return (
        f"Reference items: {summary.reference_items:,} | Market points: {summary.observed_items:,} | "
        f"Active lookups at >= {threshold:.0f}%: {summary.active_lookups:,}\n"
        f"Mapped products: {summary.mapped_products:,} "
        f"(below market: {summary.under_market}, within +/-5%: {summary.within_range}, "
        f"above market: {summary.over_market}, undefined variance: {summary.undefined_variance})\n"
        f"Largest undercut: {summary.largest_undercut_pct:.1f}%\n"
        f"Largest deviations from market average:\n{top_text}\n"
    )
