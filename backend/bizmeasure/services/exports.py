"""
exports.py — Valuation Export Formatters

Purpose:
- Render a company + its valuation as CSV, JSON or a printable HTML report.
- Every numeric valuation field is carried unchanged, so a CSV/JSON export
  parses back to the values stored in the valuation record.

This module does NOT:
- Query the database (callers pass the Company and Valuation rows).
- Render PDFs; the HTML report is meant to be printed from the browser.
"""

from __future__ import annotations

import csv
import datetime
import html
import io
import json
import re
from typing import Any, Dict, List, Optional, Tuple

# (column header, Valuation attribute)
VALUATION_FIELDS: List[Tuple[str, str]] = [
    ("Valuation (Min)", "valuation_min"),
    ("Valuation (Median)", "valuation_median"),
    ("Valuation (Max)", "valuation_max"),
    ("EBITDA Multiple", "ebitda_multiple"),
    ("Discounted Cash Flow", "discounted_cash_flow"),
    ("Revenue Multiple", "revenue_multiple"),
    ("Asset Based", "asset_based"),
    ("Risk Score", "risk_score"),
    ("Financial Health Score", "financial_health_score"),
    ("Market Position Score", "market_position_score"),
    ("Operational Efficiency Score", "operational_efficiency_score"),
    ("Debt Structure Score", "debt_structure_score"),
]

COMPANY_FIELDS: List[Tuple[str, str]] = [
    ("Company Name", "name"),
    ("Sector", "sector"),
    ("Location", "location"),
    ("Years in Business", "years_in_business"),
]


def export_filename(company_name: str, extension: str) -> str:
    """`Acme GmbH` + `csv` → `acme-gmbh-valuation.csv`"""
    slug = re.sub(r"[^a-z0-9]+", "-", (company_name or "").lower()).strip("-") or "company"
    return f"{slug}-valuation.{extension}"


# -----------------------------------------------------------------------------
# CSV
# -----------------------------------------------------------------------------

# Leading characters spreadsheet applications evaluate as a formula
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")


def _csv_text(value: Any) -> Any:
    """Prefix text cells that would be read as a formula with a quote."""
    if isinstance(value, str) and value.startswith(_FORMULA_PREFIXES):
        return "'" + value
    return value


def format_csv(company, valuation) -> str:
    """
    Header row + one data row. Missing method estimates are empty cells;
    company text that starts like a formula is quoted.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow([header for header, _ in COMPANY_FIELDS + VALUATION_FIELDS])

    row: List[Any] = [_csv_text(getattr(company, attr)) for _, attr in COMPANY_FIELDS]
    for _, attr in VALUATION_FIELDS:
        value = getattr(valuation, attr)
        row.append("" if value is None else value)
    writer.writerow(row)

    return buffer.getvalue()


# -----------------------------------------------------------------------------
# JSON
# -----------------------------------------------------------------------------

def export_payload(company, valuation) -> Dict[str, Any]:
    return {
        "company": {
            "name": company.name,
            "sector": company.sector,
            "industry_group": company.industry_group,
            "location": company.location,
            "years_in_business": company.years_in_business,
            "goal": company.goal,
        },
        "valuation": {
            **{attr: getattr(valuation, attr) for _, attr in VALUATION_FIELDS},
            "red_flags": list(valuation.red_flags or []),
        },
    }


def format_json(company, valuation) -> str:
    return json.dumps(export_payload(company, valuation), indent=2)


# -----------------------------------------------------------------------------
# HTML
# -----------------------------------------------------------------------------

def _money(value: Optional[float]) -> str:
    if value is None:
        return "n/a"
    return f"€{value:,.0f}"


def _cell(value: Any) -> str:
    return html.escape("" if value is None else str(value))


_HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
  body {{ font-family: Helvetica, Arial, sans-serif; color: #1f2937; margin: 40px; }}
  h1 {{ color: #1e3a8a; margin-bottom: 4px; }}
  .muted {{ color: #6b7280; }}
  .range {{ font-size: 28px; font-weight: bold; color: #1e40af; margin: 16px 0; }}
  table {{ border-collapse: collapse; width: 100%; margin: 16px 0; }}
  th, td {{ border: 1px solid #e5e7eb; padding: 8px 12px; text-align: left; }}
  th {{ background: #f3f4f6; }}
  .flag {{ color: #b91c1c; }}
</style>
</head>
<body>
<h1>{company_name}</h1>
<p class="muted">Business Valuation Report &middot; Generated on {generated_on}</p>

<h2>Company Profile</h2>
<table>
{profile_rows}
</table>

<h2>Estimated Valuation</h2>
<div class="range">{valuation_min} &ndash; {valuation_max}</div>
<p>Median estimate: <strong>{valuation_median}</strong></p>

<h2>Valuation Methods</h2>
<table>
<tr><th>Method</th><th>Estimate</th></tr>
{method_rows}
</table>

<h2>Risk Assessment</h2>
<table>
<tr><th>Score</th><th>Value (0-100)</th></tr>
{score_rows}
</table>

<h2>Red Flags</h2>
{red_flags}

<p class="muted">This report is an indicative estimate based on the information provided \
and does not constitute financial advice.</p>
</body>
</html>
"""


def format_html(company, valuation, generated_on: Optional[datetime.date] = None) -> str:
    generated_on = generated_on or datetime.date.today()

    profile_rows = "\n".join(
        f"<tr><th>{html.escape(header)}</th><td>{_cell(getattr(company, attr))}</td></tr>"
        for header, attr in COMPANY_FIELDS[1:] + [("Goal", "goal")]
    )
    method_rows = "\n".join(
        f"<tr><td>{html.escape(header)}</td><td>{html.escape(_money(getattr(valuation, attr)))}</td></tr>"
        for header, attr in VALUATION_FIELDS[3:7]
    )
    score_rows = "\n".join(
        f"<tr><td>{html.escape(header)}</td><td>{_cell(getattr(valuation, attr))}</td></tr>"
        for header, attr in VALUATION_FIELDS[7:]
    )
    flags = valuation.red_flags or []
    if flags:
        red_flags = "<ul>\n" + "\n".join(f'<li class="flag">{html.escape(f)}</li>' for f in flags) + "\n</ul>"
    else:
        red_flags = "<p>No red flags identified.</p>"

    return _HTML_TEMPLATE.format(
        title=html.escape(f"{company.name} - Valuation Report"),
        company_name=html.escape(company.name),
        generated_on=html.escape(generated_on.strftime("%d %B %Y")),
        profile_rows=profile_rows,
        valuation_min=html.escape(_money(valuation.valuation_min)),
        valuation_median=html.escape(_money(valuation.valuation_median)),
        valuation_max=html.escape(_money(valuation.valuation_max)),
        method_rows=method_rows,
        score_rows=score_rows,
        red_flags=red_flags,
    )
