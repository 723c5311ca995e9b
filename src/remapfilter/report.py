from __future__ import annotations

import datetime as _dt
import logging
from pathlib import Path
from typing import Any, Dict

from jinja2 import Template

logger = logging.getLogger(__name__)


_REPORT_TEMPLATE = Template(
    """<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>remapfilter report: {{ shard }}</title>
  <style>
    body { font-family: Arial, Helvetica, sans-serif; margin: 24px; }
    code, pre { background: #f6f8fa; padding: 2px 4px; border-radius: 4px; }
    h1, h2, h3 { margin-top: 1.2em; }
    table { border-collapse: collapse; margin-top: 0.6em; }
    th, td { border: 1px solid #ddd; padding: 8px; }
    th { background: #f2f2f2; text-align: left; }
    .grid { display: grid; grid-template-columns: 1fr 1fr; gap: 16px; }
    .card { border: 1px solid #ddd; border-radius: 8px; padding: 12px; }
    .small { color: #666; font-size: 0.9em; }
    img { max-width: 100%; height: auto; border: 1px solid #eee; border-radius: 6px; }
  </style>
</head>
<body>

<h1>remapfilter report: {{ shard }}</h1>
<p class="small">Generated: {{ generated_at }}</p>

<h2>Run summary</h2>
<div class="grid">
  <div class="card">
    <h3>Inputs</h3>
    <table>
      <tr><th>Mappings</th><td><code>{{ paths.mappings }}</code></td></tr>
      <tr><th>Failed mappings</th><td><code>{{ paths.failed_mappings }}</code></td></tr>
      <tr><th>FASTA</th><td><code>{{ paths.fasta }}</code></td></tr>
      <tr><th>Feature dump</th><td><code>{{ paths.features }}</code></td></tr>
    </table>
  </div>
  <div class="card">
    <h3>Filtering</h3>
    <table>
      <tr><th>Mode</th><td><code>{{ config.mode }}</code></td></tr>
      <tr><th>Score threshold</th><td>{{ config.score_threshold }}</td></tr>
      <tr><th>Prior chromosome filtering</th><td>{{ config.use_prior_for_filtering }}</td></tr>
    </table>
  </div>
</div>

<h2>Statistics</h2>
<table>
  {% for name, value in statistics.items() %}
  <tr><th>{{ name }}</th><td>{{ value }}</td></tr>
  {% endfor %}
  <tr><th>Filtered placements</th><td>{{ filtered_rows }}</td></tr>
  <tr><th>Load-ready rows</th><td>{{ load_rows }}</td></tr>
</table>

<h2>Plots</h2>
<div class="grid">
  <div class="card">
    <h3>Mapping outcome</h3>
    <img src="{{ plots.class_counts }}" alt="mapping outcome counts">
  </div>
  <div class="card">
    <h3>Kept alignment scores</h3>
    <img src="{{ plots.score_hist }}" alt="score histogram">
  </div>
</div>

<h2>Outputs</h2>
<ul>
  <li><code>{{ paths.filtered_mappings }}</code> (filtered mappings)</li>
  <li><code>{{ paths.statistics }}</code> (statistics)</li>
  <li><code>{{ paths.load_features }}</code> (load-ready feature rows)</li>
</ul>

<hr>
<p class="small">remapfilter {{ version }}</p>
</body>
</html>"""
)


def render_report(
    *,
    outdir: str | Path,
    version: str,
    summary: Dict[str, Any],
    plots: Dict[str, str],
) -> Path:
    outdir = Path(outdir)
    outdir.mkdir(parents=True, exist_ok=True)

    html = _REPORT_TEMPLATE.render(
        generated_at=_dt.datetime.now().isoformat(timespec="seconds"),
        version=version,
        shard=summary.get("shard", ""),
        paths=summary.get("paths", {}),
        config=summary.get("config", {}),
        statistics=summary.get("statistics", {}),
        filtered_rows=summary.get("filtered_rows"),
        load_rows=summary.get("load_rows"),
        plots=plots,
    )

    out_path = outdir / "report.html"
    out_path.write_text(html, encoding="utf-8")
    return out_path
