"""HTML rendering and writing of the aggregated dependency report."""

import html
from pathlib import Path

import structlog

from dep_inventory.errors import ReportWriteError
from dep_inventory.models import AggregateReport

log = structlog.get_logger("dep_inventory.report")

DEFAULT_OUTPUT = Path("dependencies.html")


def render_html(report: AggregateReport, include_conflicts: bool = False) -> str:
    """Return a standalone HTML document with one row per dependency."""
    rows = "\n".join(
        "      <tr>"
        f"<td>{_esc(name)}</td>"
        f"<td>{_esc(version)}</td>"
        f"<td>{_esc(description)}</td>"
        "</tr>"
        for name, version, description in report.rows()
    )

    sections = [
        "    <table>\n"
        "      <thead>\n"
        "        <tr><th>Name</th><th>Version</th><th>Description</th></tr>\n"
        "      </thead>\n"
        "      <tbody>\n"
        f"{rows}\n"
        "      </tbody>\n"
        "    </table>"
    ]
    if include_conflicts and report.conflicts:
        sections.append(_render_conflicts(report))

    body = "\n".join(sections)
    return f"""\
<!DOCTYPE html>
<html>
  <head>
    <meta charset="utf-8">
    <title>Dependencies</title>
  </head>
  <body>
{body}
  </body>
</html>
"""


def _render_conflicts(report: AggregateReport) -> str:
    rows = []
    for c in report.conflicts:
        specs = "".join(
            f"<li><code>{_esc(spec)}</code> in {_esc(root)}</li>"
            for root, spec in c.specifiers.items()
        )
        rows.append(
            "      <tr>"
            f"<td>{_esc(c.identifier)}</td>"
            f"<td>{_esc(str(c.resolved_from))}</td>"
            f"<td><ul>{specs}</ul></td>"
            "</tr>"
        )
    body = "\n".join(rows)
    return (
        "    <h2>Version conflicts</h2>\n"
        "    <table>\n"
        "      <thead>\n"
        "        <tr><th>Dependency</th><th>Reported from</th><th>Declared</th></tr>\n"
        "      </thead>\n"
        "      <tbody>\n"
        f"{body}\n"
        "      </tbody>\n"
        "    </table>"
    )


def write_report(content: str, path: Path = DEFAULT_OUTPUT) -> Path:
    """Write *content* to *path*; failures raise ReportWriteError."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ReportWriteError(path, e.strerror or str(e)) from e
    log.info("report.written", path=str(path), bytes=len(content.encode("utf-8")))
    return path


def _esc(text: str) -> str:
    return html.escape(text)
