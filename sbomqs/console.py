"""Rich console utilities for sbomqs.

This module provides a shared Rich Console instance and the table renderers
used by the CLI for scoring and SCVS reports.
"""

import os
from typing import List, Optional, Tuple

from rich.console import Console
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from ._compliance import ComplianceResult
from ._listing import ListResult
from ._policy import PolicyResult
from ._scoring import MAX_SCORE, Scores
from ._scvs import LEVELS, ScvsScores
from .models import Document

# Detect CI environments
IS_GITHUB_ACTIONS = os.getenv("GITHUB_ACTIONS") == "true"
IS_GITLAB_CI = os.getenv("GITLAB_CI") == "true"
IS_CI = os.getenv("CI") == "true" or IS_GITHUB_ACTIONS or IS_GITLAB_CI

custom_theme = Theme(
    {
        "info": "cyan",
        "warning": "yellow",
        "error": "bold red",
        "success": "bold green",
        "step": "bold blue",
        "highlight": "magenta",
        "score.good": "green",
        "score.fair": "yellow",
        "score.poor": "red",
        "score.ignored": "dim",
        "maturity.none": "bold red",
        "maturity.minimum": "bold green",
        "maturity.recommended": "bold cyan",
        "maturity.aspirational": "bold yellow",
    }
)

# Force colors ON in GitHub Actions (it supports ANSI colors but Rich may incorrectly disable them)
console = Console(
    theme=custom_theme,
    force_terminal=IS_GITHUB_ACTIONS or None,
    color_system="auto",
)

# Diagnostics go to stderr so JSON output on stdout stays parseable
err_console = Console(theme=custom_theme, stderr=True)


def score_style(score: float) -> str:
    """Map a 0-10 score onto a theme style."""
    if score >= 7.5:
        return "score.good"
    if score >= 5.0:
        return "score.fair"
    return "score.poor"


def format_score(score: float, ignored: bool = False) -> Text:
    """Render a score cell, ``-`` for ignored checks."""
    if ignored:
        return Text(" - ", style="score.ignored")
    return Text(f"{score:0.1f}/{MAX_SCORE:0.1f}", style=score_style(score))


def _sorted_rows(scores: Scores) -> List[Tuple[str, str, float, bool, str]]:
    rows = [(r.category, r.feature, r.score, r.ignored, r.description) for r in scores.results]
    return sorted(rows, key=lambda row: (row[0], row[1]))


def print_scores_table(path: str, doc: Document, scores: Scores) -> None:
    """
    Print the detailed report for one SBOM.

    A heading line with the average score and component count is followed by
    a table of every check, ordered by category then feature.

    Args:
        path: Location the SBOM was read from
        doc: Parsed Document
        scores: Results of scoring the Document
    """
    heading = Text.assemble(
        ("SBOM Quality Score: ", "bold"),
        (f"{scores.avg_score:0.1f}", score_style(scores.avg_score)),
        f"\tcomponents: {len(doc.components)}\t",
        (path, "highlight"),
    )
    console.print(heading)

    table = Table(show_header=True, header_style="bold", show_lines=True)
    table.add_column("Category", style="cyan")
    table.add_column("Feature")
    table.add_column("Score", justify="right")
    table.add_column("Desc")

    previous_category: Optional[str] = None
    for category, feature, score, ignored, description in _sorted_rows(scores):
        # Merge repeated category cells
        shown = category if category != previous_category else ""
        previous_category = category
        table.add_row(shown, feature, format_score(score, ignored), description)

    console.print(table)


def print_category_summary(scores: Scores) -> None:
    """Print per-category averages as a two-column table."""
    category_scores = scores.category_scores()
    if not category_scores:
        return

    table = Table(title="Category Summary", show_header=True, header_style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Average", justify="right")

    for category, average in category_scores.items():
        table.add_row(category, format_score(average))

    console.print(table)


def _level_cell(value: Optional[bool]) -> Text:
    if value is None:
        return Text("")
    if value:
        return Text("✓", style="success")
    return Text("✗", style="error")


def print_scvs_table(path: str, scores: ScvsScores) -> None:
    """
    Print SCVS feature results with one column per maturity level.

    Args:
        path: Location the SBOM was read from
        scores: SCVS results for the document
    """
    console.print(Text.assemble(("SCVS SBOM Maturity Report: ", "bold"), (path, "highlight")))

    table = Table(show_header=True, header_style="bold", show_lines=True)
    table.add_column("Feature", overflow="fold")
    for name in LEVELS:
        table.add_column(f"Level {name[1:]}", justify="center")

    for result in scores.results:
        table.add_row(result.description, *(_level_cell(result.level(name)) for name in LEVELS))

    summary = scores.level_summary()
    table.add_row(
        Text("Passed", style="bold"),
        *(
            Text(f"{summary[name][0]}/{summary[name][1]}", style="success" if scores.level_passed(name) else "error")
            for name in LEVELS
        ),
    )

    console.print(table)


def print_compliance_table(result: ComplianceResult) -> None:
    """
    Print the detailed compliance report for one SBOM.

    Rows are grouped by element; optional sections carry a ``*`` after
    their id.
    """
    framework = result.framework
    score = result.score
    console.print(Text(framework.heading, style="bold"))
    console.print(
        Text.assemble(
            f"Compliance score Score:{score.total:0.1f} RequiredScore:{score.required:0.1f} "
            f"OptionalScore:{score.optional:0.1f} for ",
            (result.file_name, "highlight"),
        )
    )
    console.print("* indicates optional fields")

    table = Table(show_header=True, header_style="bold", show_lines=True)
    table.add_column("ElementId", style="magenta", overflow="fold")
    table.add_column("Section", style="cyan")
    table.add_column("Datafield", overflow="fold")
    table.add_column("Element Result", overflow="fold")
    table.add_column("Score", justify="right")
    if framework.has_maturity:
        table.add_column("Maturity")

    previous_element: Optional[str] = None
    for row in result.sections():
        element = row["element_id"] if row["element_id"] != previous_element else ""
        previous_element = row["element_id"]
        section_id = row["section_id"] if row["required"] else f"{row['section_id']}*"
        cells = [element, section_id, row["section_data_field"], row["element_result"]]
        if framework.has_maturity:
            style = f"maturity.{row['maturity'].lower()}"
            cells += [Text(f"{row['score']:0.1f}", style=style), Text(row["maturity"], style=style)]
        else:
            cells.append(Text(f"{row['score']:0.1f}", style=score_style(row["score"])))
        table.add_row(*cells)

    console.print(table)


def print_policy_table(path: str, results: List[PolicyResult]) -> None:
    """Print one row per policy and one per violation."""
    console.print(Text.assemble(("Policy Report: ", "bold"), (path, "highlight")))

    summary = Table(show_header=True, header_style="bold")
    summary.add_column("Policy", style="cyan")
    summary.add_column("Type")
    summary.add_column("Action")
    summary.add_column("Outcome")
    summary.add_column("Checked", justify="right")
    summary.add_column("Violations", justify="right")
    outcome_styles = {"pass": "success", "warn": "warning", "fail": "error"}
    for result in results:
        summary.add_row(
            result.policy.name,
            result.policy.type.value,
            result.policy.action.value,
            Text(result.outcome, style=outcome_styles[result.outcome]),
            str(result.total_checked),
            str(len(result.violations)),
        )
    console.print(summary)

    violations = [(r.policy.name, v) for r in results for v in r.violations]
    if not violations:
        return
    table = Table(title="Violations", show_header=True, header_style="bold")
    table.add_column("Policy", style="cyan")
    table.add_column("Component", overflow="fold")
    table.add_column("Field")
    table.add_column("Actual", overflow="fold")
    table.add_column("Reason")
    for name, violation in violations:
        table.add_row(name, violation.component, violation.field, ", ".join(violation.actual), violation.reason)
    console.print(table)


def print_list_table(result: ListResult) -> None:
    """Print the components (or document property) listed for a feature."""
    state = "missing" if result.missing else "present"
    if result.document_property is not None:
        prop = result.document_property
        console.print(Text.assemble(("Feature: ", "bold"), prop.property, "\t", (result.file_name, "highlight")))
        table = Table(show_header=True, header_style="bold")
        table.add_column("Property", style="cyan")
        table.add_column("Value", overflow="fold")
        table.add_column("Present")
        table.add_row(prop.property, prop.value, _level_cell(prop.present))
        console.print(table)
        return

    console.print(
        Text.assemble(
            ("Feature: ", "bold"),
            f"{result.feature} ({state}) {len(result.components)}/{result.total_components} components\t",
            (result.file_name, "highlight"),
        )
    )
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan", overflow="fold")
    table.add_column("Version")
    table.add_column("Value", overflow="fold")
    for entry in result.components:
        table.add_row(entry.name, entry.version, entry.value)
    console.print(table)


def print_error(message: str) -> None:
    """Print an error line to stderr."""
    err_console.print(f"[error]Error:[/error] {message}")


def print_warning(message: str) -> None:
    """Print a warning line to stderr."""
    err_console.print(f"[warning]Warning:[/warning] {message}")
