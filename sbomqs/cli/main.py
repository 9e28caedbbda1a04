"""Command-line interface for sbomqs."""

import json
import sys
from typing import List, Optional, Sequence, Tuple

import click
from rich.table import Table

from .. import __version__
from .._compliance import get_framework, run_framework
from .._listing import available_features, list_feature, resolve_feature
from .._policy import (
    PolicyAction,
    PolicyType,
    any_failed,
    evaluate_policies,
    load_policy_file,
    policy_from_flags,
)
from .._scoring import (
    Category,
    ScoreFilter,
    generate_default_config,
    get_default_registry,
    load_config_file,
    score_document,
)
from .._scvs import score_scvs
from ..console import (
    console,
    print_category_summary,
    print_compliance_table,
    print_error,
    print_list_table,
    print_policy_table,
    print_scores_table,
    print_scvs_table,
    print_warning,
)
from ..exceptions import ConfigurationError, SbomqsError
from ..logging_config import logger, set_log_level
from ..report import ScoredFile, basic_line, build_json_report
from ..sbom import iter_sbom_paths, load_sbom

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


def build_filter(
    categories: Sequence[str] = (),
    features: Sequence[str] = (),
    configpath: Optional[str] = None,
) -> ScoreFilter:
    """
    Build the check selection from command line options.

    A config file wins over ``--category`` and ``--feature``.

    Raises:
        ConfigurationError: If a category is unknown or the config file is invalid
    """
    registry = get_default_registry()
    if configpath:
        if categories or features:
            print_warning("--configpath given, ignoring --category and --feature")
        return load_config_file(configpath, registry)

    score_filter = ScoreFilter.create(categories=categories, features=features)
    for name in score_filter.categories:
        try:
            Category.from_name(name)
        except ValueError as e:
            raise ConfigurationError(str(e)) from e

    if score_filter.features and not registry.select(score_filter):
        print_warning(f"No checks match features: {', '.join(sorted(score_filter.features))}")
    return score_filter


def score_paths(paths: Sequence[str], score_filter: ScoreFilter) -> Tuple[List[ScoredFile], List[str]]:
    """
    Load and score every input.

    A failing input is reported and skipped; the others are still scored.

    Returns:
        Scored files and the locations that failed
    """
    scored: List[ScoredFile] = []
    failed: List[str] = []
    for location in iter_sbom_paths(paths):
        try:
            doc = load_sbom(location)
        except SbomqsError as e:
            logger.debug(f"Failed to load {location}: {e}")
            print_error(f"{location}: {e}")
            failed.append(location)
            continue
        scored.append((location, doc, score_document(doc, score_filter)))
    return scored, failed


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="sbomqs")
@click.option("--debug", "-D", is_flag=True, help="Enable debug logging.")
def cli(debug: bool) -> None:
    """sbomqs - SBOM quality and compliance scoring for SPDX and CycloneDX."""
    if debug:
        set_log_level("DEBUG")
        logger.debug("Debug logging enabled")


@cli.command("score")
@click.argument("paths", nargs=-1, required=True)
@click.option(
    "--category",
    "-c",
    "categories",
    multiple=True,
    help="Score only these categories (repeatable or comma separated).",
)
@click.option(
    "--feature",
    "-f",
    "features",
    multiple=True,
    help="Score only these features (repeatable or comma separated); wins over --category.",
)
@click.option(
    "--configpath",
    type=click.Path(exists=True, dir_okay=False),
    help="YAML file selecting categories and features.",
)
@click.option("--json", "-j", "report", flag_value="json", help="Print a JSON report.")
@click.option("--basic", "-b", "report", flag_value="basic", help="Print one score per line.")
@click.option("--detailed", "-d", "report", flag_value="detailed", default=True, help="Print a table per SBOM.")
def score(
    paths: Tuple[str, ...],
    categories: Tuple[str, ...],
    features: Tuple[str, ...],
    configpath: Optional[str],
    report: str,
) -> None:
    """Score SBOM quality.

    PATHS are files, directories (their files are scored) or HTTP(S) URLs.
    """
    try:
        score_filter = build_filter(categories, features, configpath)
    except ConfigurationError as e:
        print_error(str(e))
        sys.exit(1)

    scored, failed = score_paths(paths, score_filter)

    if report == "json":
        click.echo(json.dumps(build_json_report(scored), indent=2))
    elif report == "basic":
        for location, _doc, scores in scored:
            click.echo(basic_line(location, scores))
    else:
        for location, doc, scores in scored:
            print_scores_table(location, doc, scores)
            if score_filter.mode == "all":
                print_category_summary(scores)

    if failed:
        sys.exit(1)


@cli.command("scvs")
@click.argument("paths", nargs=-1, required=True)
@click.option("--json", "-j", "as_json", is_flag=True, help="Print results as JSON.")
def scvs(paths: Tuple[str, ...], as_json: bool) -> None:
    """Evaluate SBOMs against the OWASP SCVS maturity levels."""
    results = []
    failed = False
    for location in iter_sbom_paths(paths):
        try:
            doc = load_sbom(location)
        except SbomqsError as e:
            print_error(f"{location}: {e}")
            failed = True
            continue
        results.append((location, score_scvs(doc)))

    if as_json:
        payload = [{"file_name": location, **scores.to_dict()} for location, scores in results]
        click.echo(json.dumps(payload, indent=2))
    else:
        for location, scores in results:
            print_scvs_table(location, scores)

    if failed:
        sys.exit(1)


@cli.group("generate")
def generate() -> None:
    """Generate configuration files."""


@generate.command("features")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write the config to a file.")
def generate_features(output: Optional[str]) -> None:
    """Print a YAML config enabling every check."""
    config = generate_default_config(get_default_registry())
    if output:
        try:
            with open(output, "w", encoding="utf-8") as f:
                f.write(config)
        except OSError as e:
            print_error(f"Cannot write {output}: {e}")
            sys.exit(1)
        console.print(f"[success]Config written to {output}[/success]")
    else:
        click.echo(config, nl=False)


@cli.command("compliance")
@click.argument("path")
@click.option("--ntia", "-n", "framework", flag_value="ntia", default=True, help="NTIA minimum elements (default).")
@click.option("--bsi", "-c", "framework", flag_value="bsi", help="BSI TR-03183-2 v1.1.")
@click.option("--oct", "-t", "framework", flag_value="oct", help="OpenChain Telco (SPDX only).")
@click.option("--fsct", "-f", "framework", flag_value="fsct", help="Framing Software Component Transparency v3.")
@click.option("--json", "-j", "report", flag_value="json", help="Print a JSON report.")
@click.option("--basic", "-b", "report", flag_value="basic", help="Print the scores on one line.")
@click.option("--detailed", "-d", "report", flag_value="detailed", default=True, help="Print a table per element.")
def compliance(path: str, framework: str, report: str) -> None:
    """Check an SBOM against a compliance framework.

    PATH is a file or HTTP(S) URL.
    """
    selected = get_framework(framework)
    try:
        doc = load_sbom(path)
        result = run_framework(selected, doc, path)
    except SbomqsError as e:
        print_error(f"{path}: {e}")
        sys.exit(1)
    except ValueError as e:
        print_error(str(e))
        sys.exit(1)

    if report == "json":
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif report == "basic":
        click.echo(selected.heading)
        click.echo(result.basic_line())
    else:
        print_compliance_table(result)


@cli.command("policy")
@click.argument("path")
@click.option("--file", "-f", "policy_file", type=click.Path(exists=True, dir_okay=False), help="YAML policy file.")
@click.option("--name", help="Name of an inline policy.")
@click.option(
    "--type",
    "policy_type",
    type=click.Choice([t.value for t in PolicyType], case_sensitive=False),
    help="Type of an inline policy.",
)
@click.option(
    "--rules", "-r", multiple=True, help="Inline rule, e.g. field=license,values=MIT,Apache-2.0 (repeatable)."
)
@click.option(
    "--action",
    type=click.Choice([a.value for a in PolicyAction], case_sensitive=False),
    default=PolicyAction.WARN.value,
    show_default=True,
    help="Outcome of an inline policy with violations.",
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["basic", "table", "json"], case_sensitive=False),
    default="basic",
    show_default=True,
    help="Report format.",
)
def policy(
    path: str,
    policy_file: Optional[str],
    name: Optional[str],
    policy_type: Optional[str],
    rules: Tuple[str, ...],
    action: str,
    output: str,
) -> None:
    """Evaluate an SBOM against policies.

    Policies come from --file or from the inline --name, --type and --rules
    flags, not both. Exits with 1 when a policy with action fail is violated.
    """
    inline = bool(name or policy_type or rules)
    if policy_file and inline:
        print_error("--file cannot be combined with --name, --type or --rules")
        sys.exit(1)
    if not policy_file and not inline:
        print_error("Provide a policy with --file, or with --name, --type and --rules")
        sys.exit(1)

    try:
        if policy_file:
            policies = load_policy_file(policy_file)
        else:
            policies = [policy_from_flags(name or "", policy_type or "", rules, action)]
        doc = load_sbom(path)
    except SbomqsError as e:
        print_error(str(e))
        sys.exit(1)

    results = evaluate_policies(policies, doc)

    if output == "json":
        click.echo(json.dumps({"file_name": path, "policies": [r.to_dict() for r in results]}, indent=2))
    elif output == "table":
        print_policy_table(path, results)
    else:
        for result in results:
            click.echo(
                f"{result.policy.name}\t{result.outcome}\t"
                f"{len(result.violations)} violation(s) in {result.total_checked} component(s)\t{path}"
            )

    if any_failed(results):
        sys.exit(1)


@cli.command("list")
@click.argument("paths", nargs=-1)
@click.option("--category", "-c", "category", help="Only list checks of this category.")
@click.option("--feature", "-f", help="List the components with this feature, e.g. comp_with_supplier.")
@click.option("--missing", "-m", is_flag=True, help="List the components lacking the feature instead.")
@click.option("--json", "-j", "as_json", is_flag=True, help="Print results as JSON.")
def list_features(
    paths: Tuple[str, ...], category: Optional[str], feature: Optional[str], missing: bool, as_json: bool
) -> None:
    """List the available checks, or the components of PATHS behind a feature.

    Without PATHS the checks are listed. With PATHS, --feature is required.
    """
    if paths:
        list_components(paths, feature, missing, as_json)
        return

    checks = get_default_registry().list_checks()
    if category:
        try:
            wanted = Category.from_name(category).value
        except ValueError as e:
            print_error(str(e))
            sys.exit(1)
        checks = [c for c in checks if c["category"] == wanted]

    table = Table(show_header=True, header_style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Feature")
    table.add_column("Description")
    for check in checks:
        table.add_row(check["category"], check["feature"], check["description"])
    console.print(table)


def list_components(paths: Sequence[str], feature: Optional[str], missing: bool, as_json: bool) -> None:
    if not feature:
        print_error("--feature is required when listing components")
        sys.exit(1)
    if resolve_feature(feature) not in available_features():
        print_error(f"Unknown feature: {feature}")
        sys.exit(1)

    results = []
    failed = False
    for path in iter_sbom_paths(paths):
        try:
            doc = load_sbom(path)
        except SbomqsError as e:
            print_warning(f"Skipping {path}: {e}")
            failed = True
            continue
        results.append(list_feature(doc, feature, missing=missing, file_name=path))

    if as_json:
        click.echo(json.dumps({"files": [r.to_dict() for r in results]}, indent=2))
    else:
        for result in results:
            print_list_table(result)

    if failed and not results:
        sys.exit(1)


def main() -> None:
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
