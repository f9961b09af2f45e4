"""Relation metadata CLI commands: validate and show."""

from pathlib import Path

import click

from docrelate.config import RelationSettings
from docrelate.metadata.loader import RelationLoader
from docrelate.metadata.validator import validate_relation_file, validate_relations_dir


def _settings() -> RelationSettings:
    try:
        return RelationSettings.from_env(base_path=Path.cwd())
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)


@click.group()
def relations():
    """Relation metadata commands."""
    pass


@relations.command()
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Validate a single YAML file instead of the whole relations directory.",
)
def validate(strict: bool, target_path: Path | None):
    """Validate relation YAML files against the relation schema."""
    settings = _settings()
    relations_path = settings.relations_path

    # ── Schema (JSON Schema) validation ─────────────────────────────────────
    if target_path is not None:
        issues = validate_relation_file(target_path)
        if strict:
            for issue in issues:
                issue.severity = "error"
    else:
        if not relations_path.exists():
            click.echo(f"Error: Relations directory not found at {relations_path}", err=True)
            raise SystemExit(1)
        issues = validate_relations_dir(relations_path, strict=strict)

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} schema error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    # ── Semantic (loader) validation ─────────────────────────────────────────
    if target_path is None:
        loader = RelationLoader(relations_path)
        try:
            loader.load_all()
        except ValueError as e:
            click.echo(click.style(f"\nSemantic validation failed: {e}", fg="red"), err=True)
            raise SystemExit(1)

        collections = loader.list_collections()
        click.echo(f"\nLoaded relations for {len(collections)} collection(s):")
        for name in collections:
            relation_set = loader.relation_sets[name]
            click.echo(f"  ✓ {name} ({len(relation_set.relations)} relations)")

    click.echo(click.style("\nAll relation metadata is valid.", fg="green", bold=True))


@relations.command()
def show():
    """List declared relations with their paths and policies."""
    settings = _settings()
    loader = RelationLoader(settings.relations_path)
    try:
        loader.load_all()
    except ValueError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if not loader.relation_sets:
        click.echo(f"No relations found in {settings.relations_path}")
        return

    for name in loader.list_collections():
        click.echo(click.style(name, bold=True))
        for field_name, config in loader.relation_sets[name].relations.items():
            paths = config.resolved_paths()
            on_replace = config.on_replace or config.on_update
            click.echo(f"  {field_name} -> {config.collection}.{config.key}")
            click.echo(
                f"    paths: identifier={paths.identifier} "
                f"field={paths.field} modifier={paths.modifier_path}"
            )
            click.echo(
                f"    onUpdate={config.on_update} onReplace={on_replace} "
                f"onDelete={config.on_delete}"
            )
