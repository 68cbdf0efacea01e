"""CLI for the namegen name generator."""

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console

from namegen import __version__
from namegen.config import (
    ANY_DECADE,
    NamegenConfig,
    is_any_decade,
    load_config,
    save_config,
)
from namegen.favorites import FavoritePerson, FavoritesManager
from namegen.generator import NameGenerator
from namegen.logging import SessionLogger, analyze_logs, log_event, set_logger
from namegen.models.names import GENDERS, GeneratedName, GenerationRequest
from namegen.output.formatters import details_filename, format_details, format_names
from namegen.table import NameTable

app = typer.Typer(
    name="namegen",
    help="Random personal name generator with a favorites collection.",
    no_args_is_help=True,
)
console = Console()


# =============================================================================
# CLI Helpers
# =============================================================================

def _cli_error(message: str, detail: str | None = None) -> None:
    """Print formatted error message to console."""
    if detail:
        console.print(f"[red]Error:[/red] {message}: {detail}")
    else:
        console.print(f"[red]Error:[/red] {message}")


def _safe_write_file(path: Path, content: str, description: str = "file") -> bool:
    """Write file with error handling and atomic write. Returns True on success."""
    temp_path = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_suffix(path.suffix + ".tmp")
        temp_path.write_text(content, encoding="utf-8")
        temp_path.replace(path)
        return True
    except PermissionError as e:
        _cli_error(f"Permission denied writing {description}", str(e))
        return False
    except OSError as e:
        _cli_error(f"Failed to write {description}", str(e))
        return False
    finally:
        if temp_path and temp_path.exists() and not path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass


def _load_table(config: NamegenConfig) -> NameTable:
    """Load the configured name table, exiting if it is unusable."""
    table = NameTable.load(config.names_file)
    if not table.loaded:
        _cli_error("Name table not loaded", str(table.source))
        raise typer.Exit(1)
    return table


def _start_session(command: str, config: NamegenConfig) -> SessionLogger | None:
    if not config.log_sessions:
        return None
    session = SessionLogger(command)
    set_logger(session)
    return session


def _end_session(session: SessionLogger | None) -> None:
    if session is None:
        return
    session.finalize()
    set_logger(None)


def _resolve_favorite(manager: FavoritesManager, target: str | None) -> FavoritePerson:
    """Find a favorite by ID, unique ID prefix or exact full name."""
    if not target:
        _cli_error("Favorite ID or name required")
        raise typer.Exit(1)

    person = manager.get_favorite(target)
    if person is None:
        matches = manager.find_by_id_prefix(target)
        if len(matches) > 1:
            _cli_error("Ambiguous ID", f"'{target}' prefix matches {len(matches)} favorites")
            raise typer.Exit(1)
    if person is None and " " in target.strip():
        first, last = target.strip().rsplit(" ", 1)
        person = manager.find_by_name(first, last)
    if person is None:
        _cli_error("Favorite not found", target)
        raise typer.Exit(1)
    return person


def _print_favorite_line(person: FavoritePerson) -> None:
    tags = f" [cyan]{', '.join(person.tags)}[/cyan]" if person.tags else ""
    console.print(f"  [dim]{person.id[:8]}[/dim]  {person.full_name}{tags}")


# =============================================================================
# Commands
# =============================================================================

@app.command()
def generate(
    gender: Annotated[
        Optional[str],
        typer.Option("-g", "--gender", help="Gender: male, female, diverse")
    ] = None,
    nationality: Annotated[
        Optional[str],
        typer.Option("-n", "--nationality", help="Nationality: german, british")
    ] = None,
    decade: Annotated[
        Optional[str],
        typer.Option("-d", "--decade", help="Birth decade (e.g. 1990) or 'any'")
    ] = None,
    alliteration: Annotated[
        Optional[bool],
        typer.Option("--alliteration/--no-alliteration", help="Last name starts like the first name")
    ] = None,
    double: Annotated[
        Optional[bool],
        typer.Option("--double/--no-double", help="Hyphenated double first names")
    ] = None,
    count: Annotated[
        Optional[int],
        typer.Option("-c", "--count", min=1, max=100, help="Number of names to generate")
    ] = None,
    alphabet: Annotated[
        bool,
        typer.Option("--alphabet", help="One name per last-name initial, sorted A-Z")
    ] = False,
    favorite: Annotated[
        bool,
        typer.Option("--favorite", help="Add every generated name to favorites")
    ] = False,
    fmt: Annotated[
        str,
        typer.Option("-f", "--format", help="Output format: text, json, markdown")
    ] = "text",
    output: Annotated[
        Optional[Path],
        typer.Option("-o", "--output", help="Write names to a file instead of the terminal")
    ] = None,
    seed: Annotated[
        Optional[int],
        typer.Option("--seed", help="Random seed for reproducible output")
    ] = None,
):
    """Generate random names.

    Options not given on the command line come from the [defaults] section
    of the config file.

    Examples:
        namegen generate                              # Five names with config defaults
        namegen generate -g male -n british -d 1970
        namegen generate --alliteration -c 10
        namegen generate --alphabet -f markdown       # A-Z list as a table
        namegen generate --double --favorite          # Save results to favorites
    """
    config = load_config()
    defaults = config.defaults

    gender = gender or defaults.gender
    nationality = nationality or defaults.nationality
    decade = decade or defaults.decade
    use_alliteration = defaults.use_alliteration if alliteration is None else alliteration
    use_double_name = defaults.use_double_name if double is None else double
    count = count or defaults.count

    if gender not in GENDERS:
        _cli_error("Unknown gender", f"'{gender}' (valid: {', '.join(GENDERS)})")
        raise typer.Exit(1)
    if fmt not in ("text", "json", "markdown", "md"):
        _cli_error("Unknown format", f"'{fmt}' (valid: text, json, markdown)")
        raise typer.Exit(1)

    table = _load_table(config)
    if nationality not in table.nationalities():
        valid = ", ".join(table.nationalities())
        _cli_error("Unknown nationality", f"'{nationality}' (valid: {valid})")
        raise typer.Exit(1)

    if is_any_decade(decade):
        decade = ANY_DECADE
    elif decade not in table.decades(gender, nationality):
        valid = ", ".join([*table.decades(gender, nationality), ANY_DECADE])
        _cli_error("Unknown decade", f"'{decade}' (valid: {valid})")
        raise typer.Exit(1)

    generator_config = config.generator
    if seed is not None:
        generator_config = generator_config.model_copy(update={"seed": seed})
    generator = NameGenerator(table, config=generator_config)

    session = _start_session("generate", config)
    try:
        if alphabet:
            names = generator.generate_batch(
                gender,
                nationality,
                decade,
                use_double_name=use_double_name,
                use_alliteration=use_alliteration,
            )
        else:
            request = GenerationRequest(
                gender=gender,
                nationality=nationality,
                decade=decade,
                use_alliteration=use_alliteration,
                use_double_name=use_double_name,
            )
            names = []
            for _ in range(count):
                name = generator.generate(request)
                if name is not None:
                    names.append(name)

        if not names:
            console.print("[yellow]could not generate[/yellow] a name for these settings")
            if session:
                session.log_error("no_candidates", "No name generated", {
                    "gender": gender,
                    "nationality": nationality,
                    "decade": decade,
                })
            raise typer.Exit(1)

        content = format_names(names, fmt)
        if output:
            if not _safe_write_file(output, content, f"names to {output}"):
                raise typer.Exit(1)
            console.print(f"[green]Saved:[/green] {len(names)} names to {output}")
        elif fmt == "text":
            for name in names:
                console.print(name.full_name, markup=False, highlight=False)
        else:
            console.print(content, markup=False, highlight=False, soft_wrap=True)

        if not alphabet and len(names) < count:
            console.print(f"[dim]Only {len(names)} of {count} names could be generated[/dim]")

        if favorite:
            manager = FavoritesManager()
            added = 0
            for name in names:
                if manager.is_favorite(name.first_name, name.last_name):
                    continue
                person = manager.add_favorite(name)
                if session:
                    session.log_favorite_added(person.full_name, person.id)
                added += 1
            console.print(f"[green]Added {added} names to favorites[/green]")
    finally:
        _end_session(session)


@app.command(name="fav")
def favorites(
    action: Annotated[
        str,
        typer.Argument(
            help="Action: list, show, add, remove, clear, tags, tag, untag, note, "
            "details, image, search, export, import, share, stats"
        )
    ],
    target: Annotated[
        Optional[str],
        typer.Argument(help="Favorite ID (or prefix), full name, query or file path")
    ] = None,
    value: Annotated[
        Optional[str],
        typer.Argument(help="Tag, note text, image path or output directory")
    ] = None,
    tag: Annotated[
        Optional[str],
        typer.Option("-t", "--tag", help="Filter by tag / tag to add")
    ] = None,
    query: Annotated[
        Optional[str],
        typer.Option("-q", "--query", help="Filter list by name substring")
    ] = None,
    gender: Annotated[
        Optional[str],
        typer.Option("-g", "--gender", help="Gender for 'add'")
    ] = None,
    nationality: Annotated[
        Optional[str],
        typer.Option("-n", "--nationality", help="Nationality for 'add'")
    ] = None,
    decade: Annotated[
        Optional[str],
        typer.Option("-d", "--decade", help="Decade for 'add'")
    ] = None,
    age: Annotated[Optional[str], typer.Option("--age", help="Details: age")] = None,
    characteristics: Annotated[
        Optional[str],
        typer.Option("--characteristics", help="Details: characteristics")
    ] = None,
    style: Annotated[Optional[str], typer.Option("--style", help="Details: clothing style")] = None,
    want: Annotated[Optional[str], typer.Option("--want", help="Details: wants")] = None,
    need: Annotated[Optional[str], typer.Option("--need", help="Details: needs")] = None,
    notes: Annotated[Optional[str], typer.Option("--notes", help="Details: notes")] = None,
    clear_image: Annotated[
        bool,
        typer.Option("--clear", help="Remove the image for 'image'")
    ] = False,
    yes: Annotated[
        bool,
        typer.Option("-y", "--yes", help="Skip confirmation for 'clear'")
    ] = False,
):
    """Manage favorite names.

    Examples:
        namegen fav list                           # All favorites
        namegen fav list -t novel                  # Favorites tagged 'novel'
        namegen fav add "Anna Bauer" -d 1990       # Add a name by hand
        namegen fav show 3f2a                      # Show by ID prefix
        namegen fav tag 3f2a villain               # Add a tag
        namegen fav details 3f2a --age 34          # Edit the character sheet
        namegen fav image 3f2a ~/pics/anna.jpg     # Attach a picture
        namegen fav search maier                   # Fuzzy/phonetic search
        namegen fav share 3f2a ~/Desktop           # Write Person_Anna_Bauer.txt
        namegen fav export favorites.json
    """
    config = load_config()
    manager = FavoritesManager()
    session = _start_session("fav", config)

    try:
        if action == "list":
            people = manager.list_favorites(tag=tag, query=query)
            if not people:
                console.print("[dim]No favorites yet.[/dim]")
                console.print("[dim]Add some with: namegen generate --favorite[/dim]")
                return
            console.print(f"[bold]Favorites[/bold] ({len(people)} total)")
            for person in people:
                _print_favorite_line(person)

        elif action == "show":
            person = _resolve_favorite(manager, target)
            details = manager.load_details(person.id)
            console.print(f"[bold]{person.full_name}[/bold]")
            console.print(f"  [dim]ID:[/dim] {person.id}")
            console.print(f"  [dim]Gender:[/dim] {person.gender}")
            console.print(f"  [dim]Nationality:[/dim] {person.nationality}")
            if person.decade:
                console.print(f"  [dim]Decade:[/dim] {person.decade}")
            if person.tags:
                console.print(f"  [dim]Tags:[/dim] {', '.join(person.tags)}")
            if person.notes:
                console.print(f"  [dim]Notes:[/dim] {person.notes}")
            if person.image_path:
                console.print(f"  [dim]Image:[/dim] {person.image_path}")
            console.print(f"  [dim]Added:[/dim] {person.favorited_at:%Y-%m-%d %H:%M}")
            if not details.is_empty():
                console.print()
                for key, text in details.model_dump().items():
                    if text:
                        console.print(f"  [dim]{key.replace('_', ' ')}:[/dim] {text}")

        elif action == "add":
            if not target or " " not in target.strip():
                _cli_error("Full name required for add", "e.g. \"Anna Bauer\"")
                raise typer.Exit(1)
            first, last = target.strip().rsplit(" ", 1)
            if manager.is_favorite(first, last):
                console.print(f"[yellow]Already a favorite:[/yellow] {first} {last}")
                return
            defaults = config.defaults
            name = GeneratedName(
                first_name=first,
                last_name=last,
                gender=gender or defaults.gender,
                nationality=nationality or defaults.nationality,
                decade=decade or ANY_DECADE,
            )
            person = manager.add_favorite(name, tags=[tag] if tag else None)
            if session:
                session.log_favorite_added(person.full_name, person.id)
            console.print(f"[green]Added:[/green] {person.full_name} ({person.id[:8]})")

        elif action == "remove":
            person = _resolve_favorite(manager, target)
            manager.remove_favorite(person.id)
            if session:
                session.log_favorite_removed(person.id)
            console.print(f"[green]Removed:[/green] {person.full_name}")

        elif action == "clear":
            if not len(manager):
                console.print("[dim]No favorites to remove.[/dim]")
                return
            if not yes and not typer.confirm(f"Remove all {len(manager)} favorites?"):
                console.print("[dim]Cancelled.[/dim]")
                return
            removed = manager.remove_all()
            log_event("favorites_cleared", {"count": removed})
            console.print(f"[green]Removed {removed} favorites[/green]")

        elif action == "tags":
            stats = manager.get_stats()
            if not stats.by_tag:
                console.print("[dim]No tags in use.[/dim]")
                return
            console.print("[bold]Tags[/bold]")
            for name in manager.all_tags():
                console.print(f"  {name} ({stats.by_tag[name]})")

        elif action in ("tag", "untag"):
            person = _resolve_favorite(manager, target)
            tag_name = value or tag
            if not tag_name:
                _cli_error(f"Tag required for {action}")
                raise typer.Exit(1)
            try:
                if action == "tag":
                    person = manager.add_tag(person.id, tag_name)
                else:
                    person = manager.remove_tag(person.id, tag_name)
            except ValueError as e:
                _cli_error(f"Failed to {action}", str(e))
                raise typer.Exit(1)
            tags = ", ".join(person.tags) or "none"
            console.print(f"[green]{person.full_name}[/green] tags: {tags}")

        elif action == "note":
            person = _resolve_favorite(manager, target)
            manager.update_favorite(person.id, notes=value or "")
            console.print(f"[green]Updated notes:[/green] {person.full_name}")

        elif action == "details":
            person = _resolve_favorite(manager, target)
            details = manager.load_details(person.id)
            changes = {
                "age": age,
                "characteristics": characteristics,
                "clothing_style": style,
                "wants": want,
                "needs": need,
                "notes": notes,
            }
            changes = {k: v for k, v in changes.items() if v is not None}
            if changes:
                details = details.model_copy(update=changes)
                manager.save_details(person.id, details)
                console.print(f"[green]Saved details:[/green] {person.full_name}")
            console.print(format_details(person, details), markup=False, highlight=False)

        elif action == "image":
            person = _resolve_favorite(manager, target)
            try:
                if clear_image:
                    manager.clear_image(person.id)
                    console.print(f"[green]Image removed:[/green] {person.full_name}")
                elif value:
                    person = manager.set_image(person.id, Path(value))
                    console.print(f"[green]Image set:[/green] {person.image_path}")
                else:
                    console.print(person.image_path or "[dim]No image.[/dim]")
            except ValueError as e:
                _cli_error("Failed to set image", str(e))
                raise typer.Exit(1)

        elif action == "search":
            search_query = target or query
            if not search_query:
                _cli_error("Query required for search")
                raise typer.Exit(1)
            results = manager.search(search_query, limit=10)
            if not results:
                console.print(f"[dim]No matches for:[/dim] {search_query}")
                return
            console.print(f"[bold]Search Results for '{search_query}'[/bold]")
            for person in results:
                _print_favorite_line(person)

        elif action == "export":
            path = Path(target or "favorites_export.json")
            count = manager.export_to_json(path, tag=tag)
            console.print(f"[green]Exported {count} favorites to {path}[/green]")

        elif action == "import":
            if not target:
                _cli_error("File path required for import")
                raise typer.Exit(1)
            try:
                count = manager.import_from_json(Path(target))
            except ValueError as e:
                _cli_error("Import failed", str(e))
                raise typer.Exit(1)
            console.print(f"[green]Imported {count} favorites[/green]")

        elif action == "share":
            person = _resolve_favorite(manager, target)
            details = manager.load_details(person.id)
            path = Path(value or ".").expanduser() / details_filename(person)
            if not _safe_write_file(path, format_details(person, details), "details"):
                raise typer.Exit(1)
            console.print(f"[green]Saved:[/green] {path}")

        elif action == "stats":
            stats = manager.get_stats()
            console.print("[bold]Favorites Statistics[/bold]")
            console.print(f"  Total favorites: {stats.total_favorites}")
            if stats.by_nationality:
                console.print("  By nationality:")
                for key, n in sorted(stats.by_nationality.items()):
                    console.print(f"    {key}: {n}")
            if stats.by_gender:
                console.print("  By gender:")
                for key, n in sorted(stats.by_gender.items()):
                    console.print(f"    {key}: {n}")
            console.print(f"  With details: {stats.with_details}")
            console.print(f"  With image: {stats.with_image}")
            if stats.last_updated:
                console.print(f"  Last updated: {stats.last_updated:%Y-%m-%d %H:%M}")

        else:
            valid = (
                "list, show, add, remove, clear, tags, tag, untag, note, details, "
                "image, search, export, import, share, stats"
            )
            _cli_error("Unknown action", f"'{action}' (valid: {valid})")
            raise typer.Exit(1)
    finally:
        _end_session(session)


@app.command()
def table(
    action: Annotated[
        str,
        typer.Argument(help="Action: info, validate")
    ] = "info",
    names_file: Annotated[
        Optional[Path],
        typer.Option("--file", help="Name table to inspect (default: configured table)")
    ] = None,
):
    """Inspect the name table.

    Examples:
        namegen table                       # Nationalities, genders and decades
        namegen table validate              # Check for empty buckets
        namegen table validate --file my.json
    """
    config = load_config()
    if names_file is not None:
        config = config.model_copy(update={"names_file": names_file})
    name_table = _load_table(config)

    if action == "info":
        console.print(f"[bold]Name table:[/bold] {name_table.source}")
        for nationality in name_table.nationalities():
            last_count = len(name_table.last_names_for(nationality))
            console.print(f"  [bold]{nationality}[/bold] ({last_count} last names)")
            for gender in name_table.genders(nationality):
                decades = name_table.decades(gender, nationality)
                pool = name_table.first_names_for(gender, nationality, ANY_DECADE)
                console.print(
                    f"    {gender}: {len(pool)} first names, decades {', '.join(decades)}"
                )

    elif action == "validate":
        problems = name_table.validate()
        if problems:
            console.print(f"[yellow]{len(problems)} problems found:[/yellow]")
            for problem in problems:
                console.print(f"  {problem}")
            raise typer.Exit(1)
        console.print("[green]Name table OK[/green]")

    else:
        _cli_error("Unknown action", f"'{action}' (valid: info, validate)")
        raise typer.Exit(1)


@app.command(name="config")
def config_cmd(
    show: Annotated[
        bool,
        typer.Option("--show", help="Show current configuration")
    ] = False,
    reset: Annotated[
        bool,
        typer.Option("--reset", help="Reset to default configuration")
    ] = False,
):
    """Manage namegen configuration."""
    from namegen import config as config_module

    if reset:
        save_config(NamegenConfig())
        console.print("[green]Configuration reset to defaults.[/green]")
        show = True

    if show:
        config = load_config()
        console.print(f"[bold]Configuration:[/bold] {config_module.CONFIG_FILE}")
        console.print()
        for key, value in config.model_dump().items():
            if isinstance(value, dict):
                for sub_key, sub_value in value.items():
                    console.print(f"  [dim]{key}.{sub_key}:[/dim] {sub_value}")
            else:
                console.print(f"  [dim]{key}:[/dim] {value}")


@app.command()
def logs(
    sessions: Annotated[
        int,
        typer.Option("-n", "--sessions", help="Number of recent sessions to analyze")
    ] = 10,
):
    """Analyze session logs.

    Shows generation success rates, batch sizes, favorites activity and the
    most frequent last-name initials across recent sessions.

    Examples:
        namegen logs            # Analyze last 10 sessions
        namegen logs -n 50      # Analyze last 50 sessions
    """
    analysis = analyze_logs(limit=sessions)

    if "error" in analysis:
        console.print(f"[yellow]{analysis['error']}[/yellow]")
        return

    console.print(f"[bold]Log Analysis[/bold] ({analysis['sessions_analyzed']} sessions)")
    console.print()

    for command, n in sorted(analysis["commands"].items()):
        console.print(f"  [dim]{command}:[/dim] {n} sessions")
    console.print(f"  [dim]Names requested:[/dim] {analysis['generations_requested']}")
    console.print(f"  [dim]Names generated:[/dim] {analysis['generations_succeeded']}")
    if analysis["success_rate"] is not None:
        console.print(f"  [dim]Success rate:[/dim] {analysis['success_rate']:.1f}%")
    if analysis["batches"]:
        console.print(
            f"  [dim]Alphabet batches:[/dim] {analysis['batches']} "
            f"(avg {analysis['avg_batch_size']} names)"
        )
    console.print(f"  [dim]Favorites added:[/dim] {analysis['favorites_added']}")

    if analysis["common_last_name_initials"]:
        console.print()
        console.print("[bold]Most Generated Last-Name Initials[/bold]")
        for initial, n in analysis["common_last_name_initials"]:
            console.print(f"  {n:3}x  {initial}")


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"namegen {__version__}")
        raise typer.Exit(0)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version", "-v",
            help="Show version",
            callback=_version_callback,
            is_eager=True,
        )
    ] = False,
):
    """namegen - Random personal names with a favorites collection."""


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
