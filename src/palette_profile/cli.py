import dataclasses
import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.style import Style
from rich.table import Table
from rich.text import Text

from .categories import PRIORITY_ORDER
from .errors import PaletteError
from .loader import load_image
from .profile import ColorProfile, process_image
from .selection import STRATEGIES, make_strategy
from .settings import SAMPLING_METHODS, load_settings

# ------------------------------------------------------------
# Rich display
# ------------------------------------------------------------


def swatch(hex_color: str, width: int = 4) -> Text:
    return Text(" " * width, style=Style(bgcolor=hex_color))


def render_profile(profile: ColorProfile, console: Console) -> None:
    stats = profile.statistics
    console.print(
        f"\n🎨 Mode: [bold]{profile.mode.value}[/bold]  "
        f"coverage {profile.coverage_ratio:.0%}  "
        f"diversity {stats.chromatic_diversity:.2f}  "
        f"hue variance {stats.hue_variance:.1f}°  "
        f"contrast range {stats.contrast_range:.2f}  "
        f"sampled by {profile.extraction_method}\n"
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("Category", style="cyan", no_wrap=True)
    table.add_column("Hex", no_wrap=True)
    table.add_column("Color")
    table.add_column("Candidates")

    for category in PRIORITY_ORDER:
        hex_color = profile.hex(category)
        if hex_color is None:
            table.add_row(category.value, "-", Text("unassigned", style="dim"), "")
            continue

        label = hex_color
        if category in profile.fallbacks:
            label += " (fallback)"

        strip = Text()
        for cand in profile.candidates.get(category, ()):
            w = min(12, max(1, int(cand.score * 12)))
            strip.append(" " * w, style=Style(bgcolor=cand.hex))
            strip.append(" ")

        table.add_row(category.value, label, swatch(hex_color, 8), strip)

    console.print(table)

    strip = Text()
    for _, r in profile.pool.dominant_colors.iterrows():
        w = min(30, max(1, int(r.weight * 300)))
        strip.append(" " * w, style=Style(bgcolor=r.hex))
    console.print("Dominant colors:", strip)


# ------------------------------------------------------------
# CLI
# ------------------------------------------------------------


@click.command()
@click.argument("image_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="JSON settings file (defaults to $PALETTE_PROFILE_CONFIG).",
)
@click.option(
    "--strategy",
    type=click.Choice(sorted(STRATEGIES), case_sensitive=False),
    default="scored",
    show_default=True,
)
@click.option(
    "--method",
    type=click.Choice(SAMPLING_METHODS, case_sensitive=False),
    default=None,
    help="Sampling method; overrides the config file.",
)
@click.option(
    "--out-json",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the profile as JSON.",
)
@click.option("--quiet", is_flag=True, help="Skip the table.")
@click.option("-v", "--verbose", is_flag=True, help="Debug logging.")
def main(image_path, config_path, strategy, method, out_json, quiet, verbose):
    """
    Extract a semantically labelled theme palette from IMAGE_PATH.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )

    try:
        settings = load_settings(config_path)
        if method:
            sampling = dataclasses.replace(settings.sampling, method=method.lower())
            settings = dataclasses.replace(settings, sampling=sampling)
        img = load_image(image_path)
        profile = process_image(img, settings, strategy=make_strategy(strategy, settings))
    except PaletteError as e:
        raise click.ClickException(str(e)) from e

    if not quiet:
        render_profile(profile, Console())

    if out_json:
        out_json.parent.mkdir(parents=True, exist_ok=True)
        out_json.write_text(json.dumps(profile.to_dict(), indent=2))
        click.echo(f"✓ Wrote {out_json}")


if __name__ == "__main__":
    main()
