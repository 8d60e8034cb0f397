from pathlib import Path
from typing import Optional, Tuple
import click
from rich.console import Console
from rich.markup import escape

from groktool.errors import GrokToolError
from groktool.exporting import ENCODERS
from groktool.pipeline import RunConfig, run

err_console = Console(stderr=True)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option("0.1.0", prog_name="groktool")
@click.option("--pattern", "-p", required=True, help="Grok pattern to match each line against.")
@click.option("--patterns", "patterns_dir", envvar="GROKTOOL_PATTERNS", type=click.Path(path_type=Path), help="Directory of custom named sub-patterns.")
@click.option("--no-patterns", is_flag=True, help="Do not load the built-in sub-patterns.")
@click.option("--rules", "rules", multiple=True, type=click.Path(dir_okay=False, path_type=Path), help="afrs rules file with extra named sub-patterns. Repeatable.")
@click.option("--output", "-o", "output", type=click.Path(dir_okay=False, path_type=Path), help="Output file, stdout if not provided.")
@click.option("--output-format", "-f", "output_format", type=click.Choice(sorted(ENCODERS), case_sensitive=False), default="json", show_default=True)
@click.option("--stats", "-s", is_flag=True, help="Print parsed/failed counters after the last record.")
@click.option("--overwrite", is_flag=True, help="Replace the output file if it exists.")
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr.")
@click.argument("inputs", nargs=-1)
@click.pass_context
def cli(
	ctx: click.Context,
	pattern: str,
	patterns_dir: Optional[Path],
	no_patterns: bool,
	rules: Tuple[Path, ...],
	output: Optional[Path],
	output_format: str,
	stats: bool,
	overwrite: bool,
	verbose: bool,
	inputs: Tuple[str, ...],
) -> None:
	"""Parse structured data out of INPUTS using grok patterns.

	INPUTS are files or globs, read in order; stdin when none are given.
	"""
	config = RunConfig(
		pattern=pattern,
		patterns_dir=patterns_dir,
		no_patterns=no_patterns,
		rules=list(rules),
		inputs=list(inputs),
		output=output,
		output_format=output_format.lower(),
		stats=stats,
		overwrite=overwrite,
	)
	try:
		run(config, on_event=err_console.log if verbose else None)
	except GrokToolError as e:
		err_console.print(f"[red]{type(e).__name__}:[/red] {escape(str(e))}", highlight=False, soft_wrap=True)
		ctx.exit(1)


def main() -> None:
	cli()


if __name__ == "__main__":
	main()
