import typer
import logging
import sys
from photonctl.commands import cluster
from photonctl.logging import setup_logging
from photonctl.utils.output import OUTPUT_FORMATS

app = typer.Typer(help="Command line interface for Photon Controller")

# Global debug flag, read by run() when reporting unhandled errors
debug_mode = False

# Add all command groups
app.add_typer(cluster.app, name="cluster")

# Global options callback
@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
    non_interactive: bool = typer.Option(False, "--non-interactive", "-n", help="Trigger for non-interactive mode (scripting)"),
    log_file: str = typer.Option(None, "--log-file", "-l", help="Write logging information into a logfile at the specified path"),
    output: str = typer.Option(None, "--output", "-o", help="Select output format (json or yaml)"),
):
    """photonctl - cluster lifecycle CLI for Photon Controller."""
    global debug_mode
    debug_mode = debug
    if output and output not in OUTPUT_FORMATS:
        raise typer.BadParameter(f"must be one of: {', '.join(OUTPUT_FORMATS)}", param_hint="--output")

    setup_logging(debug, log_file)
    if debug:
        logging.debug("Debug mode enabled")

    ctx.obj = {
        "debug": debug,
        "non_interactive": non_interactive,
        "output": output,
    }

def run():
    """Console entry point."""
    try:
        app()
    except Exception as e:
        if debug_mode:
            import traceback
            logging.error(f"Unhandled exception: {e}\n{traceback.format_exc()}")
        else:
            logging.error(f"Error: {e}")
        sys.exit(1)

if __name__ == "__main__":
    run()
