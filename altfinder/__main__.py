from altfinder.cli import run

run()
