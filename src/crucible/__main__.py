from crucible.cli import app

app()
