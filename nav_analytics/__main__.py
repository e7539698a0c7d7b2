from nav_analytics.cli import app

app()
