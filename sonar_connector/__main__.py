from sonar_connector.cli import cli

cli()
