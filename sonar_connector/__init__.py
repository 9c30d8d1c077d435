"""SonarQube connector: projects, modules, unresolved issues and rules."""

__version__ = "0.3.0"
