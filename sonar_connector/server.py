"""One SonarQube server for the lifetime of a session.

Usage:
    server    = SonarServer.create(config.server_config(), config.proxy_provider())
    resources = server.get_all_projects_and_modules(progress)
    issues    = server.get_all_issues_for(resources[0].key, progress)
"""

from sonar_connector.connection import Connection, ConnectionFactory, ServerConfig
from sonar_connector.models import Issue, Resource, Rule
from sonar_connector.progress import ProgressIndicator
from sonar_connector.proxy import ProxyProvider
from sonar_connector.queries import issues, resources, rules


class SonarServer:
    def __init__(self, connection: Connection) -> None:
        self.connection = connection

    @classmethod
    def create(cls, config: ServerConfig, proxy_provider: ProxyProvider | None = None) -> "SonarServer":
        return cls(ConnectionFactory(proxy_provider).build(config))

    def get_rule(self, key: str) -> Rule:
        return rules.get_rule(self.connection, key)

    def get_all_projects(self) -> list[Resource]:
        return resources.get_all_projects(self.connection.resource_client)

    def get_all_modules(self, project_id: int) -> list[Resource]:
        return resources.get_all_modules(self.connection.resource_client, project_id)

    def get_all_projects_and_modules(self, progress: ProgressIndicator | None = None) -> list[Resource]:
        return resources.get_all_projects_and_modules(self.connection, progress)

    def get_all_issues_for(self, resource_key: str, progress: ProgressIndicator | None = None) -> list[Issue]:
        return issues.get_all_issues_for(self.connection, resource_key, progress)
