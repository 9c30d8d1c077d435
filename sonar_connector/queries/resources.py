"""Resource inventory queries.

Functions:
    get_all_projects(client)                          -> list[Resource]
    get_all_modules(client, project_id)               -> list[Resource]
    get_all_projects_and_modules(connection, progress) -> list[Resource]
"""

import logging
from operator import attrgetter

from sonar_connector.client import SonarClient
from sonar_connector.connection import Connection
from sonar_connector.models import Qualifier, Resource
from sonar_connector.progress import NullProgress, ProgressIndicator

logger = logging.getLogger(__name__)

_RESOURCES_ENDPOINT = "/api/resources"

# Depth -1 asks the server for the whole subtree below the parent resource.
_UNLIMITED_DEPTH = -1

_by_name = attrgetter("name")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def get_all_projects(client: SonarClient) -> list[Resource]:
    """Return every resource whose qualifier is PROJECT, in server order."""
    params = {"qualifiers": Qualifier.PROJECT.value, "format": "json"}
    return _find_all(client, params)


def get_all_modules(client: SonarClient, project_id: int) -> list[Resource]:
    """Return every MODULE below *project_id*, at any depth, in server order."""
    params = {
        "resource":   project_id,
        "depth":      _UNLIMITED_DEPTH,
        "qualifiers": Qualifier.MODULE.value,
        "format":     "json",
    }
    return _find_all(client, params)


def get_all_projects_and_modules(
    connection: Connection,
    progress: ProgressIndicator | None = None,
) -> list[Resource]:
    """Return all projects, each followed by its modules, both sorted by name.

    Cancellation is checked before each project; a cancelled traversal
    returns the projects (and their modules) gathered so far.
    """
    progress = progress or NullProgress()
    client = connection.resource_client

    progress.set_text("Downloading SonarQube projects")
    projects = sorted(get_all_projects(client), key=_by_name)

    progress.set_text("Downloading SonarQube modules")
    all_resources: list[Resource] = []
    for done, project in enumerate(projects, start=1):
        if progress.is_canceled():
            logger.info("Resource download cancelled after %d of %d projects",
                        done - 1, len(projects))
            break
        progress.set_fraction(done / len(projects))
        progress.set_text2(project.name)
        all_resources.append(project)
        all_resources.extend(sorted(get_all_modules(client, project.id), key=_by_name))

    logger.info("Downloaded %d resources", len(all_resources))
    return all_resources


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _find_all(client: SonarClient, params: dict) -> list[Resource]:
    data = client.get(_RESOURCES_ENDPOINT, params)
    return [Resource.from_json(raw) for raw in data or []]
