"""Rule lookup."""

from sonar_connector.client import NotFoundError
from sonar_connector.connection import Connection
from sonar_connector.models import Rule


def get_rule(connection: Connection, key: str) -> Rule:
    """Fetch the rule definition for *key*.

    Raises:
        NotFoundError: the server knows no rule with that key.
    """
    data = connection.issue_client.get("/api/rules/show", {"key": key}) or {}
    raw = data.get("rule")
    if not raw or not raw.get("key"):
        raise NotFoundError(f"Rule not found: {key}")
    return Rule.from_json(raw)
