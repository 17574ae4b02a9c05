"""
Environment-specific configuration settings.

Defaults target local development against an in-memory SQLite database.
"""

from dataclasses import dataclass
import os


@dataclass
class Settings:
    """Application settings with development-friendly defaults."""

    # Environment
    environment: str = "dev"
    aws_region: str = "eu-west-2"

    # Persistence
    database_url: str = "sqlite://"
    interventions_table: str = "customer-interventions"

    # Mirror every recorded intervention into DynamoDB for the chat audit trail
    intervention_log_enabled: bool = False

    # Work queue
    high_risk_queue_limit: int = 50

    @classmethod
    def from_environment(cls) -> "Settings":
        """Load settings from environment variables."""
        env = os.environ.get("ENVIRONMENT", "dev")
        log_flag = os.environ.get("INTERVENTION_LOG_ENABLED")

        settings = cls(
            environment=env,
            aws_region=os.environ.get("AWS_REGION", cls.aws_region),
            database_url=os.environ.get("DATABASE_URL", cls.database_url),
            interventions_table=os.environ.get(
                "INTERVENTIONS_TABLE", cls.interventions_table
            ),
            high_risk_queue_limit=int(
                os.environ.get("HIGH_RISK_QUEUE_LIMIT", cls.high_risk_queue_limit)
            ),
        )

        # Production overrides
        if env == "prod":
            settings.intervention_log_enabled = True
        if log_flag is not None:
            settings.intervention_log_enabled = log_flag.lower() == "true"
        return settings
