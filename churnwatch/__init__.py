"""
churnwatch: billing-health tracking and churn intervention triage.

The Customer aggregate owns the account lifecycle and the risk score;
services, repositories and handlers are thin layers around it.
"""

__version__ = "1.0.0"
