"""Domain models: the customer aggregate and the records around it."""

from churnwatch.models.admin_user import AdminUser, UserRole  # noqa: F401
from churnwatch.models.churn_metrics import ChurnPreventionMetrics  # noqa: F401
from churnwatch.models.customer import (  # noqa: F401
    STATE_TRANSITIONS,
    AccountStatus,
    Customer,
    InterventionOutcome,
    InterventionRecord,
    PaymentMethodSnapshot,
    RiskCategory,
    RiskSeverity,
    TransitionResult,
    ValidationResult,
)
from churnwatch.models.payment_method import (  # noqa: F401
    CardType,
    FailureReason,
    PaymentMethod,
    PaymentMethodStatus,
)
from churnwatch.models.response import ApiResponse  # noqa: F401
from churnwatch.models.scoring import DEFAULT_WEIGHTS, ScoreBreakdown, ScoringWeights  # noqa: F401
