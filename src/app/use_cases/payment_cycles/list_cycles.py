"""ListSubscriptionCycles Use Case

Read model of a subscription's payment cycles, ordered by cycle number.
"""

from src.libs.result import Result, Return, Error
from src.app.repositories.payment_cycle_repository import PaymentCycleRepository
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.user_repository import UserRepository
from src.domain.user import Role
from .common import require_poc_access, subscription_not_found
from .dtos import Actor, PaymentCycleDTO, PaymentCycleListDTO


class ListSubscriptionCycles:
    """
    Use Case: List payment cycles of a subscription

    ADMIN, FINANCE and HOD may read any subscription; a POC only those of
    departments they have access to.
    """

    def __init__(
        self,
        cycle_repo: PaymentCycleRepository,
        subscription_repo: SubscriptionRepository,
        user_repo: UserRepository,
    ):
        self.cycle_repo = cycle_repo
        self.subscription_repo = subscription_repo
        self.user_repo = user_repo

    async def execute(self, actor: Actor, subscription_id: str) -> Result[PaymentCycleListDTO]:
        try:
            subscription = await self.subscription_repo.get_by_id(subscription_id)
            if subscription is None:
                return Return.err(subscription_not_found(subscription_id))

            if not actor.has_any_role(Role.ADMIN, Role.FINANCE, Role.HOD):
                error = await require_poc_access(actor, self.user_repo, subscription)
                if error:
                    return Return.err(error)

            cycles = await self.cycle_repo.list_by_subscription(subscription_id)

            return Return.ok(
                PaymentCycleListDTO(
                    subscription_id=subscription_id,
                    cycles=[PaymentCycleDTO.from_entity(cycle) for cycle in cycles],
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_CYCLES_FAILED",
                    message="Failed to list payment cycles",
                    reason=str(e),
                )
            )
