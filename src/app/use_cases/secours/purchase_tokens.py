"""PurchaseTokens Use Case

Buys Ô Secours tokens for one service subscription, either settled at once
(cash) or through a mobile-money / checkout gateway.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    GatewayNetworkError,
    PaymentRequest,
)
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.app.repositories.secours_subscription_repository import SecoursSubscriptionRepository
from src.app.repositories.secours_transaction_repository import SecoursTransactionRepository
from src.app.use_cases.payments.gateway_support import gateway_error, resolve_gateway
from src.domain.payment import (
    Payment,
    PaymentMethod,
    PaymentPurpose,
    PaymentStatus,
    token_payment_reference,
)
from src.domain.secours_subscription import (
    SecoursSubscription,
    PURCHASE_LIMITS,
    LOW_BALANCE_THRESHOLD,
    token_value_for,
    calendar_month_bounds,
)
from src.domain.secours_transaction import (
    SecoursTransaction,
    SecoursTransactionType,
    SecoursPaymentStatus,
)
from .dtos import PurchaseTokensCommandDTO, TokenPurchaseResponseDTO

logger = logging.getLogger(__name__)


class PurchaseTokens:
    """
    Use Case: Purchase emergency-assistance tokens

    Business Rules:
    1. The secours subscription must exist, be active and belong to the caller
    2. The caller needs an active adult membership; child-only members are not eligible
    3. token_amount >= per-service minimum, and the calendar-month total
       (pending + completed purchases) must not exceed the per-service maximum
    4. total_price = token_amount x fixed token value of the service type
    5. Cash: transaction completed and balance credited immediately
    6. Gateway: transaction and payment recorded pending, then the gateway is called;
       the balance is credited later by payment reconciliation. A refusal marks both
       failed; an unreachable gateway leaves both pending
    7. low_balance_warning when balance + token_amount < 30 (advisory only)

    Flow:
    1. Load secours subscription with lock
    2. Ownership and membership eligibility
    3. Amount and monthly limits
    4. Cash settlement or gateway initiation
    """

    def __init__(
        self,
        uow: UnitOfWork,
        secours_subscription_repo: SecoursSubscriptionRepository,
        secours_transaction_repo: SecoursTransactionRepository,
        subscription_repo: SubscriptionRepository,
        payment_repo: PaymentRepository,
        gateways: Dict[PaymentMethod, PaymentGateway],
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.secours_subscription_repo = secours_subscription_repo
        self.secours_transaction_repo = secours_transaction_repo
        self.subscription_repo = subscription_repo
        self.payment_repo = payment_repo
        self.gateways = gateways
        self.clock = clock

    async def execute(self, command: PurchaseTokensCommandDTO) -> Result[TokenPurchaseResponseDTO]:
        """
        Execute token purchase

        Args:
            command: PurchaseTokensCommandDTO

        Returns:
            Result[TokenPurchaseResponseDTO]: Recorded transaction or error
        """
        try:
            # Step 1: Lock secours subscription
            account = await self.secours_subscription_repo.get_by_id(
                command.subscription_id, for_update=True
            )
            if not account:
                return Return.err(
                    Error(
                        code="SECOURS_SUBSCRIPTION_NOT_FOUND",
                        message="Abonnement Ô Secours introuvable",
                        reason=f"Secours subscription {command.subscription_id} does not exist",
                    )
                )
            if not account.is_active:
                return Return.err(
                    Error(
                        code="SECOURS_SUBSCRIPTION_INACTIVE",
                        message="Cet abonnement Ô Secours n'est pas actif",
                        reason=f"Secours subscription {account.id} is inactive",
                    )
                )

            # Step 2: Ownership and membership eligibility
            if account.user_id != command.user_id:
                return Return.err(
                    Error(
                        code="UNAUTHORIZED",
                        message="Non autorisé à acheter des tokens pour cet abonnement",
                        reason=f"User {command.user_id} does not own secours subscription {account.id}",
                    )
                )

            memberships = await self.subscription_repo.list_active_for_user(command.user_id)
            if not any(not m.is_child for m in memberships):
                if memberships:
                    return Return.err(
                        Error(
                            code="CHILD_TIER_NOT_ELIGIBLE",
                            message="L'achat de tokens Ô Secours n'est pas disponible pour les détenteurs de carte enfant",
                            reason="Only a child membership is active for this user",
                        )
                    )
                return Return.err(
                    Error(
                        code="MEMBERSHIP_REQUIRED",
                        message="Une carte membre active est requise pour acheter des tokens",
                        reason=f"User {command.user_id} has no active membership",
                    )
                )

            # Step 3: Amount and monthly limits
            if command.token_amount <= 0:
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message="Le nombre de tokens doit être positif",
                        reason=f"token_amount must be > 0, got {command.token_amount}",
                    )
                )

            minimum, maximum = PURCHASE_LIMITS[account.subscription_type]
            if command.token_amount < minimum:
                return Return.err(
                    Error(
                        code="BELOW_MINIMUM_PURCHASE",
                        message=f"Achat minimum : {minimum} tokens",
                        reason=f"{command.token_amount} tokens is below the minimum of {minimum}",
                    )
                )

            now = self.clock()
            period_start, period_end = calendar_month_bounds(now)
            purchased = await self.secours_transaction_repo.sum_purchased_tokens(
                account.id, period_start, period_end
            )
            if purchased + command.token_amount > maximum:
                return Return.err(
                    Error(
                        code="MONTHLY_LIMIT_EXCEEDED",
                        message=(
                            f"Limite mensuelle de {maximum} tokens dépassée "
                            f"(déjà achetés : {purchased})"
                        ),
                        reason=f"{purchased} + {command.token_amount} > {maximum} for this month",
                    )
                )

            token_value = token_value_for(account.subscription_type)
            total_price = command.token_amount * token_value
            low_balance = account.token_balance + command.token_amount < LOW_BALANCE_THRESHOLD

            # Step 4: Settle
            if command.payment_method == PaymentMethod.CASH:
                return await self._settle_cash(account, command, token_value, total_price, low_balance, now)

            return await self._initiate_gateway_payment(
                account, command, token_value, total_price, low_balance, now
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="PURCHASE_TOKENS_FAILED",
                    message="Impossible d'enregistrer l'achat de tokens",
                    reason=str(e),
                )
            )

    async def _settle_cash(
        self,
        account: SecoursSubscription,
        command: PurchaseTokensCommandDTO,
        token_value: int,
        total_price: int,
        low_balance: bool,
        now: datetime,
    ) -> Result[TokenPurchaseResponseDTO]:
        transaction = await self.secours_transaction_repo.create(
            SecoursTransaction(
                subscription_id=account.id,
                user_id=command.user_id,
                transaction_type=SecoursTransactionType.PURCHASE,
                token_amount=command.token_amount,
                token_value_fcfa=token_value,
                total_price_fcfa=total_price,
                payment_method=PaymentMethod.CASH,
                payment_status=SecoursPaymentStatus.COMPLETED,
                created_at=now,
                updated_at=now,
                completed_at=now,
            )
        )

        account.token_balance += command.token_amount
        account.last_token_purchase_date = now
        account = await self.secours_subscription_repo.update(account)

        await self.uow.commit()

        logger.info(
            f"Cash purchase of {command.token_amount} tokens credited to secours subscription {account.id}"
        )
        return Return.ok(self._to_response_dto(account, transaction, low_balance))

    async def _initiate_gateway_payment(
        self,
        account: SecoursSubscription,
        command: PurchaseTokensCommandDTO,
        token_value: int,
        total_price: int,
        low_balance: bool,
        now: datetime,
    ) -> Result[TokenPurchaseResponseDTO]:
        gateway, phone, error = resolve_gateway(
            self.gateways, command.payment_method, command.phone_number
        )
        if error:
            return Return.err(error)

        reference = token_payment_reference(account.subscription_type.value, command.user_id, now)

        transaction = await self.secours_transaction_repo.create(
            SecoursTransaction(
                subscription_id=account.id,
                user_id=command.user_id,
                transaction_type=SecoursTransactionType.PURCHASE,
                token_amount=command.token_amount,
                token_value_fcfa=token_value,
                total_price_fcfa=total_price,
                payment_method=command.payment_method,
                payment_status=SecoursPaymentStatus.PENDING,
                payment_reference=reference,
                created_at=now,
                updated_at=now,
            )
        )
        payment = await self.payment_repo.create(
            Payment(
                reference=reference,
                user_id=command.user_id,
                purpose=PaymentPurpose.TOKENS,
                payment_method=command.payment_method,
                amount=total_price,
                status=PaymentStatus.PENDING,
                secours_transaction_id=transaction.id,
                created_at=now,
                updated_at=now,
            )
        )
        # Records must exist before the gateway can call back
        await self.uow.commit()

        request = PaymentRequest(
            reference=reference,
            amount=total_price,
            description=f"Ô Secours {account.subscription_type.value} - {command.token_amount} tokens",
            phone_number=phone,
            customer_name=command.customer_name,
            customer_email=command.customer_email,
        )

        try:
            initiation = await gateway.initiate_payment(request)
        except GatewayNetworkError as e:
            # The provider may have taken the order; verification settles it later
            logger.warning(f"Token payment {reference} left pending, {command.payment_method.value} unreachable: {e.message}")
            payment.failure_reason = e.message
            await self.payment_repo.update(payment)
            await self.uow.commit()
            return Return.err(gateway_error(e))
        except PaymentGatewayError as e:
            logger.warning(f"Token payment {reference} refused by {command.payment_method.value}: {e.message}")
            failed_at = self.clock()
            transaction.payment_status = SecoursPaymentStatus.FAILED
            transaction.completed_at = failed_at
            await self.secours_transaction_repo.update(transaction)
            payment.status = PaymentStatus.FAILED
            payment.failure_reason = e.message
            payment.completed_at = failed_at
            await self.payment_repo.update(payment)
            await self.uow.commit()
            return Return.err(gateway_error(e))

        payment.payment_url = initiation.payment_url
        payment.external_transaction_id = initiation.external_transaction_id
        payment.metadata_json = dict(initiation.raw)
        await self.payment_repo.update(payment)
        await self.uow.commit()

        logger.info(f"Token payment {reference} initiated with {command.payment_method.value}")
        return Return.ok(
            self._to_response_dto(
                account,
                transaction,
                low_balance,
                payment_url=initiation.payment_url,
                message=initiation.message,
            )
        )

    def _to_response_dto(
        self,
        account: SecoursSubscription,
        transaction: SecoursTransaction,
        low_balance: bool,
        payment_url: Optional[str] = None,
        message: Optional[str] = None,
    ) -> TokenPurchaseResponseDTO:
        return TokenPurchaseResponseDTO(
            transaction_id=transaction.id,
            subscription_id=account.id,
            subscription_type=account.subscription_type.value,
            token_amount=transaction.token_amount,
            token_value_fcfa=transaction.token_value_fcfa,
            total_price_fcfa=transaction.total_price_fcfa,
            payment_method=transaction.payment_method.value,
            payment_status=transaction.payment_status.value,
            payment_reference=transaction.payment_reference,
            payment_url=payment_url,
            message=message,
            token_balance=account.token_balance,
            low_balance_warning=low_balance,
        )
