"""InitiateSubscriptionPayment Use Case

Prices a pending subscription and submits the payment to the chosen gateway.
"""

import logging
from datetime import datetime
from typing import Callable, Dict
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.payment_gateway import (
    PaymentGateway,
    PaymentGatewayError,
    GatewayNetworkError,
    PaymentRequest,
)
from src.app.repositories.subscription_repository import SubscriptionRepository
from src.app.repositories.membership_catalog_repository import MembershipCatalogRepository
from src.app.repositories.payment_repository import PaymentRepository
from src.domain.payment import (
    Payment,
    PaymentMethod,
    PaymentPurpose,
    PaymentStatus,
    membership_payment_reference,
)
from src.domain.subscription import SubscriptionStatus, DEFAULT_CYCLE_MONTHS
from .dtos import InitiatePaymentCommandDTO, PaymentResponseDTO
from .gateway_support import gateway_error, resolve_gateway

logger = logging.getLogger(__name__)


class InitiateSubscriptionPayment:
    """
    Use Case: Start paying for a pending subscription

    Business Rules:
    1. Only the owner can pay, and only while the subscription is pending
    2. Amount = renewal price when the user already held an activated subscription
       of the same category, purchase price otherwise, plus the fee of the cycle
    3. Phone numbers are validated by the gateway before anything is written
    4. The payment is recorded pending before the gateway is called
    5. Gateway refusals mark the payment failed; they are not retried. An
       unreachable gateway leaves it pending for verification to settle

    Flow:
    1. Load subscription and check ownership/status
    2. Price the cycle
    3. Resolve gateway and normalize phone
    4. Record pending payment
    5. Call gateway and store the redirect URL / external id
    """

    def __init__(
        self,
        uow: UnitOfWork,
        subscription_repo: SubscriptionRepository,
        catalog_repo: MembershipCatalogRepository,
        payment_repo: PaymentRepository,
        gateways: Dict[PaymentMethod, PaymentGateway],
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.uow = uow
        self.subscription_repo = subscription_repo
        self.catalog_repo = catalog_repo
        self.payment_repo = payment_repo
        self.gateways = gateways
        self.clock = clock

    async def execute(self, command: InitiatePaymentCommandDTO) -> Result[PaymentResponseDTO]:
        """
        Execute payment initiation

        Args:
            command: InitiatePaymentCommandDTO

        Returns:
            Result[PaymentResponseDTO]: Pending payment with redirect URL or message
        """
        try:
            # Step 1: Subscription checks
            subscription = await self.subscription_repo.get_by_id(command.subscription_id)
            if not subscription:
                return Return.err(
                    Error(
                        code="SUBSCRIPTION_NOT_FOUND",
                        message="Abonnement non trouvé",
                        reason=f"Subscription {command.subscription_id} does not exist",
                    )
                )
            if subscription.user_id != command.user_id:
                return Return.err(
                    Error(
                        code="UNAUTHORIZED",
                        message="Non autorisé à payer cet abonnement",
                        reason=f"User {command.user_id} does not own subscription {subscription.id}",
                    )
                )
            if subscription.status != SubscriptionStatus.PENDING:
                return Return.err(
                    Error(
                        code="INVALID_TRANSITION",
                        message="Cet abonnement n'est pas en attente de paiement",
                        reason=f"Subscription {subscription.id} is {subscription.status.value}",
                    )
                )
            if not command.payment_method.uses_gateway:
                return Return.err(
                    Error(
                        code="PAYMENT_METHOD_NOT_SUPPORTED",
                        message="Ce moyen de paiement n'est pas accepté pour les abonnements",
                        reason=f"{command.payment_method.value} cannot pay a membership",
                    )
                )

            # Step 2: Price
            lifecycle = subscription.get_lifecycle()
            cycle_months = lifecycle.cycle_months or DEFAULT_CYCLE_MONTHS
            pricing = await self.catalog_repo.get_pricing(subscription.product_id, cycle_months)
            if not pricing or not pricing.active:
                return Return.err(
                    Error(
                        code="PRICING_NOT_FOUND",
                        message="Aucun tarif disponible pour cette durée",
                        reason=f"No active pricing for product {subscription.product_id}, {cycle_months} months",
                    )
                )

            is_renewal = await self.subscription_repo.has_activated_before(
                subscription.user_id, subscription.is_child, exclude_id=subscription.id
            )
            base_price = pricing.renewal_price_cfa if is_renewal else pricing.purchase_price_cfa
            amount = base_price + pricing.fee_cfa

            # Step 3: Gateway and phone
            gateway, phone, error = resolve_gateway(
                self.gateways, command.payment_method, command.phone_number
            )
            if error:
                return Return.err(error)

            # Step 4: Record pending payment
            now = self.clock()
            reference = membership_payment_reference(subscription.id, now)
            payment = await self.payment_repo.create(
                Payment(
                    reference=reference,
                    user_id=command.user_id,
                    purpose=PaymentPurpose.MEMBERSHIP,
                    payment_method=command.payment_method,
                    amount=amount,
                    status=PaymentStatus.PENDING,
                    subscription_id=subscription.id,
                    metadata_json={"cycle_months": cycle_months, "is_renewal": is_renewal},
                    created_at=now,
                    updated_at=now,
                )
            )
            await self.uow.commit()

            # Step 5: Call gateway
            product_name = lifecycle.product_name or "Elverra"
            request = PaymentRequest(
                reference=reference,
                amount=amount,
                description=f"Carte {product_name} - {cycle_months} mois",
                phone_number=phone,
                customer_name=command.customer_name or lifecycle.holder_full_name,
                customer_email=command.customer_email,
                customer_city=command.customer_city or lifecycle.holder_city,
                return_url=command.return_url,
            )

            try:
                initiation = await gateway.initiate_payment(request)
            except GatewayNetworkError as e:
                # The provider may have taken the order; verification settles it later
                logger.warning(f"Payment {reference} left pending, {command.payment_method.value} unreachable: {e.message}")
                payment.failure_reason = e.message
                await self.payment_repo.update(payment)
                await self.uow.commit()
                return Return.err(gateway_error(e))
            except PaymentGatewayError as e:
                logger.warning(f"Payment {reference} refused by {command.payment_method.value}: {e.message}")
                payment.status = PaymentStatus.FAILED
                payment.failure_reason = e.message
                payment.completed_at = self.clock()
                await self.payment_repo.update(payment)
                await self.uow.commit()
                return Return.err(gateway_error(e))

            payment.payment_url = initiation.payment_url
            payment.external_transaction_id = initiation.external_transaction_id
            payment.metadata_json = {**payment.metadata_json, **initiation.raw}
            payment = await self.payment_repo.update(payment)
            await self.uow.commit()

            logger.info(
                f"Payment {reference} of {amount} XOF initiated with {command.payment_method.value} "
                f"for subscription {subscription.id}"
            )
            return Return.ok(
                PaymentResponseDTO(
                    payment_id=payment.reference,
                    status=payment.status.value,
                    amount=payment.amount,
                    currency=payment.currency,
                    payment_method=payment.payment_method.value,
                    is_renewal=is_renewal,
                    payment_url=initiation.payment_url,
                    message=initiation.message,
                    subscription_id=subscription.id,
                    created_at=payment.created_at,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="INITIATE_PAYMENT_FAILED",
                    message="Impossible d'initier le paiement",
                    reason=str(e),
                )
            )
