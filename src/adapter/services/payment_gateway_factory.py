"""Payment Gateway Factory

Builds the provider map from ApplicationConfig.
"""

import logging
from typing import Dict
from src.app.services.payment_gateway import PaymentGateway
from src.domain.payment import PaymentMethod
from .orange_money_gateway import OrangeMoneyGateway
from .sama_money_gateway import SamaMoneyGateway
from .cinetpay_gateway import CinetPayGateway

logger = logging.getLogger(__name__)


def create_payment_gateways(config) -> Dict[PaymentMethod, PaymentGateway]:
    """
    Factory function to create the configured payment gateways

    A provider is left out when its credentials are not configured, so
    payments with that method are refused instead of failing at the provider.

    Args:
        config: ApplicationConfig (or any object with the same attributes)

    Returns:
        Mapping of PaymentMethod to gateway
    """
    timeout = float(getattr(config, "PAYMENT_GATEWAY_TIMEOUT_SECONDS", 10.0))
    gateways: Dict[PaymentMethod, PaymentGateway] = {}

    if config.ORANGE_MONEY_CLIENT_ID and config.ORANGE_MONEY_CLIENT_SECRET:
        gateways[PaymentMethod.ORANGE_MONEY] = OrangeMoneyGateway(
            client_id=config.ORANGE_MONEY_CLIENT_ID,
            client_secret=config.ORANGE_MONEY_CLIENT_SECRET,
            merchant_key=config.ORANGE_MONEY_MERCHANT_KEY,
            environment=config.ORANGE_MONEY_ENVIRONMENT,
            return_url=config.ORANGE_MONEY_RETURN_URL,
            cancel_url=config.ORANGE_MONEY_CANCEL_URL,
            notify_url=config.ORANGE_MONEY_NOTIFY_URL,
            timeout=timeout,
        )

    if config.SAMA_MONEY_MERCHANT_CODE and config.SAMA_MONEY_PUBLIC_KEY:
        gateways[PaymentMethod.SAMA_MONEY] = SamaMoneyGateway(
            merchant_code=config.SAMA_MONEY_MERCHANT_CODE,
            public_key=config.SAMA_MONEY_PUBLIC_KEY,
            transac_header=config.SAMA_MONEY_TRANSAC_HEADER,
            callback_url=config.SAMA_MONEY_CALLBACK_URL,
            base_url=config.SAMA_MONEY_BASE_URL,
            timeout=timeout,
        )

    if config.CINETPAY_API_KEY and config.CINETPAY_SITE_ID:
        gateways[PaymentMethod.CINETPAY] = CinetPayGateway(
            api_key=config.CINETPAY_API_KEY,
            site_id=str(config.CINETPAY_SITE_ID),
            notify_url=config.CINETPAY_NOTIFY_URL,
            return_url=config.CINETPAY_RETURN_URL,
            timeout=timeout,
        )

    missing = [m.value for m in PaymentMethod if m.uses_gateway and m not in gateways]
    if missing:
        logger.warning(f"Payment gateways not configured: {', '.join(missing)}")

    return gateways
