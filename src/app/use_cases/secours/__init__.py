"""Ô Secours token ledger use cases"""
from .purchase_tokens import PurchaseTokens
from .confirm_token_payment import ConfirmTokenPayment
from .get_token_balance import GetTokenBalance
from .list_token_transactions import ListTokenTransactions
from .dtos import (
    PurchaseTokensCommandDTO,
    ConfirmTokenPaymentCommandDTO,
    TokenPurchaseResponseDTO,
    TokenTransactionDTO,
    TokenBalanceResponseDTO,
    ListTokenTransactionsResponseDTO,
    TokenSettlementResponseDTO,
)

__all__ = [
    "PurchaseTokens",
    "ConfirmTokenPayment",
    "GetTokenBalance",
    "ListTokenTransactions",
    "PurchaseTokensCommandDTO",
    "ConfirmTokenPaymentCommandDTO",
    "TokenPurchaseResponseDTO",
    "TokenTransactionDTO",
    "TokenBalanceResponseDTO",
    "ListTokenTransactionsResponseDTO",
    "TokenSettlementResponseDTO",
]
