from .build_encrypted_submission import BuildEncryptedSubmissionUseCase
from .decrypt_purchased_secrets import DecryptionChallenge, DecryptPurchasedSecretsUseCase
from .negotiate_decryption_permission import DecryptionPermissionNegotiator
from .pending_decryption_requests import PendingDecryption, PendingDecryptionRequests
from .reassemble_secrets import reassemble_secrets
from .verify_buyer_authorization import VerifyBuyerAuthorizationUseCase

__all__ = [
    "BuildEncryptedSubmissionUseCase",
    "DecryptPurchasedSecretsUseCase",
    "DecryptionChallenge",
    "DecryptionPermissionNegotiator",
    "PendingDecryption",
    "PendingDecryptionRequests",
    "VerifyBuyerAuthorizationUseCase",
    "reassemble_secrets",
]
