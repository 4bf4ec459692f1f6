"""
Minimal ABI fragments of the whitelist escrow ledger contract.

Related: wlvault.contexts.sealing.adapters.outbound.ledger.web3_ledger_reader,
  wlvault.contexts.listings.adapters.outbound.chain.abi_listing_created_decoder
"""

from __future__ import annotations

from typing import Any

LISTING_CREATED_EVENT_SIGNATURE = "ListingCreated(uint256,address,string,uint256,uint256)"
LISTING_CREATED_DATA_TYPES: tuple[str, ...] = ("string", "uint256", "uint256")

GET_LISTING_FIELDS: tuple[str, ...] = (
    "listingId",
    "seller",
    "encryptedSellerWallet",
    "buyer",
    "nftProject",
    "quantity",
    "price",
    "collateral",
    "buyerPayment",
    "encryptedPrivateKey",
    "privateKeyHash",
    "mintDate",
    "confirmationDeadline",
    "status",
    "createdAt",
    "soldAt",
    "completedAt",
    "hasCollateral",
    "mintDateSet",
    "decryptionEnabled",
    "underManualReview",
    "reviewNotes",
)

_GET_LISTING_TYPES: dict[str, str] = {
    "listingId": "uint256",
    "seller": "address",
    "encryptedSellerWallet": "bytes32[20]",
    "buyer": "address",
    "nftProject": "string",
    "quantity": "uint256",
    "price": "uint256",
    "collateral": "uint256",
    "buyerPayment": "uint256",
    "encryptedPrivateKey": "bytes32[32]",
    "privateKeyHash": "bytes32",
    "mintDate": "uint256",
    "confirmationDeadline": "uint256",
    "status": "uint8",
    "createdAt": "uint256",
    "soldAt": "uint256",
    "completedAt": "uint256",
    "hasCollateral": "bool",
    "mintDateSet": "bool",
    "decryptionEnabled": "bool",
    "underManualReview": "bool",
    "reviewNotes": "string",
}

LEDGER_READ_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "getListing",
        "inputs": [{"name": "listingId", "type": "uint256"}],
        "outputs": [
            {
                "name": "",
                "type": "tuple",
                "components": [
                    {"name": name, "type": _GET_LISTING_TYPES[name]}
                    for name in GET_LISTING_FIELDS
                ],
            }
        ],
        "stateMutability": "view",
    },
    {
        "type": "event",
        "name": "ListingCreated",
        "anonymous": False,
        "inputs": [
            {"name": "listingId", "type": "uint256", "indexed": True},
            {"name": "seller", "type": "address", "indexed": True},
            {"name": "nftProject", "type": "string", "indexed": False},
            {"name": "quantity", "type": "uint256", "indexed": False},
            {"name": "price", "type": "uint256", "indexed": False},
        ],
    },
]
