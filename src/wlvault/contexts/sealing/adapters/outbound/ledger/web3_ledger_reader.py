from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

import requests
from web3 import Web3
from web3.exceptions import Web3Exception

from wlvault.contexts.sealing.adapters.outbound.fhe.wire_normalization import normalize_handle
from wlvault.contexts.sealing.adapters.outbound.ledger.listing_ledger_abi import (
    GET_LISTING_FIELDS,
    LEDGER_READ_ABI,
)
from wlvault.contexts.sealing.application.ports import LedgerReader
from wlvault.contexts.sealing.domain.entities import LedgerListing, LedgerListingStatus
from wlvault.contexts.sealing.domain.errors import LedgerReadError
from wlvault.shared_kernel.primitives import EvmAddress

log = logging.getLogger(__name__)


class Web3LedgerReader(LedgerReader):
    """
    Web3LedgerReader - reads listings through the ledger contract `getListing` view.

    Related:
      - src/wlvault/contexts/sealing/application/ports/ledger_reader.py
      - src/wlvault/contexts/sealing/adapters/outbound/ledger/listing_ledger_abi.py
      - apps/api/wiring/modules/sealing.py
    """

    def __init__(
        self,
        *,
        rpc_url: str,
        contract_address: EvmAddress,
        timeout_s: float = 30.0,
        web3: Web3 | None = None,
    ) -> None:
        """
        Build contract binding over an HTTP provider.

        Args:
            rpc_url: JSON-RPC endpoint.
            contract_address: Ledger contract address.
            timeout_s: HTTP provider timeout.
            web3: Optional injected Web3 instance for tests.
        Returns:
            None.
        Assumptions:
            Provider construction does not perform network I/O.
        Raises:
            ValueError: If neither `rpc_url` nor `web3` is provided.
        Side Effects:
            None.
        """
        if web3 is None:
            if not rpc_url.strip():
                raise ValueError("Web3LedgerReader requires rpc_url")
            web3 = Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": timeout_s}))
        self._web3 = web3
        self._contract = web3.eth.contract(address=contract_address.checksum, abi=LEDGER_READ_ABI)

    def get_listing(self, *, listing_id: int) -> LedgerListing | None:
        """
        Call `getListing` and map the struct.

        Args:
            listing_id: On-chain listing id.
        Returns:
            LedgerListing | None: Listing, or `None` for an unknown id.
        Assumptions:
            Reads are not retried; the caller decides whether to ask again.
        Raises:
            LedgerReadError: On transport failure, contract revert, or undecodable struct.
        Side Effects:
            One `eth_call`; logs the underlying failure with traceback.
        """
        try:
            raw = self._contract.functions.getListing(listing_id).call()
            return ledger_listing_from_call_result(listing_id=listing_id, raw=raw)
        except (Web3Exception, requests.RequestException, OSError, KeyError, ValueError) as error:
            log.exception("getListing(%s) failed", listing_id)
            reason = str(error) or type(error).__name__
            raise LedgerReadError(listing_id=listing_id, reason=reason) from error


def ledger_listing_from_call_result(*, listing_id: int, raw: Any) -> LedgerListing | None:
    """
    Map a `getListing` call result (tuple or named mapping) to `LedgerListing`.

    Args:
        listing_id: Requested listing id.
        raw: Decoded call output.
    Returns:
        LedgerListing | None: Listing, or `None` when the contract returned an empty struct.
    Assumptions:
        Unknown ids come back as a zeroed struct, not a revert.
    Raises:
        ValueError: If the struct shape is unexpected.
    Side Effects:
        None.
    """
    fields = _as_field_mapping(raw)
    seller = EvmAddress(str(fields["seller"]))
    if int(fields["listingId"]) == 0 and seller.is_zero:
        return None
    return LedgerListing(
        listing_id=listing_id,
        seller=seller,
        buyer=EvmAddress(str(fields["buyer"])),
        wallet_handles=tuple(normalize_handle(item) for item in fields["encryptedSellerWallet"]),
        key_handles=tuple(normalize_handle(item) for item in fields["encryptedPrivateKey"]),
        status=LedgerListingStatus(int(fields["status"])),
    )


def _as_field_mapping(raw: Any) -> Mapping[str, Any]:
    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, Sequence) and len(raw) == 1 and isinstance(raw[0], (Sequence, Mapping)):
        if not isinstance(raw[0], (str, bytes)):
            return _as_field_mapping(raw[0])
    if isinstance(raw, Sequence) and len(raw) == len(GET_LISTING_FIELDS):
        return dict(zip(GET_LISTING_FIELDS, raw))
    raise ValueError("getListing returned unexpected struct shape")
