from .abi_listing_created_decoder import LISTING_CREATED_TOPIC, AbiListingCreatedDecoder

__all__ = ["AbiListingCreatedDecoder", "LISTING_CREATED_TOPIC"]
