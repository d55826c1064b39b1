"""Record-store providers for kintone-gateway."""

from kintone_gateway.providers.base import RecordStore
from kintone_gateway.providers.kintone import KintoneAPIError, KintoneRecordStore

__all__ = ["RecordStore", "KintoneRecordStore", "KintoneAPIError"]
