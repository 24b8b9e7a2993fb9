from storebox.box import Box
from storebox.registry import BoxRegistry, default_store_factory
from storebox.storage import Storage
from storebox.types import BoxType, PersistMode, Value
from storebox.value_codec import CacheCodec, ValueCodec, decode_cache, encode_cache

__all__ = [
    "Box",
    "BoxRegistry",
    "BoxType",
    "PersistMode",
    "Storage",
    "Value",
    "CacheCodec",
    "ValueCodec",
    "encode_cache",
    "decode_cache",
    "default_store_factory",
]
