from .engine import FieldInferenceEngine, looks_like_id, reference_ids
from .normalize import normalize_field_name, relation_key, strip_reference_suffix
from .tables import StaticFieldTable

__all__ = [
    "FieldInferenceEngine",
    "StaticFieldTable",
    "looks_like_id",
    "normalize_field_name",
    "reference_ids",
    "relation_key",
    "strip_reference_suffix",
]
