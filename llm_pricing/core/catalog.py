"""
Model catalog data model.

Normalized, immutable representation of the priced models returned by the
catalog provider. Prices are kept as the catalog's decimal strings and only
parsed when a computation needs them.
"""

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from .errors import CatalogFormatError, InvalidPriceError

UNKNOWN_PROVIDER = "unknown"
PROVIDER_SEPARATOR = "/"
TOKENS_PER_MILLION = Decimal(1_000_000)
NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class PricingRecord:
    """Per-token prices for a model, as decimal strings.

    Only ``prompt`` and ``completion`` are required. ``input_cache_write`` is
    used as a presence flag: the effective write price is derived from the
    prompt price and the cache TTL.
    """
    prompt: str
    completion: str
    input_cache_read: Optional[str] = None
    input_cache_write: Optional[str] = None
    request: Optional[str] = None
    image: Optional[str] = None
    web_search: Optional[str] = None
    internal_reasoning: Optional[str] = None

    @property
    def offers_cache_write(self) -> bool:
        """Whether new tokens can be written into the prompt cache."""
        return self.input_cache_write is not None


@dataclass(frozen=True)
class Architecture:
    modality: Optional[str] = None
    input_modalities: Optional[List[str]] = None
    output_modalities: Optional[List[str]] = None
    tokenizer: Optional[str] = None
    instruct_type: Optional[str] = None


@dataclass(frozen=True)
class TopProvider:
    context_length: Optional[int] = None
    max_completion_tokens: Optional[int] = None
    is_moderated: Optional[bool] = None


@dataclass(frozen=True)
class PerRequestLimits:
    prompt_tokens: Optional[str] = None
    completion_tokens: Optional[str] = None


@dataclass(frozen=True)
class Model:
    """A single priced model from the catalog.

    Descriptive metadata is carried through for display only.
    """
    id: str
    pricing: PricingRecord
    name: Optional[str] = None
    description: Optional[str] = None
    canonical_slug: Optional[str] = None
    hugging_face_id: Optional[str] = None
    created: Optional[int] = None
    context_length: Optional[int] = None
    architecture: Optional[Architecture] = None
    top_provider: Optional[TopProvider] = None
    per_request_limits: Optional[PerRequestLimits] = None
    supported_parameters: Optional[List[str]] = None

    @property
    def provider(self) -> str:
        """Provider key derived from the model identifier."""
        return provider_of(self.id)


def provider_of(model_id: str) -> str:
    """Return the segment of a model id before the first separator.

    Identifiers without a separator, or with an empty prefix, belong to
    the ``"unknown"`` provider.
    """
    prefix, separator, _ = model_id.partition(PROVIDER_SEPARATOR)
    if not separator or not prefix:
        return UNKNOWN_PROVIDER
    return prefix


def parse_price(value: Optional[str], field: str = "price", model_id: Optional[str] = None) -> Decimal:
    """Parse a per-token price string into a Decimal.

    Args:
        value: Price as given by the catalog, e.g. ``"0.000003"``
        field: Field name used in the error message
        model_id: Model identifier used in the error message

    Returns:
        The exact decimal price

    Raises:
        InvalidPriceError: If the value is missing or not a finite decimal
    """
    if value is None:
        raise InvalidPriceError(value, field, model_id)
    try:
        price = Decimal(value.strip())
    except (InvalidOperation, AttributeError):
        raise InvalidPriceError(value, field, model_id)
    if not price.is_finite():
        raise InvalidPriceError(value, field, model_id)
    return price


def parse_price_or_zero(value: Optional[str]) -> Decimal:
    """Parse a price for ordering purposes; unparsable prices count as zero."""
    try:
        return parse_price(value)
    except InvalidPriceError:
        return Decimal(0)


def format_price_per_million(value: Optional[str]) -> str:
    """Format a per-token price as a price per 1M tokens with two decimals."""
    try:
        price = parse_price(value)
    except InvalidPriceError:
        return NOT_AVAILABLE
    return f"{price * TOKENS_PER_MILLION:.2f}"


def parse_model(raw: Dict[str, Any]) -> Model:
    """Build a Model from a raw catalog record.

    Unknown keys are ignored. Malformed optional metadata is dropped rather
    than failing the record.

    Raises:
        CatalogFormatError: If the id or a required price is missing
    """
    if not isinstance(raw, dict):
        raise CatalogFormatError(f"Catalog record must be an object, got {type(raw).__name__}")

    model_id = raw.get("id")
    if not isinstance(model_id, str) or not model_id:
        raise CatalogFormatError("Catalog record is missing 'id'")

    pricing = raw.get("pricing")
    if not isinstance(pricing, dict):
        raise CatalogFormatError(f"Model {model_id} is missing 'pricing'")

    for required in ("prompt", "completion"):
        if not isinstance(pricing.get(required), str):
            raise CatalogFormatError(f"Model {model_id} is missing pricing '{required}'")

    return Model(
        id=model_id,
        name=_optional_str(raw.get("name")),
        description=_optional_str(raw.get("description")),
        canonical_slug=_optional_str(raw.get("canonical_slug")),
        hugging_face_id=_optional_str(raw.get("hugging_face_id")),
        created=_optional_int(raw.get("created")),
        context_length=_optional_int(raw.get("context_length")),
        pricing=PricingRecord(
            prompt=pricing["prompt"],
            completion=pricing["completion"],
            input_cache_read=_optional_str(pricing.get("input_cache_read")),
            input_cache_write=_optional_str(pricing.get("input_cache_write")),
            request=_optional_str(pricing.get("request")),
            image=_optional_str(pricing.get("image")),
            web_search=_optional_str(pricing.get("web_search")),
            internal_reasoning=_optional_str(pricing.get("internal_reasoning")),
        ),
        architecture=_parse_architecture(raw.get("architecture")),
        top_provider=_parse_top_provider(raw.get("top_provider")),
        per_request_limits=_parse_per_request_limits(raw.get("per_request_limits")),
        supported_parameters=_optional_str_list(raw.get("supported_parameters")),
    )


def _parse_architecture(data: Any) -> Optional[Architecture]:
    if not isinstance(data, dict):
        return None
    return Architecture(
        modality=_optional_str(data.get("modality")),
        input_modalities=_optional_str_list(data.get("input_modalities")),
        output_modalities=_optional_str_list(data.get("output_modalities")),
        tokenizer=_optional_str(data.get("tokenizer")),
        instruct_type=_optional_str(data.get("instruct_type")),
    )


def _parse_top_provider(data: Any) -> Optional[TopProvider]:
    if not isinstance(data, dict):
        return None
    is_moderated = data.get("is_moderated")
    return TopProvider(
        context_length=_optional_int(data.get("context_length")),
        max_completion_tokens=_optional_int(data.get("max_completion_tokens")),
        is_moderated=is_moderated if isinstance(is_moderated, bool) else None,
    )


def _parse_per_request_limits(data: Any) -> Optional[PerRequestLimits]:
    if not isinstance(data, dict):
        return None
    return PerRequestLimits(
        prompt_tokens=_optional_str(data.get("prompt_tokens")),
        completion_tokens=_optional_str(data.get("completion_tokens")),
    )


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _optional_int(value: Any) -> Optional[int]:
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _optional_str_list(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]
