from .ai import AiExtractionClient, AiResult, AnthropicDimensionClient, ai_strategy, build_dimension_prompt, parse_ai_response
from .dimensions import DimensionExtractor, extract_dimensions, find_dimension_text, parse_dimensions_text
from .page import ProductPage, parse_product_page
from .units import convert_to_mm

__all__ = [
    "AiExtractionClient",
    "AiResult",
    "AnthropicDimensionClient",
    "DimensionExtractor",
    "ProductPage",
    "ai_strategy",
    "build_dimension_prompt",
    "convert_to_mm",
    "extract_dimensions",
    "find_dimension_text",
    "parse_ai_response",
    "parse_dimensions_text",
    "parse_product_page",
]
