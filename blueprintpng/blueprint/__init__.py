from .config import ContainerFormat, DEFAULT_FORMAT
from .locator import ChunkClassification, ChunkRole, classify, locate
from .container import (
    ExtractionResult,
    artifact_names,
    brand,
    branding,
    combine,
    embed,
    extract,
    format_bytes,
)
