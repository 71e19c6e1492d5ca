"""Compose docker-compose stacks from a catalog of service templates."""

from .catalog import ServiceCatalog
from .pipeline import BuildPipeline, PipelineContext, Phase

__all__ = ["ServiceCatalog", "BuildPipeline", "PipelineContext", "Phase"]
